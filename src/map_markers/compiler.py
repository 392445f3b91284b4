"""Compiles a waypoint rule set into per-block-id and per-entity-code lookup tables."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from map_markers.models import Appearance
from map_markers.rules import WaypointRule, WaypointsConfig
from map_markers.wildcard import code_path, matches, validate_pattern

logger = logging.getLogger("map_markers.compiler")


@dataclass(frozen=True, slots=True)
class CompiledTables:
    """Immutable lookup tables handed to the interaction detector."""

    blocks: Mapping[int, Appearance] = field(default_factory=lambda: MappingProxyType({}))
    entities: Mapping[str, Appearance] = field(default_factory=lambda: MappingProxyType({}))


def first_claims(rules: Iterable[WaypointRule], *, entities: bool) -> dict[str, Appearance]:
    """Map each pattern to the appearance of the first rule that lists it."""
    claimed: dict[str, Appearance] = {}
    for rule in rules:
        appearance = rule.to_appearance()
        for pattern in rule.entities if entities else rule.blocks:
            claimed.setdefault(pattern, appearance)
    return claimed


def _valid_claims(rules: Iterable[WaypointRule], *, entities: bool) -> dict[str, Appearance]:
    claims = first_claims(rules, entities=entities)
    for pattern in list(claims):
        try:
            validate_pattern(pattern)
        except re.error:
            logger.warning("invalid_pattern", extra={"pattern": pattern})
            del claims[pattern]
    return claims


def compile_block_table(
    rules: Iterable[WaypointRule],
    block_codes: Sequence[str | None],
) -> Mapping[int, Appearance]:
    """Build ``block id -> appearance``.

    ``block_codes`` is indexed by block id; ``None`` entries are holes in the
    host registry and are skipped.
    """
    table: dict[int, Appearance] = {}
    for pattern, appearance in _valid_claims(rules, entities=False).items():
        for block_id, code in enumerate(block_codes):
            if code is None or block_id in table:
                continue
            if matches(pattern, code):
                table[block_id] = appearance
    return MappingProxyType(table)


def compile_entity_table(
    rules: Iterable[WaypointRule],
    entity_codes: Iterable[str],
) -> Mapping[str, Appearance]:
    """Build ``entity code path -> appearance``."""
    codes = list(entity_codes)
    table: dict[str, Appearance] = {}
    for pattern, appearance in _valid_claims(rules, entities=True).items():
        for code in codes:
            path = code_path(code)
            if path in table:
                continue
            if matches(pattern, code):
                table[path] = appearance
    return MappingProxyType(table)


def compile_tables(
    config: WaypointsConfig,
    *,
    block_codes: Sequence[str | None],
    entity_codes: Iterable[str],
) -> CompiledTables:
    tables = CompiledTables(
        blocks=compile_block_table(config.waypoints, block_codes),
        entities=compile_entity_table(config.waypoints, entity_codes),
    )
    logger.info(
        "tables_compiled",
        extra={"block_entries": len(tables.blocks), "entity_entries": len(tables.entities)},
    )
    return tables
