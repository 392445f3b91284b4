"""Waypoint rule file schema and loading."""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from map_markers.errors import RulesConfigError
from map_markers.models import DEFAULT_ICON, Appearance
from map_markers.protocol import MAX_F32, MAX_STR_BYTES

logger = logging.getLogger("map_markers.rules")


def _lower_keys(data: Any) -> Any:
    if isinstance(data, dict):
        return {str(key).lower(): value for key, value in data.items()}
    return data


class WaypointRule(BaseModel):
    """One rule: an appearance plus the block and entity patterns that trigger it."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    icon: str = DEFAULT_ICON
    color: str = ""
    pinned: bool = False
    coverage: float = Field(default=0.0, ge=-MAX_F32, le=MAX_F32, allow_inf_nan=False)
    blocks: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _case_insensitive_keys(cls, data: Any) -> Any:
        return _lower_keys(data)

    @field_validator("title", "icon", "color")
    @classmethod
    def _fits_wire_format(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_STR_BYTES:
            raise ValueError(f"must encode to at most {MAX_STR_BYTES} UTF-8 bytes")
        return value

    def to_appearance(self) -> Appearance:
        return Appearance(
            title=self.title,
            icon=self.icon,
            color=self.color,
            pinned=self.pinned,
            coverage_radius=self.coverage,
        )


class WaypointsConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    waypoints: list[WaypointRule] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _case_insensitive_keys(cls, data: Any) -> Any:
        return _lower_keys(data)


def parse_waypoints_config(data: str | bytes) -> WaypointsConfig:
    """Strictly parse rule file content, raising :class:`RulesConfigError` on any problem.

    Bytes are decoded as UTF-8; a leading byte order mark is accepted.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise RulesConfigError(f"Rule file is not valid UTF-8: {exc}") from exc
    try:
        payload = json.loads(data.removeprefix("\ufeff"))
    except json.JSONDecodeError as exc:
        raise RulesConfigError(f"Rule file is not valid JSON: {exc}") from exc
    try:
        return WaypointsConfig.model_validate(payload)
    except ValidationError as exc:
        raise RulesConfigError(f"Rule file failed validation: {exc}") from exc


def read_bundled_default() -> str:
    return resources.files("map_markers").joinpath("assets/defaultconfig.json").read_text(encoding="utf-8")


def load_waypoints_config(
    user_path: str | Path,
    default_source: Callable[[], str] = read_bundled_default,
) -> WaypointsConfig | None:
    """Load the user rule file, installing the bundled default on first use.

    Returns ``None`` when neither file can be loaded; the failure is logged.
    """
    path = Path(user_path).expanduser()
    try:
        if path.exists():
            config = parse_waypoints_config(path.read_bytes())
            logger.info("rules_loaded", extra={"path": str(path), "rules": len(config.waypoints)})
            return config

        text = default_source()
        config = parse_waypoints_config(text)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        logger.info("default_rules_installed", extra={"path": str(path), "rules": len(config.waypoints)})
        return config
    except (OSError, RulesConfigError):
        logger.exception("rules_load_failed", extra={"path": str(path)})
        return None
