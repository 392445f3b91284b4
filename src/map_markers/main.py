"""Developer CLI for inspecting waypoint rule files."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich import print
from rich.table import Table

from map_markers.compiler import compile_tables
from map_markers.config import settings
from map_markers.rules import load_waypoints_config
from map_markers.telemetry import configure_logging

app = typer.Typer(name=settings.app_name, help=f"{settings.app_name}: waypoint rule tooling")


def _read_code_list(path: Path | None) -> list:
    if path is None:
        return []
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise typer.BadParameter(f"{path} must contain a JSON list of codes")
    return payload


@app.callback()
def _setup() -> None:
    configure_logging(settings.log_level)


@app.command("init-config")
def init_config(path: Path = typer.Option(None, help="Rule file location (defaults to the user config dir)")) -> None:
    """Install the bundled default rule file if none exists yet."""
    target = path or settings.rules_path
    config = load_waypoints_config(target)
    if config is None:
        print({"rules_path": str(target), "error": "rule file could not be loaded"})
        raise typer.Exit(code=1)
    print({"rules_path": str(target), "rules": len(config.waypoints)})


@app.command("check-config")
def check_config(
    path: Path = typer.Option(None, help="Rule file location (defaults to the user config dir)"),
    blocks: Path = typer.Option(None, help="JSON list of block codes indexed by block id"),
    entities: Path = typer.Option(None, help="JSON list of entity codes"),
) -> None:
    """Validate a rule file and optionally show what it compiles to."""
    target = path or settings.rules_path
    config = load_waypoints_config(target)
    if config is None:
        print({"rules_path": str(target), "error": "rule file could not be loaded"})
        raise typer.Exit(code=1)

    block_codes = _read_code_list(blocks)
    tables = compile_tables(config, block_codes=block_codes, entity_codes=_read_code_list(entities))

    table = Table(title=f"Compiled waypoints ({target})")
    table.add_column("kind")
    table.add_column("key")
    table.add_column("title")
    table.add_column("icon")
    table.add_column("color")
    table.add_column("coverage", justify="right")
    for block_id, appearance in sorted(tables.blocks.items()):
        key = f"{block_id} ({block_codes[block_id]})"
        table.add_row("block", key, appearance.title, appearance.icon, appearance.color, f"{appearance.coverage_radius:g}")
    for code, appearance in sorted(tables.entities.items()):
        table.add_row("entity", code, appearance.title, appearance.icon, appearance.color, f"{appearance.coverage_radius:g}")

    print({"rules": len(config.waypoints), "block_entries": len(tables.blocks), "entity_entries": len(tables.entities)})
    print(table)


if __name__ == "__main__":
    app()
