"""CLI entrypoint: run the layout engine over a snapshot file."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click
import orjson
from rich.console import Console
from rich.table import Table

from .config import LayoutConfig, load_config
from .engine import LayoutEngine
from .errors import TransitMapError
from .log import configure_logging
from .models import ProjectSnapshot
from .render import format_debug_tree
from .storage import load_snapshot_file
from .types import SlotConflictMode, StrategyName


@dataclass
class AppEnv:
    console: Console
    config_path: Optional[Path] = None


def _load_snapshot(command: str, path: Path) -> ProjectSnapshot:
    try:
        return load_snapshot_file(path)
    except TransitMapError as exc:
        raise click.ClickException(f"{command}: {exc}") from exc


def _load_config(command: str, env: AppEnv, **overrides: object) -> LayoutConfig:
    try:
        return load_config(env.config_path, **overrides)
    except TransitMapError as exc:
        raise click.ClickException(f"{command}: {exc}") from exc


def _emit_json(payload: object) -> None:
    click.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS).decode("utf-8"))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to a JSON layout config")
@click.option("--verbose", is_flag=True, help="Debug logging on stderr")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool, json_logs: bool) -> None:
    """Lay out branching conversations as a transit map."""
    configure_logging(verbose=verbose, json_logs=json_logs)
    ctx.obj = AppEnv(
        config_path=config_path,
        console=Console(),
    )


@cli.command()
@click.argument("snapshot", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.option("--strategy", type=click.Choice([name.value for name in StrategyName]), help="Horizontal layout strategy")
@click.option(
    "--slot-conflict",
    type=click.Choice([mode.value for mode in SlotConflictMode]),
    help="Slot allocator conflict resolution",
)
@click.option("--json", "json_output", is_flag=True, help="Output JSON")
@click.pass_obj
def layout(env: AppEnv, snapshot: Path, strategy: Optional[str], slot_conflict: Optional[str], json_output: bool) -> None:
    """Compute positions and colors for every branch in SNAPSHOT."""
    config = _load_config("layout", env, strategy=strategy, slot_conflict=slot_conflict)
    data = _load_snapshot("layout", snapshot)
    report = LayoutEngine(config).build_records(data.branches, data.messages)

    if json_output:
        _emit_json(
            {
                "project_id": data.project_id,
                "strategy": report.layout.strategy,
                "viewport": {
                    "width": report.layout.width,
                    "height": report.layout.height,
                    "center_x": report.layout.center_x,
                },
                "branches": [record.model_dump(mode="json") for record in report.records.values()],
            }
        )
        return

    table = Table(title=f"{data.project_id} ({report.layout.strategy})")
    for column in ("branch", "x", "y", "direction", "sibling", "level", "height", "color"):
        table.add_column(column)
    for record in report.records.values():
        table.add_row(
            record.branch_id,
            f"{record.x:g}",
            f"{record.y:g}",
            record.direction.value,
            str(record.sibling_index),
            str(record.level),
            f"{record.height:g}",
            record.color,
        )
    env.console.print(table)


@cli.command()
@click.argument("snapshot", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.option("--json", "json_output", is_flag=True, help="Output JSON")
@click.pass_obj
def colors(env: AppEnv, snapshot: Path, json_output: bool) -> None:
    """Assign a color to every branch in SNAPSHOT."""
    config = _load_config("colors", env)
    data = _load_snapshot("colors", snapshot)
    assignment = LayoutEngine(config).assign_colors(data.branches)
    if json_output:
        _emit_json(assignment.colors)
        return
    for branch_id, color in assignment.colors.items():
        click.echo(f"{branch_id}\t{color}")


@cli.command()
@click.argument("snapshot", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.option("--with-layout", is_flag=True, help="Annotate branches with computed positions")
@click.option("--width", type=int, default=120, show_default=True)
@click.pass_obj
def tree(env: AppEnv, snapshot: Path, with_layout: bool, width: int) -> None:
    """Print the stored branch/message structure of SNAPSHOT."""
    data = _load_snapshot("tree", snapshot)
    layouts = None
    if with_layout:
        config = _load_config("tree", env)
        layouts = LayoutEngine(config).compute_layout(data.branches, data.messages).layouts
    click.echo(format_debug_tree(data.branches, data.messages, layouts, width=width), nl=False)
