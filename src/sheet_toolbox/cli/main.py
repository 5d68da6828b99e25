"""CLI entry point — click group exposing the toolbox operations as sub-commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from sheet_toolbox.core.exceptions import ToolboxError


def render_error(error: ToolboxError) -> None:
    """Print an error's summary, reasons, and help text to stderr."""
    click.secho(f"Error: {error.summary()}", fg="red", bold=True, err=True)
    for reason in error.reasons():
        click.echo(f" - {reason}", err=True)
    helptext = error.helptext()
    if helptext:
        click.secho(f"Help: {helptext}", fg="yellow", err=True)


@click.group()
@click.version_option(package_name="sheet-toolbox")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Sheet Toolbox — sprite sheet state operations."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="mask")
@click.argument("input_path", type=click.Path(dir_okay=False, resolve_path=True))
@click.option(
    "-t",
    "--target",
    "targets",
    multiple=True,
    help="Base state to split (repeatable). Needs a '<target>_mask' state.",
)
@click.option("--mask-suffix", default=None, help="Suffix for states with the mask region removed [default: masked].")
@click.option(
    "--unmasked-suffix",
    default=None,
    help="Suffix for states keeping only the mask region [default: unmasked].",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    default=None,
    help="Operation config TOML (default: '<input>.toml' next to the input, if present).",
)
@click.option(
    "-o",
    "--output",
    "output_file",
    type=click.Path(dir_okay=False, resolve_path=True),
    default=None,
    help="Output file (default: '<stem>-masked.dmi' next to the input).",
)
@click.option("--debug", is_flag=True, default=False, help="Run the operation in debug mode.")
def mask_cmd(
    input_path: str,
    targets: tuple[str, ...],
    mask_suffix: str | None,
    unmasked_suffix: str | None,
    config_file: str | None,
    output_file: str | None,
    debug: bool,
) -> None:
    """Split base states into masked and unmasked states using their _mask states.

    INPUT_PATH is a sprite sheet. Each target state X is paired with X_mask;
    the results X_<mask-suffix> and X_<unmasked-suffix> are added to the sheet.
    """
    from sheet_toolbox.cli.runner import find_sheet_config, resolve_operation_config, run_operation_on_file
    from sheet_toolbox.core.config import ConfigManager
    from sheet_toolbox.core.datatypes import OperationMode
    from sheet_toolbox.core.events import COMPLETED, PROGRESS, EventBus

    source = Path(input_path)
    output = Path(output_file) if output_file else source.with_name(f"{source.stem}-masked.dmi")
    config_path = Path(config_file) if config_file else find_sheet_config(source)

    produced: list[str] = []
    bus = EventBus()
    bus.subscribe(PROGRESS, lambda **kw: click.echo(f"  [{kw['current']:3d}/{kw['total']:3d}] {kw['message']}"))
    bus.subscribe(COMPLETED, lambda **kw: produced.extend(kw.get("produced", [])))

    manager = ConfigManager()
    try:
        manager.load()
        config = resolve_operation_config(
            "sprite_masking",
            config_path=config_path,
            overrides={
                "target_states": list(targets) or None,
                "mask_suffix": mask_suffix,
                "unmasked_suffix": unmasked_suffix,
            },
            config_manager=manager,
        )
        result = run_operation_on_file(
            source,
            output,
            config,
            mode=OperationMode.DEBUG if debug else OperationMode.STANDARD,
            event_bus=bus,
        )
    except ToolboxError as exc:
        render_error(exc)
        sys.exit(1)

    click.echo(f"Produced: {', '.join(produced)}")
    click.echo(f"Wrote {len(result.sheet.states)} states to {result.output_path}")


@cli.command(name="list-states")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
def list_states_cmd(input_path: str) -> None:
    """List the states of a sprite sheet with their directions, frames, and delays."""
    from sheet_toolbox.core.datatypes import text_delays
    from sheet_toolbox.formats.dmi import load_sprite_sheet

    try:
        sheet = load_sprite_sheet(Path(input_path))
    except ToolboxError as exc:
        render_error(exc)
        sys.exit(1)

    click.echo(f"{sheet.width}x{sheet.height}, {len(sheet.states)} states")
    for state in sheet.states:
        click.echo(f"  {state.name}: dirs={state.dirs} frames={state.frames} delays={text_delays(state.delays, 'ds')}")
