"""Run one operation over one sprite sheet file: load, verify, perform, save."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sheet_toolbox.cli.errors import (
    InputNotFoundError,
    InputParsingFailedError,
    InvalidConfigError,
    IOFailureError,
    OutputWriteFailedError,
    ProcessingFailedError,
)
from sheet_toolbox.core.config import ConfigManager, OperationConfig
from sheet_toolbox.core.datatypes import OperationMode, SpriteSheet
from sheet_toolbox.core.events import EventBus
from sheet_toolbox.core.exceptions import InputError, OutputError, ProcessorError, ValidationError
from sheet_toolbox.core.registry import OperationRegistry
from sheet_toolbox.formats.dmi import load_sprite_sheet, save_sprite_sheet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    """Outcome of a successful run."""

    input_path: Path
    output_path: Path
    sheet: SpriteSheet


def find_sheet_config(input_path: Path) -> Path | None:
    """Return the per-sheet config next to *input_path* (``<name>.toml``), if any."""
    candidate = input_path.with_name(f"{input_path.name}.toml")
    return candidate if candidate.is_file() else None


def resolve_operation_config(
    operation: str,
    *,
    config_path: Path | None,
    overrides: dict[str, Any],
    config_manager: ConfigManager,
) -> OperationConfig:
    """Combine stored defaults, an optional config file, and CLI overrides.

    Raises:
        InvalidConfigError: If the file is invalid or names another operation.
    """
    if config_path is None:
        return OperationConfig(operation=operation, params=config_manager.operation_params(operation, overrides))

    try:
        config = config_manager.load_operation_config(config_path)
    except ValidationError as exc:
        raise InvalidConfigError(config_path.name, exc) from exc

    if config.operation != operation:
        msg = f"Config runs operation '{config.operation}', not '{operation}'"
        raise InvalidConfigError(config_path.name, ValidationError(msg))

    for key, value in overrides.items():
        if value is not None:
            config.params[key] = value
    return config


def run_operation_on_file(
    input_path: Path,
    output_path: Path,
    config: OperationConfig,
    *,
    mode: OperationMode = OperationMode.STANDARD,
    event_bus: EventBus | None = None,
) -> RunResult:
    """Apply *config*'s operation to the sheet at *input_path*.

    The configuration is verified before the sheet is read.

    Args:
        input_path: Sheet to read.
        output_path: Where to write the transformed sheet.
        config: Operation tag and parameters.
        mode: Execution mode forwarded to the operation.
        event_bus: Bus injected into the operation.

    Returns:
        A ``RunResult`` describing what was written.

    Raises:
        ToolboxError: One of the wrapping CLI errors, carrying the cause's
                      reasons and help text.
    """
    source = config.source.name if config.source else "command line"

    if not input_path.is_file():
        raise InputNotFoundError(source, input_path.name, input_path.parent)

    try:
        operation = OperationRegistry().create(config.operation, config.params, event_bus=event_bus)
        operation.verify_config()
    except ValidationError as exc:
        raise InvalidConfigError(source, exc) from exc

    try:
        sheet = load_sprite_sheet(input_path)
        payload = operation.run(sheet, mode)
        if payload.sprite_sheet is None:
            msg = f"Operation '{operation.name}' produced no sprite sheet"
            raise OutputError(msg)
        save_sprite_sheet(payload.sprite_sheet, output_path)
    except InputError as exc:
        raise InputParsingFailedError(exc) from exc
    except ProcessorError as exc:
        raise ProcessingFailedError(exc) from exc
    except OutputError as exc:
        raise OutputWriteFailedError(exc) from exc
    except OSError as exc:
        raise IOFailureError(exc) from exc

    logger.info("Wrote %s", output_path)
    return RunResult(input_path=input_path, output_path=output_path, sheet=payload.sprite_sheet)
