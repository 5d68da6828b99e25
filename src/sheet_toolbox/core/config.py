"""ConfigManager — layered operation defaults and per-sheet configs (TOML)."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sheet_toolbox.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "sheet-toolbox"


@dataclass
class OperationConfig:
    """A per-sheet configuration: which operation to run and with what params.

    Attributes:
        operation: Registry tag of the operation.
        params: Parameter values for the operation.
        source: File the config was read from.
    """

    operation: str
    params: dict[str, Any] = field(default_factory=dict)
    source: Path | None = None


class ConfigManager:
    """Layered operation defaults.

    Lowest layer: the ``[<tag>]`` tables of ``config.toml``.  Above it:
    ``operations/<tag>.toml``.  Both live under ``config_dir``; explicit
    overrides passed to ``operation_params`` win over both.

    Args:
        config_dir: Root directory for configuration files.
                    Defaults to ``~/.config/sheet-toolbox/``.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialise the config manager.

        Args:
            config_dir: Custom configuration directory.  Uses the
                        platform default if ``None``.
        """
        self._config_dir = config_dir or _DEFAULT_CONFIG_DIR
        self._global: dict[str, dict[str, Any]] = {}
        self._per_operation: dict[str, dict[str, Any]] = {}

    def load(self) -> None:
        """Load ``config.toml`` and ``operations/*.toml`` from ``config_dir``.

        Missing files are skipped.  Top-level values of ``config.toml``
        that are not tables are ignored with a warning.

        Raises:
            ValidationError: If a present file is not valid TOML.
        """
        global_file = self._config_dir / "config.toml"
        if global_file.is_file():
            for key, value in self._read_toml(global_file).items():
                if isinstance(value, dict):
                    self._global[key] = value
                else:
                    logger.warning("Ignoring '%s' in %s: expected an [operation] table", key, global_file)
            logger.info("Loaded global config from %s", global_file)

        operations_dir = self._config_dir / "operations"
        if operations_dir.is_dir():
            for toml_file in sorted(operations_dir.glob("*.toml")):
                self._per_operation[toml_file.stem] = self._read_toml(toml_file)
                logger.info("Loaded defaults for operation '%s'", toml_file.stem)

    def operation_params(self, operation: str, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """Merge stored defaults for *operation* with *overrides*.

        ``None`` values in *overrides* do not mask a stored default.

        Args:
            operation: Operation tag.
            overrides: Values that take precedence over the defaults.

        Returns:
            A new parameter dictionary.
        """
        params = dict(self._global.get(operation, {}))
        params.update(self._per_operation.get(operation, {}))
        for key, value in (overrides or {}).items():
            if value is not None:
                params[key] = value
        return params

    def load_operation_config(self, path: Path) -> OperationConfig:
        """Read a per-sheet operation config (e.g. ``icon.dmi.toml``).

        The file names the operation with an ``operation`` key; every
        other top-level key is a parameter.  Stored defaults for that
        operation fill in whatever the file omits.

        Args:
            path: Path to the TOML file.

        Returns:
            The parsed ``OperationConfig``.

        Raises:
            ValidationError: If the file is unreadable, not TOML, or has no
                             string ``operation`` key.
        """
        data = self._read_toml(path)
        operation = data.pop("operation", None)
        if not isinstance(operation, str) or not operation:
            msg = f"Config '{path.name}' must set 'operation' to an operation name"
            raise ValidationError(msg)
        logger.info("Loaded '%s' config from %s", operation, path)
        return OperationConfig(operation=operation, params=self.operation_params(operation, data), source=path)

    @staticmethod
    def _read_toml(path: Path) -> dict[str, Any]:
        """Read and parse a TOML file.

        Args:
            path: Path to the TOML file.

        Returns:
            Parsed dictionary.

        Raises:
            ValidationError: If the file cannot be read or parsed.
        """
        try:
            with path.open("rb") as fh:
                return tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Config '{path.name}' is not valid TOML ({exc})"
            raise ValidationError(msg) from exc
        except OSError as exc:
            msg = f"Config '{path}' could not be read ({exc.strerror})"
            raise ValidationError(msg) from exc
