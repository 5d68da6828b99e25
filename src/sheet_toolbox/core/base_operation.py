"""BaseOperation ABC — the contract every sprite-sheet operation implements."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from sheet_toolbox.core.datatypes import OperationMode, ProcessorPayload
from sheet_toolbox.core.events import EventBus
from sheet_toolbox.core.exceptions import UnsupportedInputError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ToolParameter:
    """Declarative parameter definition — drives config validation and CLI options."""

    name: str
    label: str
    type: type
    default: Any = None
    required: bool = False
    choices: list[Any] | None = None
    help: str = ""


class BaseOperation(ABC):
    """Template Method base for every operation in the toolbox.

    An operation owns its configuration record (``params``).  The record
    is checked by ``verify_config()`` without touching any sprite data;
    ``perform_operation()`` then transforms an already-decoded input.

    Subclasses must override the abstract methods to provide metadata,
    the parameter schema, I/O types, and the transform itself.
    """

    # ── metadata (override in subclass) ────────────────────────
    name: str
    display_name: str
    description: str
    version: str = "0.1.0"
    category: str = "General"

    def __init__(self, params: dict[str, Any] | None = None, event_bus: EventBus | None = None) -> None:
        """Initialise the operation with its configuration record.

        Args:
            params: Parameter values keyed by parameter name.  Missing
                    entries fall back to the schema defaults.
            event_bus: Event bus for progress events.  A private bus is
                       created if none is provided.
        """
        self.event_bus = event_bus or EventBus()
        self.params: dict[str, Any] = {p.name: p.default for p in self.define_parameters()}
        if params:
            self.params.update(params)

    # ── parameter schema ───────────────────────────────────────
    @abstractmethod
    def define_parameters(self) -> list[ToolParameter]:
        """Return the list of parameters this operation accepts."""
        ...

    # ── I/O declarations ───────────────────────────────────────
    @abstractmethod
    def input_types(self) -> list[type]:
        """Return the input kinds this operation can transform."""
        ...

    @abstractmethod
    def output_types(self) -> list[type]:
        """Return the data types carried by this operation's payload."""
        ...

    # ── lifecycle (Template Method skeleton) ───────────────────
    def run(self, input_data: Any, mode: OperationMode = OperationMode.STANDARD) -> ProcessorPayload:
        """Verify the configuration, then transform *input_data* — do NOT override.

        Args:
            input_data: An already-decoded input (e.g. a ``SpriteSheet``).
            mode: Execution mode flag.

        Returns:
            The payload produced by ``perform_operation``.
        """
        self.verify_config()
        logger.debug("Operation '%s': performing in %s mode", self.name, mode.value)
        payload = self.perform_operation(input_data, mode)
        logger.debug("Operation '%s': finished", self.name)
        return payload

    def verify_config(self) -> None:
        """Validate ``params`` against ``define_parameters()``.

        Every problem is collected and raised as one ``ValidationError``.
        Override ``_config_problems`` to add operation-specific rules.

        Raises:
            ValidationError: If any parameter is invalid.
        """
        problems = self._schema_problems() + self._config_problems()
        if problems:
            raise ValidationError(*problems)

    def _schema_problems(self) -> list[str]:
        problems: list[str] = []
        for param in self.define_parameters():
            value = self.params.get(param.name)
            if value is None:
                if param.required:
                    problems.append(f"Parameter '{param.name}' is required")
                continue
            if param.type in (str, list) and not isinstance(value, param.type):
                problems.append(
                    f"Parameter '{param.name}' must be a {param.type.__name__}, got {type(value).__name__}"
                )
                continue
            if param.choices is not None and value not in param.choices:
                problems.append(f"Parameter '{param.name}' must be one of {param.choices}, got '{value}'")
        return problems

    def _config_problems(self) -> list[str]:
        """Return operation-specific configuration problems (optional override)."""
        return []

    def _require_input(self, input_data: Any) -> Any:
        """Return *input_data* if it is one of ``input_types()``.

        Raises:
            UnsupportedInputError: For any other input kind.
        """
        accepted = self.input_types()
        if not isinstance(input_data, tuple(accepted)):
            raise UnsupportedInputError(self.name, type(input_data), accepted)
        return input_data

    @abstractmethod
    def perform_operation(self, input_data: Any, mode: OperationMode) -> ProcessorPayload:
        """Core logic — MUST override.  Pure computation, no I/O.

        Args:
            input_data: The decoded input.
            mode: Execution mode flag.

        Returns:
            The operation's payload.
        """
        ...
