"""OperationRegistry — singleton that discovers operations and selects them by tag."""

from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import TYPE_CHECKING, Any

from sheet_toolbox.core.exceptions import ValidationError

if TYPE_CHECKING:
    from sheet_toolbox.core.base_operation import BaseOperation
    from sheet_toolbox.core.events import EventBus

logger = logging.getLogger(__name__)


class OperationRegistry:
    """Singleton registry of every concrete ``BaseOperation`` subclass.

    ``discover()`` scans ``sheet_toolbox.operations.*`` sub-packages for an
    ``operation`` module.  The registry stores classes, not instances:
    each operation carries its own configuration, so ``create()`` builds a
    fresh instance per use.
    """

    _instance: OperationRegistry | None = None
    _operations: dict[str, type[BaseOperation]]

    def __new__(cls) -> OperationRegistry:
        """Return the singleton instance, creating it on first call."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._operations = {}
        return cls._instance

    def discover(self) -> None:
        """Scan ``sheet_toolbox.operations`` and register all operation classes."""
        from sheet_toolbox.core.base_operation import BaseOperation

        operations_package = importlib.import_module("sheet_toolbox.operations")

        for _importer, module_name, is_pkg in pkgutil.iter_modules(operations_package.__path__):
            if not is_pkg:
                continue
            try:
                module = importlib.import_module(f"sheet_toolbox.operations.{module_name}.operation")
            except ImportError:
                logger.debug("Skipping %s: no operation.py found", module_name)
                continue

            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if (
                    isinstance(attr, type)
                    and issubclass(attr, BaseOperation)
                    and attr is not BaseOperation
                    and not getattr(attr, "__abstractmethods__", None)
                ):
                    self._operations[attr.name] = attr
                    logger.info("Registered operation: %s", attr.name)

    def get(self, name: str) -> type[BaseOperation] | None:
        """Look up an operation class by its tag, or ``None``."""
        return self._operations.get(name)

    def all_operations(self) -> dict[str, type[BaseOperation]]:
        """Return all registered operations as a tag → class mapping."""
        return dict(self._operations)

    def create(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        event_bus: EventBus | None = None,
    ) -> BaseOperation:
        """Instantiate the operation registered under *name*.

        Args:
            name: Operation tag (e.g. ``"sprite_masking"``).
            params: Configuration record for the new instance.
            event_bus: Bus injected into the instance.

        Returns:
            A configured, not yet verified, operation.

        Raises:
            ValidationError: If no operation is registered under *name*.
        """
        if not self._operations:
            self.discover()
        operation_cls = self.get(name)
        if operation_cls is None:
            known = ", ".join(sorted(self._operations)) or "none"
            msg = f"Unknown operation '{name}' (known operations: {known})"
            raise ValidationError(msg)
        return operation_cls(params=params, event_bus=event_bus)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton — intended for testing only."""
        cls._instance = None
