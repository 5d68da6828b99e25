"""SpriteMaskingOperation — BaseOperation wrapper for mask-driven state splitting."""

from __future__ import annotations

from typing import Any

from PIL import Image

from sheet_toolbox.core.base_operation import BaseOperation, ToolParameter
from sheet_toolbox.core.datatypes import OperationMode, ProcessorPayload, SpriteSheet
from sheet_toolbox.core.events import EventBus
from sheet_toolbox.operations.sprite_masking.logic import (
    DEFAULT_MASK_SUFFIX,
    DEFAULT_UNMASKED_SUFFIX,
    apply_masking,
    masking_config_problems,
)


class SpriteMaskingOperation(BaseOperation):
    """Split base states into masked/unmasked variants using ``<state>_mask`` alpha."""

    name = "sprite_masking"
    display_name = "Sprite Masking"
    description = "Derive masked and unmasked states from base states and their _mask states"
    version = "0.1.0"
    category = "Sprite Sheet"

    def __init__(self, params: dict[str, Any] | None = None, event_bus: EventBus | None = None) -> None:
        """Initialise the masking operation.

        Args:
            params: ``target_states``, ``mask_suffix`` and ``unmasked_suffix``.
            event_bus: Shared event bus for progress reporting.
        """
        super().__init__(params=params, event_bus=event_bus)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for sprite masking."""
        return [
            ToolParameter(
                name="target_states",
                label="Target states",
                type=list,
                required=True,
                help="Base state names to split; each needs a matching '<name>_mask' state.",
            ),
            ToolParameter(
                name="mask_suffix",
                label="Masked suffix",
                type=str,
                default=DEFAULT_MASK_SUFFIX,
                help="Suffix of the derived states with the mask region removed.",
            ),
            ToolParameter(
                name="unmasked_suffix",
                label="Unmasked suffix",
                type=str,
                default=DEFAULT_UNMASKED_SUFFIX,
                help="Suffix of the derived states keeping only the mask region.",
            ),
        ]

    def input_types(self) -> list[type]:
        """Accept decoded sprite sheets only."""
        return [SpriteSheet]

    def output_types(self) -> list[type]:
        """Produce a ``SpriteSheet`` with the derived states merged in."""
        return [SpriteSheet]

    def _config_problems(self) -> list[str]:
        """Apply the masking-specific configuration rules."""
        # Base schema already reported a missing target list.
        if self.params.get("target_states") is None:
            return []
        return masking_config_problems(
            target_states=self.params.get("target_states"),
            mask_suffix=self.params.get("mask_suffix"),
            unmasked_suffix=self.params.get("unmasked_suffix"),
        )

    def perform_operation(self, input_data: SpriteSheet | Image.Image, mode: OperationMode) -> ProcessorPayload:
        """Run the masking logic on a decoded sprite sheet.

        Args:
            input_data: The sheet to transform.
            mode: Execution mode (unused by masking).

        Returns:
            A payload wrapping the new ``SpriteSheet``.
        """
        sheet: SpriteSheet = self._require_input(input_data)
        result = apply_masking(
            sheet,
            target_states=list(self.params["target_states"]),
            mask_suffix=self.params["mask_suffix"],
            unmasked_suffix=self.params["unmasked_suffix"],
            event_bus=self.event_bus,
        )
        return ProcessorPayload.from_sprite_sheet(result)
