"""Pure sprite masking logic — split base states by the alpha of their mask states."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

import numpy as np
from PIL import Image

from sheet_toolbox.core.datatypes import MASK_TOKEN, SpriteSheet, SpriteState
from sheet_toolbox.core.events import COMPLETED, PROGRESS, EventBus
from sheet_toolbox.core.exceptions import ValidationError
from sheet_toolbox.operations.sprite_masking.errors import (
    DelayMismatchError,
    DirectionalMismatchError,
    InconsistentDelays,
    InconsistentDirections,
    MissingStatesError,
)

logger = logging.getLogger(__name__)

DEFAULT_MASK_SUFFIX = "masked"
DEFAULT_UNMASKED_SUFFIX = "unmasked"


@dataclass(frozen=True)
class StatePair:
    """A target resolved to its base and mask states (indices into the sheet)."""

    target: str
    base_index: int
    mask_index: int

    @property
    def anchor(self) -> int:
        """Index after which newly derived states are inserted."""
        return max(self.base_index, self.mask_index)


# ── Validation ────────────────────────────────────────────────────────────


def masking_config_problems(
    *,
    target_states: object,
    mask_suffix: object,
    unmasked_suffix: object,
) -> list[str]:
    """Check a masking configuration without looking at any sprite.

    Args:
        target_states: Base state names to split.
        mask_suffix: Suffix for the states with the masked region removed.
        unmasked_suffix: Suffix for the states keeping only the masked region.

    Returns:
        Every problem found, one sentence each (empty when valid).
    """
    problems: list[str] = []

    if not isinstance(target_states, list) or not target_states:
        problems.append("'target_states' must list at least one state name")
    else:
        for position, name in enumerate(target_states):
            if not isinstance(name, str) or not name:
                problems.append(f"'target_states' entry {position} must be a non-empty state name, got {name!r}")

    suffixes = {"mask_suffix": mask_suffix, "unmasked_suffix": unmasked_suffix}
    for key, suffix in suffixes.items():
        if not isinstance(suffix, str) or not suffix:
            problems.append(f"'{key}' must be a non-empty string, got {suffix!r}")
        elif suffix == MASK_TOKEN:
            problems.append(f"'{key}' cannot be '{MASK_TOKEN}', derived states would overwrite the mask states")

    if isinstance(mask_suffix, str) and mask_suffix and mask_suffix == unmasked_suffix:
        problems.append(f"'mask_suffix' and 'unmasked_suffix' must differ, both are '{mask_suffix}'")

    return problems


def pair_states(sheet: SpriteSheet, target_states: list[str]) -> list[StatePair]:
    """Resolve every target to its base state and ``<target>_mask`` state.

    All targets are looked up before failing, so the error names every
    missing state at once.

    Args:
        sheet: The sprite sheet to search.
        target_states: Base state names, in processing order.

    Returns:
        One ``StatePair`` per target (duplicates included).

    Raises:
        MissingStatesError: If any base or mask state is absent.
    """
    pairs: list[StatePair] = []
    missing: list[str] = []

    for target in target_states:
        mask_name = f"{target}_{MASK_TOKEN}"
        base_index = sheet.find_state(target)
        mask_index = sheet.find_state(mask_name)
        if base_index is None:
            missing.append(target)
        if mask_index is None:
            missing.append(mask_name)
        if base_index is not None and mask_index is not None:
            pairs.append(StatePair(target=target, base_index=base_index, mask_index=mask_index))

    if missing:
        raise MissingStatesError(missing)
    return pairs


def check_pair_shapes(sheet: SpriteSheet, pairs: list[StatePair]) -> None:
    """Ensure every pair agrees on direction count, then on frame delays.

    Direction mismatches are reported (all of them) before delays are
    compared.

    Args:
        sheet: The sprite sheet the pairs index into.
        pairs: Resolved base/mask pairs.

    Raises:
        DirectionalMismatchError: If any pair disagrees on ``dirs``.
        DelayMismatchError: If any pair disagrees on ``delays``.
    """
    bad_dirs: list[InconsistentDirections] = []
    bad_delays: list[InconsistentDelays] = []

    for pair in pairs:
        base = sheet.states[pair.base_index]
        mask = sheet.states[pair.mask_index]
        if base.dirs != mask.dirs:
            bad_dirs.append(InconsistentDirections(target_name=base.name, mask_name=mask.name))
        if base.delays != mask.delays:
            bad_delays.append(
                InconsistentDelays(
                    target_name=base.name,
                    target_delays=base.delays,
                    mask_name=mask.name,
                    mask_delays=mask.delays,
                )
            )

    if bad_dirs:
        raise DirectionalMismatchError(bad_dirs)
    if bad_delays:
        raise DelayMismatchError(bad_delays)


# ── Pixel algebra ─────────────────────────────────────────────────────────


def _canvas_array(image: Image.Image, width: int, height: int) -> np.ndarray:
    """Return *image* as an RGBA array placed on a transparent canvas."""
    rgba = image.convert("RGBA")
    if rgba.size != (width, height):
        canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        canvas.paste(rgba, (0, 0))
        rgba = canvas
    return np.array(rgba, dtype=np.uint8)


def mask_frame(
    base: Image.Image,
    mask: Image.Image,
    width: int,
    height: int,
) -> tuple[Image.Image, Image.Image]:
    """Split one base frame by the alpha channel of one mask frame.

    Args:
        base: Frame supplying the output colours.
        mask: Frame whose alpha marks the covered region.
        width: Canvas width.
        height: Canvas height.

    Returns:
        ``(masked, unmasked)``.  *masked* clears every pixel where the mask
        alpha is non-zero; *unmasked* clears every pixel where it is zero.
    """
    pixels = _canvas_array(base, width, height)
    covered = _canvas_array(mask, width, height)[:, :, 3] != 0

    masked = pixels.copy()
    masked[covered] = 0
    unmasked = pixels.copy()
    unmasked[~covered] = 0

    return Image.fromarray(masked), Image.fromarray(unmasked)


def derive_states(
    sheet: SpriteSheet,
    pair: StatePair,
    *,
    mask_suffix: str,
    unmasked_suffix: str,
) -> tuple[SpriteState, SpriteState]:
    """Build the masked and unmasked states for one validated pair.

    Args:
        sheet: The source sheet.
        pair: A pair that passed ``check_pair_shapes``.
        mask_suffix: Suffix of the masked state.
        unmasked_suffix: Suffix of the unmasked state.

    Returns:
        ``(masked_state, unmasked_state)``; both copy the base state's
        metadata.
    """
    base = sheet.states[pair.base_index]
    mask = sheet.states[pair.mask_index]

    masked_frames: list[Image.Image] = []
    unmasked_frames: list[Image.Image] = []
    for base_image, mask_image in zip(base.images, mask.images):
        masked, unmasked = mask_frame(base_image, mask_image, sheet.width, sheet.height)
        masked_frames.append(masked)
        unmasked_frames.append(unmasked)

    return (
        base.renamed(f"{base.name}_{mask_suffix}", masked_frames),
        base.renamed(f"{base.name}_{unmasked_suffix}", unmasked_frames),
    )


# ── Merge ─────────────────────────────────────────────────────────────────


def merge_states(states: list[SpriteState], derived: list[tuple[int, SpriteState]]) -> list[SpriteState]:
    """Merge derived states into *states* using a fixed snapshot.

    A derived state whose name already exists replaces that state in
    place.  Any other is inserted after its anchor index, in the order
    given.  All positions refer to the original *states*, so the result
    does not depend on the order pairs were processed in.  A name derived
    twice keeps its first position and its last content.

    Args:
        states: The original state list (left untouched).
        derived: ``(anchor_index, state)`` entries in processing order.

    Returns:
        A new state list.
    """
    existing: dict[str, int] = {}
    for index, state in enumerate(states):
        existing.setdefault(state.name, index)

    replacements: dict[int, SpriteState] = {}
    inserted: dict[str, SpriteState] = {}
    insert_order: dict[int, list[str]] = defaultdict(list)

    for anchor, state in derived:
        if state.name in existing:
            replacements[existing[state.name]] = state
        else:
            if state.name not in inserted:
                insert_order[anchor].append(state.name)
            inserted[state.name] = state

    merged: list[SpriteState] = []
    for index, state in enumerate(states):
        merged.append(replacements.get(index, state))
        merged.extend(inserted[name] for name in insert_order.get(index, []))
    return merged


# ── Core logic ────────────────────────────────────────────────────────────


def apply_masking(
    sheet: SpriteSheet,
    *,
    target_states: list[str],
    mask_suffix: str = DEFAULT_MASK_SUFFIX,
    unmasked_suffix: str = DEFAULT_UNMASKED_SUFFIX,
    event_bus: EventBus | None = None,
) -> SpriteSheet:
    """Split each target state into masked and unmasked variants.

    For every target ``X`` the states ``X`` and ``X_mask`` are paired.
    Missing states, then direction mismatches, then delay mismatches are
    each reported in full before anything is computed.

    Args:
        sheet: Decoded sprite sheet (not modified).
        target_states: Base state names to split; duplicates are allowed.
        mask_suffix: Suffix of the states with the masked region cleared.
        unmasked_suffix: Suffix of the states keeping only that region.
        event_bus: Optional event bus for progress events.

    Returns:
        A new ``SpriteSheet`` holding the merged state list.

    Raises:
        ValidationError: If the configuration itself is invalid.
        MissingStatesError: If any base or mask state is absent.
        DirectionalMismatchError: If any pair disagrees on directions.
        DelayMismatchError: If any pair disagrees on delays.
    """
    problems = masking_config_problems(
        target_states=target_states,
        mask_suffix=mask_suffix,
        unmasked_suffix=unmasked_suffix,
    )
    if problems:
        raise ValidationError(*problems)

    pairs = pair_states(sheet, target_states)
    check_pair_shapes(sheet, pairs)

    derived: list[tuple[int, SpriteState]] = []
    total = len(pairs)
    for idx, pair in enumerate(pairs):
        masked, unmasked = derive_states(sheet, pair, mask_suffix=mask_suffix, unmasked_suffix=unmasked_suffix)
        derived.append((pair.anchor, masked))
        derived.append((pair.anchor, unmasked))
        logger.debug("Masked '%s' with '%s_%s'", pair.target, pair.target, MASK_TOKEN)

        if event_bus is not None:
            event_bus.emit(
                PROGRESS,
                tool="sprite_masking",
                current=idx + 1,
                total=total,
                message=f"Masked {pair.target} -> {masked.name}, {unmasked.name}",
            )

    result = sheet.with_states(merge_states(sheet.states, derived))

    if event_bus is not None:
        event_bus.emit(
            COMPLETED,
            tool="sprite_masking",
            message=f"Done, {total} states masked",
            produced=list(dict.fromkeys(state.name for _, state in derived)),
        )

    return result
