"""Tests for sprite masking logic."""

from __future__ import annotations

from typing import Any

import numpy as np
import pytest
from PIL import Image

from sheet_toolbox.core.datatypes import SpriteSheet, SpriteState
from sheet_toolbox.core.events import EventBus
from sheet_toolbox.core.exceptions import ValidationError
from sheet_toolbox.operations.sprite_masking.errors import (
    DelayMismatchError,
    DirectionalMismatchError,
    MissingStatesError,
)
from sheet_toolbox.operations.sprite_masking.logic import (
    StatePair,
    apply_masking,
    check_pair_shapes,
    mask_frame,
    masking_config_problems,
    merge_states,
    pair_states,
)

SIZE = 4
RED = (255, 0, 0, 255)
TRANSPARENT = (0, 0, 0, 0)


def _solid(color: tuple[int, int, int, int] = RED, size: int = SIZE) -> Image.Image:
    return Image.new("RGBA", (size, size), color)


def _left_half_mask(size: int = SIZE) -> Image.Image:
    """Mask that is opaque over the left half of the canvas."""
    img = Image.new("RGBA", (size, size), TRANSPARENT)
    for x in range(size // 2):
        for y in range(size):
            img.putpixel((x, y), (0, 0, 0, 255))
    return img


def _state(
    name: str,
    *,
    dirs: int = 1,
    frames: int = 1,
    delays: list[float] | None = None,
    image: Image.Image | None = None,
) -> SpriteState:
    base = image if image is not None else _solid()
    images = [base.copy() for _ in range(dirs * frames)]
    return SpriteState(name=name, dirs=dirs, images=images, delays=delays, frames=frames)


def _sheet(*states: SpriteState) -> SpriteSheet:
    return SpriteSheet(width=SIZE, height=SIZE, states=list(states))


def _names(sheet: SpriteSheet) -> list[str]:
    return sheet.state_names()


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def simple_sheet() -> SpriteSheet:
    """Sheet with a red base state ``a`` and a left-half mask ``a_mask``."""
    return _sheet(_state("a"), _state("a_mask", image=_left_half_mask()))


# ── TestMaskFrame ─────────────────────────────────────────────────────────


class TestMaskFrame:
    """Tests for the per-frame pixel algebra."""

    def test_outputs_are_exact_complements(self) -> None:
        """Every pixel is kept in exactly one output and cleared in the other."""
        rng = np.random.default_rng(7)
        base_px = rng.integers(1, 256, size=(8, 8, 4), dtype=np.uint8)
        mask_px = np.zeros((8, 8, 4), dtype=np.uint8)
        mask_px[:, :, 3] = rng.choice([0, 1, 128, 255], size=(8, 8))

        masked, unmasked = mask_frame(Image.fromarray(base_px), Image.fromarray(mask_px), 8, 8)
        masked_px = np.array(masked)
        unmasked_px = np.array(unmasked)
        covered = mask_px[:, :, 3] != 0

        assert np.array_equal(masked_px[covered], np.zeros_like(masked_px[covered]))
        assert np.array_equal(masked_px[~covered], base_px[~covered])
        assert np.array_equal(unmasked_px[~covered], np.zeros_like(unmasked_px[~covered]))
        assert np.array_equal(unmasked_px[covered], base_px[covered])

    def test_uses_only_mask_alpha(self) -> None:
        """Mask colour is irrelevant: an opaque-black or opaque-white mask clears the same pixels."""
        base = _solid()
        white, _ = mask_frame(base, _solid((255, 255, 255, 255)), SIZE, SIZE)
        black, _ = mask_frame(base, _solid((0, 0, 0, 1)), SIZE, SIZE)

        assert np.array_equal(np.array(white), np.array(black))
        assert not np.array(white).any()

    def test_smaller_mask_treated_as_uncovered_outside(self) -> None:
        """Pixels outside a smaller mask image count as alpha 0."""
        masked, unmasked = mask_frame(_solid(), _solid(size=2), SIZE, SIZE)

        assert masked.getpixel((0, 0)) == TRANSPARENT
        assert masked.getpixel((3, 3)) == RED
        assert unmasked.getpixel((0, 0)) == RED
        assert unmasked.getpixel((3, 3)) == TRANSPARENT

    def test_outputs_have_canvas_size_and_rgba(self) -> None:
        """Outputs always match the canvas size, even for smaller base frames."""
        masked, unmasked = mask_frame(_solid(size=2), _solid(TRANSPARENT), SIZE, SIZE)

        assert masked.size == (SIZE, SIZE)
        assert masked.mode == "RGBA"
        assert unmasked.size == (SIZE, SIZE)


# ── TestPairStates ────────────────────────────────────────────────────────


class TestPairStates:
    """Tests for base/mask pairing."""

    def test_pairs_by_name(self, simple_sheet: SpriteSheet) -> None:
        """A target pairs with its ``_mask`` state."""
        pairs = pair_states(simple_sheet, ["a"])

        assert pairs == [StatePair(target="a", base_index=0, mask_index=1)]
        assert pairs[0].anchor == 1

    def test_missing_states_are_batched(self) -> None:
        """All missing names across every target are reported in one error."""
        sheet = _sheet(_state("b"), _state("b_mask"))

        with pytest.raises(MissingStatesError) as exc_info:
            pair_states(sheet, ["a", "b", "c"])

        assert exc_info.value.missing == ["a", "a_mask", "c", "c_mask"]
        assert len(exc_info.value.reasons()) == 1
        assert "[a, a_mask, c, c_mask]" in exc_info.value.reasons()[0]

    def test_only_mask_missing(self) -> None:
        """A present base with an absent mask reports just the mask."""
        with pytest.raises(MissingStatesError) as exc_info:
            pair_states(_sheet(_state("a")), ["a"])

        assert exc_info.value.missing == ["a_mask"]

    def test_duplicate_targets_pair_twice(self, simple_sheet: SpriteSheet) -> None:
        """Duplicate targets produce one pair each."""
        assert len(pair_states(simple_sheet, ["a", "a"])) == 2

    def test_anchor_uses_greater_index(self) -> None:
        """The anchor is the later of the base and mask positions."""
        sheet = _sheet(_state("a_mask"), _state("x"), _state("a"))

        assert pair_states(sheet, ["a"])[0].anchor == 2


# ── TestCheckPairShapes ───────────────────────────────────────────────────


class TestCheckPairShapes:
    """Tests for direction and delay compatibility checks."""

    def test_direction_mismatch_names_both_states(self) -> None:
        """4 dirs vs 1 dir fails even when delays match."""
        sheet = _sheet(_state("a", dirs=4, delays=[1]), _state("a_mask", dirs=1, delays=[1]))

        with pytest.raises(DirectionalMismatchError) as exc_info:
            check_pair_shapes(sheet, pair_states(sheet, ["a"]))

        assert exc_info.value.reasons() == ["Icon state a's direction does not match a_mask"]
        assert exc_info.value.summary() == "Directional Mismatch"

    def test_delay_mismatch_renders_both_sequences(self) -> None:
        """Base delays [1,2] vs mask delays [1,3] are both shown."""
        sheet = _sheet(
            _state("a", frames=2, delays=[1, 2]),
            _state("a_mask", frames=2, delays=[1, 3]),
        )

        with pytest.raises(DelayMismatchError) as exc_info:
            check_pair_shapes(sheet, pair_states(sheet, ["a"]))

        (reason,) = exc_info.value.reasons()
        assert "[1ds, 2ds]" in reason
        assert "[1ds, 3ds]" in reason
        assert "a_mask" in reason

    def test_missing_delays_differ_from_present_delays(self) -> None:
        """``None`` delays only match ``None``."""
        sheet = _sheet(_state("a", delays=None), _state("a_mask", delays=[1]))

        with pytest.raises(DelayMismatchError, match=r"\[\] do not match"):
            check_pair_shapes(sheet, pair_states(sheet, ["a"]))

    def test_directions_checked_before_delays(self) -> None:
        """A pair wrong on both counts reports the direction mismatch."""
        sheet = _sheet(_state("a", dirs=4, delays=[1]), _state("a_mask", dirs=1, delays=[2]))

        with pytest.raises(DirectionalMismatchError):
            check_pair_shapes(sheet, pair_states(sheet, ["a"]))

    def test_all_mismatched_pairs_reported(self) -> None:
        """Every mismatched pair gets its own reason."""
        sheet = _sheet(
            _state("a", dirs=4),
            _state("a_mask", dirs=1),
            _state("b", dirs=8),
            _state("b_mask", dirs=4),
        )

        with pytest.raises(DirectionalMismatchError) as exc_info:
            check_pair_shapes(sheet, pair_states(sheet, ["a", "b"]))

        assert len(exc_info.value.reasons()) == 2

    def test_all_delay_mismatches_reported(self) -> None:
        """Delay mismatches across pairs share one error, one reason per pair."""
        sheet = _sheet(
            _state("a", delays=[1]),
            _state("a_mask", delays=[2]),
            _state("b", delays=[1]),
            _state("b_mask", delays=None),
        )

        with pytest.raises(DelayMismatchError) as exc_info:
            check_pair_shapes(sheet, pair_states(sheet, ["a", "b"]))

        assert exc_info.value.reasons() == [
            "Icon state a's delays [1ds] do not match a_mask's [2ds]",
            "Icon state b's delays [1ds] do not match b_mask's []",
        ]

    def test_matching_pairs_pass(self, simple_sheet: SpriteSheet) -> None:
        """Matching shapes do not raise."""
        check_pair_shapes(simple_sheet, pair_states(simple_sheet, ["a"]))


# ── TestMergeStates ───────────────────────────────────────────────────────


class TestMergeStates:
    """Tests for the insert/replace policy."""

    def test_inserts_after_anchor(self) -> None:
        """New states go right after the anchor, in the given order."""
        states = [_state("a"), _state("a_mask"), _state("z")]
        merged = merge_states(states, [(1, _state("a_masked")), (1, _state("a_unmasked"))])

        assert [s.name for s in merged] == ["a", "a_mask", "a_masked", "a_unmasked", "z"]

    def test_replaces_existing_in_place(self) -> None:
        """A derived state with an existing name takes that state's slot."""
        old = _state("a_masked", image=_solid((0, 255, 0, 255)))
        new = _state("a_masked")
        merged = merge_states([old, _state("a"), _state("a_mask")], [(2, new)])

        assert [s.name for s in merged] == ["a_masked", "a", "a_mask"]
        assert merged[0] is new

    def test_partial_rerun_replaces_and_inserts(self) -> None:
        """An existing ``a_masked`` is replaced in its slot while ``a_unmasked`` goes after the anchor."""
        new_masked = _state("a_masked")
        states = [_state("a_masked"), _state("a"), _state("a_mask"), _state("z")]
        merged = merge_states(states, [(2, new_masked), (2, _state("a_unmasked"))])

        assert [s.name for s in merged] == ["a_masked", "a", "a_mask", "a_unmasked", "z"]
        assert merged[0] is new_masked

    def test_does_not_mutate_input_list(self) -> None:
        """The original list is left unchanged."""
        states = [_state("a"), _state("a_mask")]
        merge_states(states, [(1, _state("a_masked"))])

        assert [s.name for s in states] == ["a", "a_mask"]

    def test_duplicate_name_keeps_first_position(self) -> None:
        """A name derived twice is inserted once, with the latest content."""
        first = _state("a_masked")
        second = _state("a_masked")
        merged = merge_states([_state("a"), _state("a_mask")], [(1, first), (1, second)])

        assert [s.name for s in merged] == ["a", "a_mask", "a_masked"]
        assert merged[2] is second


# ── TestApplyMasking ──────────────────────────────────────────────────────


class TestApplyMasking:
    """Tests for the ``apply_masking`` entry point."""

    def test_insertion_placement_and_pixels(self, simple_sheet: SpriteSheet) -> None:
        """``[a, a_mask]`` becomes ``[a, a_mask, a_masked, a_unmasked]`` with complementary halves."""
        result = apply_masking(simple_sheet, target_states=["a"], mask_suffix="masked", unmasked_suffix="unmasked")

        assert _names(result) == ["a", "a_mask", "a_masked", "a_unmasked"]
        masked = result.states[2].images[0]
        unmasked = result.states[3].images[0]
        for y in range(SIZE):
            assert masked.getpixel((0, y)) == TRANSPARENT
            assert masked.getpixel((SIZE - 1, y)) == RED
            assert unmasked.getpixel((0, y)) == RED
            assert unmasked.getpixel((SIZE - 1, y)) == TRANSPARENT

    def test_rerun_replaces_instead_of_duplicating(self, simple_sheet: SpriteSheet) -> None:
        """Running on its own output leaves the state list unchanged."""
        once = apply_masking(simple_sheet, target_states=["a"])
        twice = apply_masking(once, target_states=["a"])

        assert _names(twice) == _names(once)
        assert np.array_equal(np.array(twice.states[2].images[0]), np.array(once.states[2].images[0]))

    def test_input_sheet_not_modified(self, simple_sheet: SpriteSheet) -> None:
        """The caller's sheet keeps its states."""
        apply_masking(simple_sheet, target_states=["a"])

        assert _names(simple_sheet) == ["a", "a_mask"]

    def test_result_is_independent_of_target_order(self) -> None:
        """Insertion positions come from the original list, whatever the target order."""
        sheet = _sheet(_state("a"), _state("a_mask"), _state("b"), _state("b_mask"))
        expected = ["a", "a_mask", "a_masked", "a_unmasked", "b", "b_mask", "b_masked", "b_unmasked"]

        assert _names(apply_masking(sheet, target_states=["a", "b"])) == expected
        assert _names(apply_masking(sheet, target_states=["b", "a"])) == expected

    def test_duplicate_targets_do_not_duplicate_states(self, simple_sheet: SpriteSheet) -> None:
        """Listing a target twice produces one pair of derived states."""
        result = apply_masking(simple_sheet, target_states=["a", "a"])

        assert _names(result) == ["a", "a_mask", "a_masked", "a_unmasked"]

    def test_derived_states_copy_base_metadata(self) -> None:
        """Derived states keep the base's dirs, delays, and frame count."""
        sheet = _sheet(
            _state("a", dirs=4, frames=2, delays=[1, 2]),
            _state("a_mask", dirs=4, frames=2, delays=[1, 2], image=_left_half_mask()),
        )
        result = apply_masking(sheet, target_states=["a"], mask_suffix="top", unmasked_suffix="bottom")

        top = result.states[2]
        assert top.name == "a_top"
        assert top.dirs == 4
        assert top.frames == 2
        assert top.delays == [1, 2]
        assert len(top.images) == 8
        assert top.delays is not sheet.states[0].delays

    def test_emits_progress_and_completed(self, simple_sheet: SpriteSheet) -> None:
        """One progress event per pair plus a completed event."""
        bus = EventBus()
        progress: list[dict[str, Any]] = []
        completed: list[dict[str, Any]] = []
        bus.subscribe("progress", lambda **kw: progress.append(kw))
        bus.subscribe("completed", lambda **kw: completed.append(kw))

        apply_masking(simple_sheet, target_states=["a"], event_bus=bus)

        assert len(progress) == 1
        assert progress[0]["tool"] == "sprite_masking"
        assert progress[0]["total"] == 1
        assert len(completed) == 1
        assert completed[0]["produced"] == ["a_masked", "a_unmasked"]

    def test_missing_states_fail_before_shape_checks(self) -> None:
        """A missing pair is reported even if another pair is mismatched."""
        sheet = _sheet(_state("a", dirs=4), _state("a_mask", dirs=1))

        with pytest.raises(MissingStatesError):
            apply_masking(sheet, target_states=["a", "b"])

    def test_invalid_config_raises(self, simple_sheet: SpriteSheet) -> None:
        """Empty suffixes are rejected before any state lookup."""
        with pytest.raises(ValidationError, match="mask_suffix"):
            apply_masking(simple_sheet, target_states=["a"], mask_suffix="")


# ── TestConfigProblems ────────────────────────────────────────────────────


class TestConfigProblems:
    """Tests for ``masking_config_problems``."""

    def test_valid_config_has_no_problems(self) -> None:
        """Defaults with one target are valid."""
        assert masking_config_problems(target_states=["a"], mask_suffix="masked", unmasked_suffix="unmasked") == []

    def test_empty_targets(self) -> None:
        """An empty target list is a problem."""
        problems = masking_config_problems(target_states=[], mask_suffix="m", unmasked_suffix="u")
        assert problems == ["'target_states' must list at least one state name"]

    def test_all_problems_collected(self) -> None:
        """Every broken field is reported at once."""
        problems = masking_config_problems(target_states=["", 3], mask_suffix="", unmasked_suffix="mask")

        assert len(problems) == 4

    def test_equal_suffixes(self) -> None:
        """Identical suffixes would make both states collide."""
        problems = masking_config_problems(target_states=["a"], mask_suffix="x", unmasked_suffix="x")
        assert any("must differ" in p for p in problems)
