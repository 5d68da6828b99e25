"""Errors raised by sprite masking, with their batched mismatch records."""

from __future__ import annotations

from dataclasses import dataclass

from sheet_toolbox.core.datatypes import text_delays
from sheet_toolbox.core.exceptions import ProcessorError


@dataclass(frozen=True)
class InconsistentDirections:
    """A base/mask pair whose direction counts disagree."""

    target_name: str
    mask_name: str


@dataclass(frozen=True)
class InconsistentDelays:
    """A base/mask pair whose frame delays disagree."""

    target_name: str
    target_delays: list[float] | None
    mask_name: str
    mask_delays: list[float] | None


class MaskingError(ProcessorError):
    """Base class for sprite masking failures."""

    title = "Masking Failed"


class MissingStatesError(MaskingError):
    """One or more base or mask states could not be found."""

    title = "Missing Icon States"
    help = "Did you remember to save?"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(missing)
        self.missing = list(missing)

    def reasons(self) -> list[str]:
        """Return one sentence listing every missing state."""
        return [f"The following icon states were expected but not found: [{', '.join(self.missing)}]"]


class DirectionalMismatchError(MaskingError):
    """One or more pairs disagree on their number of directions."""

    title = "Directional Mismatch"
    help = "Check if the two icon states have the same amount of directionals. Failing this, did you save?"

    def __init__(self, mismatches: list[InconsistentDirections]) -> None:
        super().__init__(mismatches)
        self.mismatches = list(mismatches)

    def reasons(self) -> list[str]:
        """Return one sentence per mismatched pair."""
        return [
            f"Icon state {item.target_name}'s direction does not match {item.mask_name}"
            for item in self.mismatches
        ]


class DelayMismatchError(MaskingError):
    """One or more pairs disagree on their frame delays."""

    title = "Delay Mismatch"
    help = "Make sure all the delays line up correctly, careful this can be a bit annoying"

    def __init__(self, mismatches: list[InconsistentDelays]) -> None:
        super().__init__(mismatches)
        self.mismatches = list(mismatches)

    def reasons(self) -> list[str]:
        """Return one sentence per mismatched pair, showing both sequences."""
        return [
            f"Icon state {item.target_name}'s delays {text_delays(item.target_delays, 'ds')} "
            f"do not match {item.mask_name}'s {text_delays(item.mask_delays, 'ds')}"
            for item in self.mismatches
        ]
