"""Shared value objects: the sprite sheet model and operation payloads."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace

from PIL import Image

# Suffix joining a base state name to the state holding its mask.
MASK_TOKEN = "mask"


class OperationMode(enum.Enum):
    """Execution mode passed to every operation (reserved for future toggles)."""

    STANDARD = "standard"
    DEBUG = "debug"


@dataclass
class SpriteState:
    """One named animation unit within a sprite sheet.

    Attributes:
        name: State name, used as the lookup key (not required to be unique).
        dirs: Number of facing variants.
        images: ``dirs * frames`` RGBA frames, in sheet order.
        delays: Per-frame durations in deciseconds, shared by all
            directions, or ``None`` when the state declares no delays.
        frames: Number of animation frames per direction.
        loop: Loop count (0 = forever).
        rewind: Whether the animation plays back in reverse after finishing.
        movement: Whether this is a movement state.
        hotspots: Raw hotspot triples carried through unchanged.
    """

    name: str
    dirs: int = 1
    images: list[Image.Image] = field(default_factory=list)
    delays: list[float] | None = None
    frames: int | None = None
    loop: int = 0
    rewind: bool = False
    movement: bool = False
    hotspots: list[tuple[int, int, int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.frames is None:
            self.frames = len(self.images) // self.dirs if self.dirs else 0

    def renamed(self, name: str, images: list[Image.Image]) -> SpriteState:
        """Return a copy carrying a new name and frame images.

        Args:
            name: Name of the new state.
            images: Replacement frames (same count as ``self.images``).

        Returns:
            A new ``SpriteState`` sharing all other metadata.
        """
        delays = list(self.delays) if self.delays is not None else None
        return replace(self, name=name, images=images, delays=delays, hotspots=list(self.hotspots))


@dataclass
class SpriteSheet:
    """A decoded sprite sheet: canvas size plus an ordered list of states."""

    width: int
    height: int
    states: list[SpriteState] = field(default_factory=list)

    def find_state(self, name: str) -> int | None:
        """Return the index of the first state called *name*, or ``None``."""
        for index, state in enumerate(self.states):
            if state.name == name:
                return index
        return None

    def state_names(self) -> list[str]:
        """Return state names in sheet order."""
        return [state.name for state in self.states]

    def with_states(self, states: list[SpriteState]) -> SpriteSheet:
        """Return a new sheet with the same canvas and a new state list."""
        return SpriteSheet(width=self.width, height=self.height, states=list(states))


@dataclass(frozen=True)
class ProcessorPayload:
    """Result of an operation: either a sprite sheet or a single image."""

    sprite_sheet: SpriteSheet | None = None
    image: Image.Image | None = None

    @classmethod
    def from_sprite_sheet(cls, sheet: SpriteSheet) -> ProcessorPayload:
        """Wrap a transformed sprite sheet."""
        return cls(sprite_sheet=sheet)

    @classmethod
    def from_image(cls, image: Image.Image) -> ProcessorPayload:
        """Wrap a single output image."""
        return cls(image=image)


def text_delays(delays: list[float] | None, unit: str) -> str:
    """Render a delay sequence for humans, e.g. ``[1ds, 2.5ds]``.

    Args:
        delays: Delay values, or ``None``.
        unit: Unit suffix appended to every value.

    Returns:
        The bracketed, comma-separated rendering.
    """
    parts = []
    for delay in delays or []:
        value = int(delay) if float(delay).is_integer() else delay
        parts.append(f"{value}{unit}")
    return f"[{', '.join(parts)}]"
