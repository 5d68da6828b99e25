"""Load and save sprite sheets stored as PNG grids with a state description."""

from __future__ import annotations

import logging
import math
from pathlib import Path

from PIL import Image, PngImagePlugin

from sheet_toolbox.core.datatypes import SpriteSheet, SpriteState
from sheet_toolbox.core.exceptions import InputError, OutputError
from sheet_toolbox.formats._metadata import (
    SheetDescription,
    StateDescription,
    parse_description,
    serialise_description,
)

logger = logging.getLogger(__name__)

DESCRIPTION_KEY = "Description"


def decode_sprite_sheet(image: Image.Image, description: str) -> SpriteSheet:
    """Slice a sheet image into states according to *description*.

    Frames are read left-to-right, top-to-bottom; each state consumes
    ``dirs * frames`` consecutive cells.

    Args:
        image: The full sheet image.
        description: The state description block.

    Returns:
        The decoded ``SpriteSheet``.

    Raises:
        InputError: If the description is malformed or the image is too
                    small for the states it declares.
    """
    meta = parse_description(description)
    width, height = meta.width, meta.height
    if width < 1 or height < 1:
        msg = f"Icon size must be positive, got {width}x{height}"
        raise InputError(msg)

    columns = image.width // width
    rows = image.height // height
    needed = sum(state.image_count for state in meta.states)
    if needed and columns * rows < needed:
        msg = (
            f"Sheet is {image.width}x{image.height} but its {len(meta.states)} states "
            f"need {needed} frames of {width}x{height}"
        )
        raise InputError(msg)

    rgba = image.convert("RGBA")
    states: list[SpriteState] = []
    cell = 0
    for state_meta in meta.states:
        frames: list[Image.Image] = []
        for _ in range(state_meta.image_count):
            x, y = (cell % columns) * width, (cell // columns) * height
            frames.append(rgba.crop((x, y, x + width, y + height)))
            cell += 1
        states.append(
            SpriteState(
                name=state_meta.name,
                dirs=state_meta.dirs,
                images=frames,
                delays=state_meta.delays,
                frames=state_meta.frames,
                loop=state_meta.loop,
                rewind=state_meta.rewind,
                movement=state_meta.movement,
                hotspots=list(state_meta.hotspots),
            )
        )

    return SpriteSheet(width=width, height=height, states=states)


def encode_sprite_sheet(sheet: SpriteSheet) -> tuple[Image.Image, str]:
    """Pack a ``SpriteSheet`` into a sheet image and its description block.

    The grid is ``ceil(sqrt(n))`` frames wide for ``n`` total frames.

    Args:
        sheet: The sheet to pack.

    Returns:
        ``(image, description)``.

    Raises:
        OutputError: If a state's frame count does not match its
                     directions and frames.
    """
    description = SheetDescription(width=sheet.width, height=sheet.height)
    cells: list[Image.Image] = []
    for state in sheet.states:
        frames = state.frames or 0
        if len(state.images) != state.dirs * frames:
            msg = (
                f"State '{state.name}' has {len(state.images)} images, "
                f"expected {state.dirs} dirs x {frames} frames"
            )
            raise OutputError(msg)
        description.states.append(
            StateDescription(
                name=state.name,
                dirs=state.dirs,
                frames=frames,
                delays=state.delays,
                loop=state.loop,
                rewind=state.rewind,
                movement=state.movement,
                hotspots=list(state.hotspots),
            )
        )
        cells.extend(state.images)

    total = len(cells)
    columns = max(1, math.ceil(math.sqrt(total)))
    rows = max(1, math.ceil(total / columns))
    image = Image.new("RGBA", (columns * sheet.width, rows * sheet.height), (0, 0, 0, 0))
    for index, frame in enumerate(cells):
        x, y = (index % columns) * sheet.width, (index // columns) * sheet.height
        image.paste(frame.convert("RGBA"), (x, y))

    return image, serialise_description(description)


def load_sprite_sheet(path: Path) -> SpriteSheet:
    """Read a sprite sheet from disk.

    Args:
        path: Path to the sheet (PNG with a ``Description`` text chunk).

    Returns:
        The decoded ``SpriteSheet``.

    Raises:
        InputError: If the file is not an image or has no description.
    """
    try:
        with Image.open(path) as img:
            img.load()
            description = img.info.get(DESCRIPTION_KEY)
            image = img.copy()
    except OSError as exc:
        msg = f"Sprite sheet '{path}' could not be opened"
        raise InputError(msg) from exc

    if not isinstance(description, str):
        msg = f"Sprite sheet '{path.name}' has no '{DESCRIPTION_KEY}' metadata"
        raise InputError(msg)

    sheet = decode_sprite_sheet(image, description)
    logger.info("Loaded %s: %d states of %dx%d", path.name, len(sheet.states), sheet.width, sheet.height)
    return sheet


def save_sprite_sheet(sheet: SpriteSheet, path: Path) -> Path:
    """Write *sheet* to *path*, creating parent directories as needed.

    Args:
        sheet: The sheet to write.
        path: Destination file.

    Returns:
        The path written.

    Raises:
        OutputError: If the sheet cannot be encoded or the file written.
    """
    image, description = encode_sprite_sheet(sheet)
    info = PngImagePlugin.PngInfo()
    info.add_text(DESCRIPTION_KEY, description, zip=True)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path, format="PNG", pnginfo=info)
    except OSError as exc:
        msg = f"Failed to save sprite sheet to '{path}'"
        raise OutputError(msg) from exc

    logger.info("Saved %s: %d states", path.name, len(sheet.states))
    return path
