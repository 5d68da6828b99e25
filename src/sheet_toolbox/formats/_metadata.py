"""Parse and serialise the text block describing a sprite sheet's states.

The block is stored in the PNG's ``Description`` zTXt chunk::

    # BEGIN DMI
    version = 4.0
    \twidth = 32
    \theight = 32
    state = "walk"
    \tdirs = 4
    \tframes = 2
    \tdelay = 1,2
    # END DMI

Unindented ``key = value`` lines open a section (the header or a state);
tab-indented lines belong to the most recent section.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sheet_toolbox.core.exceptions import InputError

DMI_VERSION = "4.0"
DEFAULT_ICON_SIZE = 32


@dataclass
class StateDescription:
    """Metadata of one state, before its frames are sliced out."""

    name: str
    dirs: int = 1
    frames: int = 1
    delays: list[float] | None = None
    loop: int = 0
    rewind: bool = False
    movement: bool = False
    hotspots: list[tuple[int, int, int]] = field(default_factory=list)

    @property
    def image_count(self) -> int:
        """Number of frame images this state occupies in the sheet."""
        return self.dirs * self.frames


@dataclass
class SheetDescription:
    """Parsed description block: canvas size plus state metadata."""

    width: int = DEFAULT_ICON_SIZE
    height: int = DEFAULT_ICON_SIZE
    states: list[StateDescription] = field(default_factory=list)


def _unquote(raw: str, line_no: int) -> str:
    if len(raw) < 2 or not (raw.startswith('"') and raw.endswith('"')):
        msg = f"Line {line_no}: state name must be quoted, got {raw}"
        raise InputError(msg)
    return raw[1:-1].replace('\\"', '"').replace("\\\\", "\\")


def _quote(name: str) -> str:
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _int(value: str, key: str, line_no: int) -> int:
    try:
        return int(value)
    except ValueError as exc:
        msg = f"Line {line_no}: '{key}' must be an integer, got '{value}'"
        raise InputError(msg) from exc


def _floats(value: str, key: str, line_no: int) -> list[float]:
    try:
        return [float(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        msg = f"Line {line_no}: '{key}' must be a comma-separated list of numbers, got '{value}'"
        raise InputError(msg) from exc


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def parse_description(text: str) -> SheetDescription:
    """Parse a description block.

    Unknown keys are ignored.

    Args:
        text: The ``Description`` chunk contents.

    Returns:
        The parsed ``SheetDescription``.

    Raises:
        InputError: If the block is malformed.
    """
    sheet = SheetDescription()
    current: StateDescription | None = None
    seen_version = False

    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        if not raw_line.strip() or raw_line.lstrip().startswith("#"):
            continue
        indented = raw_line[0] in " \t"
        key, sep, value = raw_line.strip().partition("=")
        if not sep:
            msg = f"Line {line_no}: expected 'key = value', got '{raw_line.strip()}'"
            raise InputError(msg)
        key, value = key.strip(), value.strip()

        if not indented:
            if key == "version":
                seen_version = True
                current = None
            elif key == "state":
                current = StateDescription(name=_unquote(value, line_no))
                sheet.states.append(current)
            else:
                msg = f"Line {line_no}: unexpected section '{key}'"
                raise InputError(msg)
            continue

        if current is None:
            if key == "width":
                sheet.width = _int(value, key, line_no)
            elif key == "height":
                sheet.height = _int(value, key, line_no)
            continue

        if key == "dirs":
            current.dirs = _int(value, key, line_no)
        elif key == "frames":
            current.frames = _int(value, key, line_no)
        elif key == "delay":
            current.delays = _floats(value, key, line_no)
        elif key == "loop":
            current.loop = _int(value, key, line_no)
        elif key == "rewind":
            current.rewind = _int(value, key, line_no) != 0
        elif key == "movement":
            current.movement = _int(value, key, line_no) != 0
        elif key == "hotspot":
            coords = [int(v) for v in _floats(value, key, line_no)]
            if len(coords) != 3:
                msg = f"Line {line_no}: 'hotspot' needs x,y,frame, got '{value}'"
                raise InputError(msg)
            current.hotspots.append((coords[0], coords[1], coords[2]))

    if not seen_version:
        msg = "Description block has no 'version' header"
        raise InputError(msg)
    for state in sheet.states:
        if state.dirs < 1 or state.frames < 1:
            msg = f"State '{state.name}' must have at least one direction and one frame"
            raise InputError(msg)
    return sheet


def serialise_description(sheet: SheetDescription) -> str:
    """Render a ``SheetDescription`` as a description block."""
    lines = [
        "# BEGIN DMI",
        f"version = {DMI_VERSION}",
        f"\twidth = {sheet.width}",
        f"\theight = {sheet.height}",
    ]
    for state in sheet.states:
        lines.append(f"state = {_quote(state.name)}")
        lines.append(f"\tdirs = {state.dirs}")
        lines.append(f"\tframes = {state.frames}")
        if state.delays is not None:
            lines.append(f"\tdelay = {','.join(_number(d) for d in state.delays)}")
        if state.loop:
            lines.append(f"\tloop = {state.loop}")
        if state.rewind:
            lines.append("\trewind = 1")
        if state.movement:
            lines.append("\tmovement = 1")
        for x, y, frame in state.hotspots:
            lines.append(f"\thotspot = {x},{y},{frame}")
    lines.append("# END DMI")
    return "\n".join(lines) + "\n"
