"""Top-level errors raised by the CLI runner.

Each wraps a lower-level failure and keeps its own summary while handing
``reasons()`` and ``helptext()`` through to the wrapped error, so no detail
is lost on the way to the user.
"""

from __future__ import annotations

import errno
from pathlib import Path

from sheet_toolbox.core.exceptions import InputError, OutputError, ProcessorError, ToolboxError, ValidationError


class WrappedError(ToolboxError):
    """A ``ToolboxError`` that delegates its details to a cause."""

    def __init__(self, cause: ToolboxError) -> None:
        super().__init__(cause)
        self.cause = cause

    def reasons(self) -> list[str]:
        """Return the wrapped error's reasons."""
        return self.cause.reasons()

    def helptext(self) -> str | None:
        """Return the wrapped error's help text."""
        return self.cause.helptext()


class InputParsingFailedError(WrappedError):
    """A sprite sheet could not be decoded."""

    title = "Image Parsing Failed"

    def __init__(self, cause: InputError) -> None:
        super().__init__(cause)


class ProcessingFailedError(WrappedError):
    """An operation rejected its input or failed while transforming it."""

    title = "Processing Failed"

    def __init__(self, cause: ProcessorError) -> None:
        super().__init__(cause)


class OutputWriteFailedError(WrappedError):
    """The transformed sprite sheet could not be written."""

    title = "Output Failed"

    def __init__(self, cause: OutputError) -> None:
        super().__init__(cause)


class InvalidConfigError(WrappedError):
    """An operation config (from file or options) failed validation."""

    title = "Invalid Config File"

    def __init__(self, source_config: str, cause: ValidationError) -> None:
        super().__init__(cause)
        self.source_config = source_config

    def reasons(self) -> list[str]:
        """Name the offending config, then every validation problem."""
        return [f'Error within config "{self.source_config}"', *self.cause.reasons()]


class InputNotFoundError(ToolboxError):
    """The sprite sheet named by a config does not exist."""

    title = "Input not found"

    def __init__(self, source_config: str, expected: str, search_dir: Path) -> None:
        super().__init__(source_config, expected, search_dir)
        self.source_config = source_config
        self.expected = expected
        self.search_dir = search_dir

    def reasons(self) -> list[str]:
        """Describe where the input was looked for."""
        return [
            f"Failed to find the input for a config ({self.source_config})",
            f"Searched in `{self.search_dir}`",
            f'Expected to find an input file named "{self.expected}"',
        ]

    def helptext(self) -> str | None:
        """Suggest checking the file name."""
        return f'Double check that the file "{self.expected}" exists, and if it does, that it\'s named correctly'


class IOFailureError(ToolboxError):
    """A raw filesystem operation failed."""

    title = "Generic IO Error"
    help = "Make sure the directories or files aren't in use, and you have permission to access them"

    def __init__(self, cause: OSError) -> None:
        super().__init__(cause)
        self.cause = cause

    def reasons(self) -> list[str]:
        """Name the kind of OS failure."""
        kind = errno.errorcode.get(self.cause.errno, "unknown") if self.cause.errno else type(self.cause).__name__
        return [f'Operation failed for reason of "{kind}"']
