"""Exception hierarchy for the sheet-toolbox framework.

Every error renders through the same three-part diagnostic contract:

* ``summary()``  — a one-line headline,
* ``reasons()``  — an ordered list of complete sentences, one per facet or
  per batched failure item,
* ``helptext()`` — optional remediation advice (``None`` when there is none).

Composite failures keep their items as data and map them to reasons on
demand, so a single error value can describe many independent problems.
"""

from __future__ import annotations


class ToolboxError(Exception):
    """Base exception for all sheet-toolbox errors.

    The positional message (if any) becomes the single reason.  Subclasses
    with structured payloads override ``reasons()`` instead.
    """

    title = "Toolbox Error"
    help: str | None = None

    def summary(self) -> str:
        """Return the one-line headline for this error."""
        return self.title

    def reasons(self) -> list[str]:
        """Return the ordered list of reasons describing the failure."""
        return [str(arg) for arg in self.args if str(arg)]

    def helptext(self) -> str | None:
        """Return remediation advice, or ``None``."""
        return self.help

    def __str__(self) -> str:
        reasons = self.reasons()
        if not reasons:
            return self.summary()
        return f"{self.summary()}: {'; '.join(reasons)}"


class ValidationError(ToolboxError):
    """Raised when an operation's configuration fails validation.

    Every problem found is passed as its own positional argument so the
    whole batch is reported at once.
    """

    title = "Invalid Config"
    help = "Make sure the config conforms to the schema, and that all values are valid"

    def __init__(self, *problems: str) -> None:
        """Store the collected validation problems.

        Args:
            *problems: One sentence per invalid field or rule.
        """
        super().__init__(*problems)
        self.problems = list(problems)


class ProcessorError(ToolboxError):
    """Raised when an operation fails while transforming its input."""

    title = "Processing Error"


class UnsupportedInputError(ProcessorError):
    """Raised when an operation receives an input kind it does not handle."""

    title = "Input Kind Not Supported"
    help = "Convert the input to a supported kind before running this operation"

    def __init__(self, operation: str, received: type, accepted: list[type]) -> None:
        """Record what was received and what would have been accepted.

        Args:
            operation: Registry tag of the rejecting operation.
            received: Type of the rejected input value.
            accepted: Input types the operation supports.
        """
        super().__init__(operation, received, accepted)
        self.operation = operation
        self.received = received
        self.accepted = accepted

    def reasons(self) -> list[str]:
        """Name the rejected kind and the accepted ones."""
        names = ", ".join(t.__name__ for t in self.accepted)
        return [
            f"Operation '{self.operation}' received a {self.received.__name__}",
            f"Supported input kinds are: {names}",
        ]


class InputError(ToolboxError):
    """Raised when a sprite sheet cannot be decoded."""

    title = "Image Parsing Failed"
    help = "Make sure the file is a valid sprite sheet and that it was saved correctly"


class OutputError(ToolboxError):
    """Raised when a sprite sheet cannot be encoded or written."""

    title = "Output Failed"
    help = "Check that the destination exists and is writable"
