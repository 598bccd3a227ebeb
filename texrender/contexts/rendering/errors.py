"""
Error kinds and exceptions for the rendering context.

Pipeline stages report failures as a tagged ``RenderError`` value instead of raising.
Exceptions are reserved for misconfiguration and for process launch failures, which
the stages catch and convert into a ``RenderError`` at their boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RenderErrorKind(str, Enum):
    """Terminal failure classes of a render request."""

    FORBIDDEN_INPUT = "forbidden_input"
    PROCESS_START_FAILURE = "process_start_failure"
    INVALID_FORMULA = "invalid_formula"
    CONVERSION_FAILURE = "conversion_failure"


@dataclass(frozen=True)
class RenderError:
    """
    Failure classification returned to callers.

    Attributes:
        kind: Failure class
        message: Stable, toolchain-independent description (never raw compiler output)
    """

    kind: RenderErrorKind
    message: str

    @classmethod
    def forbidden_input(cls) -> "RenderError":
        return cls(RenderErrorKind.FORBIDDEN_INPUT, "Forbidden commands.")

    @classmethod
    def process_start_failure(cls, tool: str) -> "RenderError":
        return cls(RenderErrorKind.PROCESS_START_FAILURE, f"Cannot run {tool}")

    @classmethod
    def invalid_formula(cls) -> "RenderError":
        return cls(RenderErrorKind.INVALID_FORMULA, "Invalid formula")

    @classmethod
    def conversion_failure(cls, target: str) -> "RenderError":
        return cls(RenderErrorKind.CONVERSION_FAILURE, f"Conversion to {target} failed")


class ConfigurationError(ValueError):
    """Raised at configuration load time for invalid settings or command templates."""


class ProcessStartError(Exception):
    """
    Raised when an external command cannot be launched at all.

    Attributes:
        command: The argument vector that failed to start
        original_error: The underlying OSError (binary missing, permission denied, ...)
    """

    def __init__(self, command, original_error: Optional[OSError] = None):
        self.command = list(command)
        self.original_error = original_error
        detail = f": {original_error}" if original_error else ""
        super().__init__(f"Failed to start {self.command[0] if self.command else '?'}{detail}")


class RenderFailure(Exception):
    """Exception form of a failed ``RenderResult`` for callers that prefer raising."""

    def __init__(self, error: RenderError):
        self.error = error
        self.kind = error.kind
        super().__init__(error.message)
