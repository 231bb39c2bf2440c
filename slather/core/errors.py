"""Error types shared across Slather."""
from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    """How a failed declaration should be treated on the next run."""

    TRANSIENT = "transient"  # re-run later
    PERMANENT = "permanent"  # edit the declaration table


class SlatherError(Exception):
    """Base class for Slather errors."""


class ApplyError(SlatherError):
    """Raised when a declaration cannot be brought to its desired state."""

    kind: ErrorKind = ErrorKind.TRANSIENT

    def __init__(self, message: str, command: Optional[List[str]] = None):
        super().__init__(message)
        self.command = command


class TransientError(ApplyError):
    """Lock contention, network trouble, a tool that is momentarily missing."""

    kind = ErrorKind.TRANSIENT


class PermanentError(ApplyError):
    """The declaration itself is wrong (unknown package, malformed value)."""

    kind = ErrorKind.PERMANENT


class ConfigValidationError(SlatherError):
    """Raised when the declaration table is malformed."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = list(problems or [])
        if self.problems:
            message = message + "\n" + "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(message)


class LockError(SlatherError):
    """Raised when unable to acquire the run lock."""
