"""Core data models for organizer-control."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OperationKind(str, Enum):
    """An operation the external tool can perform."""

    PREVIEW = "preview"
    ORGANIZE = "organize"
    HISTORY = "history"
    UNDO = "undo"


class ExitStatus(str, Enum):
    """How a single run of the external tool ended."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMED_OUT = "timed_out"
    LAUNCH_FAILED = "launch_failed"


@dataclass(frozen=True)
class OperationRequest:
    """One call against a target folder."""

    kind: OperationKind
    target_path: str
    session_id: Optional[str] = None  # only meaningful for UNDO


@dataclass(frozen=True)
class ProcessOutcome:
    """Classified result of running the external tool once."""

    status: ExitStatus
    exit_code: Optional[int] = None  # set for SUCCESS and FAILURE only
    stdout: bytes = b""
    stderr: bytes = b""
    duration_ms: int = 0


@dataclass(frozen=True)
class SessionRecord:
    """A prior organize run, as reported by the tool's history."""

    id: str
    file_count: int


@dataclass
class OperationResult:
    """Uniform result handed back across the HTTP boundary."""

    success: bool
    output: str
    error_message: Optional[str] = None


class OrganizerControlError(Exception):
    """Base class for errors raised by organizer-control."""


class InvalidRequest(OrganizerControlError):
    """The request is missing or has malformed input."""
