"""
errors.py — Error Taxonomy
===========================
Every failure the tutor can hit maps to exactly one of four classes,
and each class maps to exactly one user-visible message:

    InputError       – user-correctable, shown next to the offending field
    TransportError   – the model call itself failed
    ValidationError  – the model answered, but the answer is unusable
    PlaybackError    – reading a step with nothing loaded (a UI bug)

The submission boundary (engine.session) catches the first three; a
PlaybackError is prevented by disabling navigation until a run loads.
"""

from enum import Enum
from typing import Optional


class SimulatorError(Exception):
    """Base class for every error raised by the core."""


# ---------------------------------------------------------------------------
# InputError
# ---------------------------------------------------------------------------
class InputErrorKind(Enum):
    UNKNOWN_ALGORITHM      = "unknown_algorithm"
    MALFORMED_INPUT        = "malformed_input"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    UNKNOWN_NODE           = "unknown_node"


class InputError(SimulatorError):
    def __init__(self, kind: InputErrorKind, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.kind    = kind
        self.field   = field
        self.message = message

    def __repr__(self) -> str:
        return f"InputError(kind={self.kind.value}, field={self.field!r}, message={self.message!r})"


# ---------------------------------------------------------------------------
# TransportError
# ---------------------------------------------------------------------------
class TransportError(SimulatorError):
    """The external model call failed (network, quota, provider fault, empty reply)."""


# ---------------------------------------------------------------------------
# ValidationError
# ---------------------------------------------------------------------------
class ValidationErrorKind(Enum):
    MALFORMED_JSON      = "malformed_json"
    EMPTY_SEQUENCE      = "empty_sequence"
    SCHEMA_MISMATCH     = "schema_mismatch"
    INVARIANT_VIOLATION = "invariant_violation"


class ValidationError(SimulatorError):
    """
    Attributes:
        kind   : Which check failed.
        index  : Step index the failure was found at (None for payload-level failures).
        detail : Diagnostic text for logs.  Never shown to the user.
    """

    def __init__(self, kind: ValidationErrorKind, detail: str = "", index: Optional[int] = None):
        where = f" at step {index}" if index is not None else ""
        super().__init__(f"{kind.value}{where}: {detail}" if detail else f"{kind.value}{where}")
        self.kind   = kind
        self.index  = index
        self.detail = detail

    def __repr__(self) -> str:
        return f"ValidationError(kind={self.kind.value}, index={self.index}, detail={self.detail!r})"


# ---------------------------------------------------------------------------
# PlaybackError
# ---------------------------------------------------------------------------
class PlaybackError(SimulatorError):
    """current() was called while no result is loaded."""


# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------
INPUT_MESSAGE      = "Invalid input."
TRANSPORT_MESSAGE  = "An unexpected error occurred while running the simulation. Please try again."
VALIDATION_MESSAGE = "AI returned invalid visualization data. Please try again."
PLAYBACK_MESSAGE   = "Run a simulation first."


def user_message(exc: BaseException) -> str:
    """The single message class shown to the user for `exc`."""
    if isinstance(exc, InputError):
        return exc.message or INPUT_MESSAGE
    if isinstance(exc, ValidationError):
        return VALIDATION_MESSAGE
    if isinstance(exc, PlaybackError):
        return PLAYBACK_MESSAGE
    return TRANSPORT_MESSAGE


__all__ = [
    "SimulatorError",
    "InputErrorKind",
    "InputError",
    "TransportError",
    "ValidationErrorKind",
    "ValidationError",
    "PlaybackError",
    "INPUT_MESSAGE",
    "TRANSPORT_MESSAGE",
    "VALIDATION_MESSAGE",
    "PLAYBACK_MESSAGE",
    "user_message",
]
