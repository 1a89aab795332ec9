"""
engine/
-------
Request → response → playback pipeline.

    from engine import build, parse, Stepper, SimulationSession
"""

from engine.errors import (
    SimulatorError,
    InputError,
    InputErrorKind,
    TransportError,
    ValidationError,
    ValidationErrorKind,
    PlaybackError,
    user_message,
)
from engine.builder   import SimulationRequest, build
from engine.parser    import parse, serialize
from engine.stepper   import Stepper, StepperState, PlaybackSnapshot
from engine.analytics import RunMetrics, compute_metrics
from engine.session   import (
    SimulationBackend,
    SimulationSession,
    SessionStore,
    SubmissionOutcome,
    OutcomeStatus,
)

__all__ = [
    "SimulatorError",
    "InputError",
    "InputErrorKind",
    "TransportError",
    "ValidationError",
    "ValidationErrorKind",
    "PlaybackError",
    "user_message",
    "SimulationRequest",
    "build",
    "parse",
    "serialize",
    "Stepper",
    "StepperState",
    "PlaybackSnapshot",
    "RunMetrics",
    "compute_metrics",
    "SimulationBackend",
    "SimulationSession",
    "SessionStore",
    "SubmissionOutcome",
    "OutcomeStatus",
]
