"""
session.py — Submission Boundary
=================================
One SimulationSession per visualization panel.  It owns the panel's
Stepper and runs a submission end to end:

    build → begin_request → backend.generate_simulation → parse → load

submit() never raises InputError, TransportError or ValidationError; it
returns a SubmissionOutcome instead, and the panel shows
`outcome.message`.

Locking:
  The panel lock is held while touching the stepper, but NOT during the
  model call, so a second submission (or navigation) can proceed while
  the first is in flight.  Latest request wins through stepper tokens.
"""

import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Protocol, Tuple

from algorithms import AlgorithmFamily
from engine.analytics import RunMetrics, compute_metrics
from engine.builder import SimulationRequest, build
from engine.errors import InputError, TransportError, ValidationError, user_message
from engine.parser import parse
from engine.stepper import Stepper

logger = logging.getLogger(__name__)

LOG_EXCERPT_CHARS    = 2000
DEFAULT_MAX_SESSIONS = 1000


class SimulationBackend(Protocol):
    def generate_simulation(self, request: SimulationRequest) -> str:
        ...


class OutcomeStatus(Enum):
    OK               = "ok"
    INPUT_ERROR      = "input_error"
    TRANSPORT_ERROR  = "transport_error"
    VALIDATION_ERROR = "validation_error"
    SUPERSEDED       = "superseded"


@dataclass(frozen=True)
class SubmissionOutcome:
    status:  OutcomeStatus
    message: Optional[str]        = None
    field:   Optional[str]        = None
    metrics: Optional[RunMetrics] = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK


# ---------------------------------------------------------------------------
# SimulationSession
# ---------------------------------------------------------------------------
class SimulationSession:
    """
    Attributes:
        family  : The panel's family; fixed for the session's lifetime.
        stepper : Playback for the panel's current run.
        request : The request behind the loaded run, or None.
        metrics : Analytics for the loaded run, or None.
        lock    : Guards stepper / request / metrics.
    """

    def __init__(
        self,
        family: AlgorithmFamily,
        backend: SimulationBackend,
        response_log_path: Optional[str] = None,
    ):
        self.family   = family
        self.backend  = backend
        self.stepper  = Stepper()
        self.request: Optional[SimulationRequest] = None
        self.metrics: Optional[RunMetrics]        = None
        self.lock     = threading.Lock()
        self._response_log = Path(response_log_path) if response_log_path else None

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def submit(self, algorithm_name: str, raw_fields: Mapping[str, Any]) -> SubmissionOutcome:
        try:
            request = build(self.family, algorithm_name, raw_fields)
        except InputError as exc:
            logger.info("Rejected %s input: %r", self.family.value, exc)
            return SubmissionOutcome(OutcomeStatus.INPUT_ERROR, user_message(exc), field=exc.field)

        with self.lock:
            token = self.stepper.begin_request()
            self.request = None
            self.metrics = None
        logger.info("Submitting %s (%s), token %d", request.algorithm.name, self.family.value, token)

        try:
            raw = self.backend.generate_simulation(request)
        except TransportError as exc:
            return self._failed(token, OutcomeStatus.TRANSPORT_ERROR, exc)
        except Exception as exc:  # opaque collaborator
            logger.exception("Backend raised unexpectedly for %s", request.algorithm.name)
            return self._failed(token, OutcomeStatus.TRANSPORT_ERROR, TransportError(str(exc)))

        try:
            result = parse(self.family, request.algorithm.role, raw, request.node_ids)
        except ValidationError as exc:
            logger.warning(
                "Rejected %s response (%r). Raw response: %s",
                request.algorithm.name, exc, _excerpt(raw),
            )
            self._record_rejection(request, exc, raw)
            return self._failed(token, OutcomeStatus.VALIDATION_ERROR, exc)

        metrics = compute_metrics(result, request.start, request.end)
        with self.lock:
            if not self.stepper.load(result, token):
                logger.info("Dropped response for superseded token %d", token)
                return SubmissionOutcome(OutcomeStatus.SUPERSEDED)
            self.request = request
            self.metrics = metrics
        logger.info("Loaded %s run: %d steps", request.algorithm.name, len(result))
        return SubmissionOutcome(OutcomeStatus.OK, metrics=metrics)

    def reset(self) -> None:
        with self.lock:
            self.stepper.reset()
            self.request = None
            self.metrics = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _failed(self, token: int, status: OutcomeStatus, exc: Exception) -> SubmissionOutcome:
        with self.lock:
            self.stepper.fail(token)
        return SubmissionOutcome(status, user_message(exc))

    def _record_rejection(self, request: SimulationRequest, exc: ValidationError, raw: Any) -> None:
        if self._response_log is None:
            return
        rec = {
            "timestamp": int(time.time()),
            "algorithm": request.algorithm.name,
            "family":    self.family.value,
            "kind":      exc.kind.value,
            "index":     exc.index,
            "detail":    exc.detail,
            "request":   request.to_model_fields(),
            "raw":       raw if isinstance(raw, str) else repr(raw),
        }
        try:
            self._response_log.parent.mkdir(parents=True, exist_ok=True)
            with self._response_log.open("a", encoding="utf-8") as f:
                f.write(json.dumps(rec, ensure_ascii=False) + "\n")
        except OSError as err:
            logger.warning("Could not append to %s: %s", self._response_log, err)


def _excerpt(raw: Any) -> str:
    text = raw if isinstance(raw, str) else repr(raw)
    if len(text) <= LOG_EXCERPT_CHARS:
        return text
    return text[:LOG_EXCERPT_CHARS] + f"... [{len(text) - LOG_EXCERPT_CHARS} more chars]"


# ---------------------------------------------------------------------------
# SessionStore: one SimulationSession per (browser session, family)
# ---------------------------------------------------------------------------
class SessionStore:
    """
    In-memory, least-recently-used first out once `max_sessions` panels
    exist.  Flask serves requests on threads, so lookups are locked.
    """

    def __init__(
        self,
        factory: Callable[[AlgorithmFamily], SimulationSession],
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._factory = factory
        self._max = max_sessions
        self._sessions: "OrderedDict[Tuple[str, AlgorithmFamily], SimulationSession]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_id: str, family: AlgorithmFamily) -> SimulationSession:
        key = (session_id, family)
        with self._lock:
            panel = self._sessions.get(key)
            if panel is None:
                panel = self._factory(family)
                self._sessions[key] = panel
                while len(self._sessions) > self._max:
                    old_key, _ = self._sessions.popitem(last=False)
                    logger.debug("Evicted %s panel of session %s", old_key[1].value, old_key[0])
            else:
                self._sessions.move_to_end(key)
            return panel

    def discard(self, session_id: str) -> None:
        with self._lock:
            for key in [k for k in self._sessions if k[0] == session_id]:
                del self._sessions[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = [
    "SimulationBackend",
    "OutcomeStatus",
    "SubmissionOutcome",
    "SimulationSession",
    "SessionStore",
]
