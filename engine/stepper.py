"""
stepper.py — Playback State Machine
====================================
The Stepper is the ONLY object the UI interacts with during a run.
It owns one validated SimulationResult and a cursor into it, and exposes
a clean seek/step/rewind/end API.

State machine:
    EMPTY    →  begin_request()  →  LOADING
    LOADING  →  load(result)     →  READY
    LOADING  →  fail(token)      →  EMPTY
    READY    →  begin_request()  →  LOADING   (previous run discarded)
    any      →  reset()          →  EMPTY

Latest request wins:
  begin_request() hands out a monotonically increasing token.  load() and
  fail() only act for the most recent token; a late answer to an older
  request is dropped on the floor.

Thread safety:
  This class is NOT thread-safe.  The web layer serialises calls per
  panel (see engine/session.py).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from algorithms.step import SimulationResult, VisualizationStep
from engine.errors import PlaybackError


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------
class StepperState(Enum):
    EMPTY   = "empty"
    LOADING = "loading"
    READY   = "ready"


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Everything a controls panel needs for one frame."""

    index:       int
    total:       int
    step:        VisualizationStep
    description: str

    @property
    def at_start(self) -> bool:
        return self.index == 0

    @property
    def at_end(self) -> bool:
        return self.index == self.total - 1


# ---------------------------------------------------------------------------
# Stepper
# ---------------------------------------------------------------------------
class Stepper:
    """
    Attributes:
        state       : Current StepperState.
        result      : The loaded SimulationResult, or None.
        current_idx : Index into result.steps that is currently displayed.
        on_step     : Optional callback(step) fired every time the current step
                      changes, and with None when playback is cleared.
                      The UI hooks its re-render here.
    """

    def __init__(self, on_step: Optional[Callable[[Optional[VisualizationStep]], None]] = None):
        self.result:      Optional[SimulationResult] = None
        self.current_idx: int          = -1
        self.state:       StepperState = StepperState.EMPTY
        self.on_step = on_step
        self._token:      int          = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def begin_request(self) -> int:
        """Discard the current run and issue a token for the next one."""
        self._token += 1
        self._clear(StepperState.LOADING)
        return self._token

    def load(self, result: SimulationResult, token: Optional[int] = None) -> bool:
        """
        Install `result` at step 0.  Returns False (and changes nothing)
        when `token` belongs to a superseded request.
        """
        if token is not None and token != self._token:
            return False
        if not result.steps:
            raise ValueError("cannot load a run with no steps")
        self.result      = result
        self.state       = StepperState.READY
        self.current_idx = -1
        self._goto(0)
        return True

    def fail(self, token: int) -> bool:
        """The request behind `token` failed; clear if it is still the latest."""
        if token != self._token:
            return False
        self._clear(StepperState.EMPTY)
        return True

    def reset(self) -> None:
        """Back to EMPTY; outstanding tokens become stale."""
        self._token += 1
        self._clear(StepperState.EMPTY)

    # ------------------------------------------------------------------
    # Navigation (no-ops unless READY)
    # ------------------------------------------------------------------
    def seek(self, idx: int) -> None:
        """Jump to `idx`, clamped to [0, total - 1]."""
        if self.state is not StepperState.READY:
            return
        self._goto(max(0, min(int(idx), self.total - 1)))

    def step(self, delta: int) -> None:
        self.seek(self.current_idx + delta)

    def next_step(self) -> None:
        self.step(1)

    def prev_step(self) -> None:
        self.step(-1)

    def rewind(self) -> None:
        self.seek(0)

    def jump_to_end(self) -> None:
        self.seek(self.total - 1)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def total(self) -> int:
        return len(self.result.steps) if self.result is not None else 0

    @property
    def is_ready(self) -> bool:
        return self.state is StepperState.READY

    def current(self) -> VisualizationStep:
        if self.state is not StepperState.READY:
            raise PlaybackError(f"no step to show while {self.state.value}")
        return self.result.steps[self.current_idx]

    def snapshot(self) -> PlaybackSnapshot:
        step = self.current()
        return PlaybackSnapshot(
            index=self.current_idx,
            total=self.total,
            step=step,
            description=self.result.description,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _clear(self, state: StepperState) -> None:
        had_result = self.result is not None
        self.result      = None
        self.current_idx = -1
        self.state       = state
        if had_result:
            self._notify(None)

    def _goto(self, idx: int) -> None:
        changed = idx != self.current_idx
        self.current_idx = idx
        if changed:
            self._notify(self.result.steps[idx])

    def _notify(self, step: Optional[VisualizationStep]) -> None:
        if self.on_step:
            self.on_step(step)
