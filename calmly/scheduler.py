"""Phase scheduler: a repeating cycle of named phases inside a fixed-length session.

The scheduler does no timing of its own. Something else (a rich progress
loop, a Kivy ``Clock`` interval) calls :meth:`PhaseScheduler.tick` at a
fixed period and the scheduler does the bookkeeping::

    Idle --start()--> Running <--pause()/resume()--> Paused
                         |
                         +--tick() reaches total--> Completed (terminal)

Observers receive read-only :class:`SessionSnapshot` values, never the
mutable state itself.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from calmly.errors import InvalidConfigError, InvalidStateError

log = logging.getLogger(__name__)

# Boundary tolerance: repeated float addition of 0.1 drifts just below the
# exact boundary (600 ticks sum to 59.99999999999986).
_EPSILON = 1e-9


@dataclass(frozen=True)
class Phase:
    """One named segment of the cycle, e.g. ``Inhale`` for 4 seconds."""

    name: str
    duration: float


@dataclass(frozen=True)
class SessionSpec:
    """Immutable session configuration."""

    phases: tuple[Phase, ...]
    total_duration: float

    def __post_init__(self) -> None:
        if not self.phases:
            raise InvalidConfigError("A session needs at least one phase.")
        for phase in self.phases:
            if not (phase.duration > 0 and math.isfinite(phase.duration)):
                raise InvalidConfigError(
                    f"Phase {phase.name!r} must last a finite number of seconds above 0."
                )
        if not (self.total_duration > 0 and math.isfinite(self.total_duration)):
            raise InvalidConfigError("Total session duration must be positive and finite.")

    @classmethod
    def build(
        cls, phases: Sequence[tuple[str, float]], total_duration: float
    ) -> SessionSpec:
        """Build from ``(name, seconds)`` pairs."""
        return cls(
            phases=tuple(Phase(name, duration) for name, duration in phases),
            total_duration=total_duration,
        )

    @property
    def cycle_length(self) -> float:
        return sum(p.duration for p in self.phases)


class SessionStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class SessionState:
    """Mutable progress of one session. Owned by exactly one scheduler."""

    current_phase_index: int = 0
    phase_elapsed: float = 0.0
    total_elapsed: float = 0.0
    status: SessionStatus = SessionStatus.IDLE

    @property
    def running(self) -> bool:
        return self.status is SessionStatus.RUNNING

    @property
    def completed(self) -> bool:
        return self.status is SessionStatus.COMPLETED


@dataclass(frozen=True)
class SessionSnapshot:
    """What an observer sees after each tick."""

    phase_name: str
    phase_progress: float
    remaining_seconds: float
    completed: bool
    phase_index: int = 0
    status: SessionStatus = SessionStatus.IDLE


TickObserver = Callable[[SessionSnapshot], None]


class PhaseScheduler:
    """Advance a phase cycle and an overall countdown on externally driven ticks."""

    def __init__(
        self,
        spec: SessionSpec,
        on_tick: Optional[TickObserver] = None,
        on_complete: Optional[TickObserver] = None,
    ) -> None:
        self.spec = spec
        self._state = SessionState()
        self._on_tick = on_tick
        self._on_complete = on_complete

    # -- read-only views --

    @property
    def state(self) -> SessionState:
        """A copy of the current state."""
        return dataclasses.replace(self._state)

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def current_phase(self) -> Phase:
        return self.spec.phases[self._state.current_phase_index]

    @property
    def phase_progress(self) -> float:
        return self._state.phase_elapsed / self.current_phase.duration

    @property
    def remaining_seconds(self) -> float:
        return max(self.spec.total_duration - self._state.total_elapsed, 0.0)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase_name=self.current_phase.name,
            phase_progress=self.phase_progress,
            remaining_seconds=self.remaining_seconds,
            completed=self._state.completed,
            phase_index=self._state.current_phase_index,
            status=self._state.status,
        )

    # -- transitions --

    def start(self) -> SessionSnapshot:
        if self._state.status is not SessionStatus.IDLE:
            raise InvalidStateError("start", self._state.status.value)
        self._state.status = SessionStatus.RUNNING
        log.debug("Session started: %s", self.spec)
        return self.snapshot()

    def pause(self) -> SessionSnapshot:
        if self._state.status is not SessionStatus.RUNNING:
            raise InvalidStateError("pause", self._state.status.value)
        self._state.status = SessionStatus.PAUSED
        return self.snapshot()

    def resume(self) -> SessionSnapshot:
        if self._state.status is not SessionStatus.PAUSED:
            raise InvalidStateError("resume", self._state.status.value)
        self._state.status = SessionStatus.RUNNING
        return self.snapshot()

    def toggle(self) -> SessionSnapshot:
        """Pause if running, resume if paused."""
        if self._state.status is SessionStatus.RUNNING:
            return self.pause()
        return self.resume()

    def tick(self, delta: float) -> SessionSnapshot:
        """Advance by ``delta`` seconds. Ignored unless the session is running."""
        if not (delta > 0 and math.isfinite(delta)):
            raise ValueError("Tick delta must be a positive, finite number of seconds.")
        state = self._state
        if state.status is not SessionStatus.RUNNING:
            return self.snapshot()

        state.phase_elapsed += delta
        state.total_elapsed += delta

        if state.phase_elapsed + _EPSILON >= self.current_phase.duration:
            state.phase_elapsed = 0.0
            state.current_phase_index = (state.current_phase_index + 1) % len(
                self.spec.phases
            )

        just_completed = False
        if state.total_elapsed + _EPSILON >= self.spec.total_duration:
            state.total_elapsed = self.spec.total_duration
            state.status = SessionStatus.COMPLETED
            just_completed = True

        snap = self.snapshot()
        self._notify(self._on_tick, snap)
        if just_completed:
            log.debug("Session completed after %.1fs", state.total_elapsed)
            self._notify(self._on_complete, snap)
        return snap

    @staticmethod
    def _notify(observer: Optional[TickObserver], snap: SessionSnapshot) -> None:
        if observer is None:
            return
        try:
            observer(snap)
        except Exception:
            log.warning("Session observer failed", exc_info=True)


def run_ticks(scheduler: PhaseScheduler, delta: float) -> int:
    """Tick a running scheduler until it completes. Returns the tick count."""
    if scheduler.status is SessionStatus.IDLE:
        scheduler.start()
    if scheduler.status is not SessionStatus.RUNNING:
        raise InvalidStateError("run", scheduler.status.value)
    ticks = 0
    while scheduler.status is SessionStatus.RUNNING:
        scheduler.tick(delta)
        ticks += 1
    return ticks
