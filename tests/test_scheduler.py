"""Tests for the phase scheduler."""

from __future__ import annotations

import pytest

from calmly.errors import InvalidConfigError, InvalidStateError
from calmly.scheduler import (
    Phase,
    PhaseScheduler,
    SessionSnapshot,
    SessionSpec,
    SessionStatus,
    run_ticks,
)


def _clear_mind() -> SessionSpec:
    return SessionSpec.build([("Inhale", 4), ("Hold", 4), ("Exhale", 7)], 60)


class TestSessionSpec:
    def test_build(self) -> None:
        spec = _clear_mind()
        assert spec.phases[0] == Phase("Inhale", 4)
        assert spec.cycle_length == 15
        assert spec.total_duration == 60

    def test_no_phases(self) -> None:
        with pytest.raises(InvalidConfigError):
            SessionSpec(phases=(), total_duration=60)

    def test_zero_phase_duration(self) -> None:
        with pytest.raises(InvalidConfigError):
            SessionSpec.build([("Inhale", 4), ("Hold", 0)], 60)

    def test_negative_total(self) -> None:
        with pytest.raises(InvalidConfigError):
            SessionSpec.build([("Inhale", 4)], -1)

    def test_config_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            SessionSpec.build([("Inhale", 4)], 0)

    def test_non_finite_durations(self) -> None:
        with pytest.raises(InvalidConfigError):
            SessionSpec.build([("Inhale", 4)], float("inf"))
        with pytest.raises(InvalidConfigError):
            SessionSpec.build([("Inhale", 4)], float("nan"))
        with pytest.raises(InvalidConfigError):
            SessionSpec.build([("Inhale", float("nan"))], 60)


class TestTransitions:
    def test_starts_idle(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        assert sched.status is SessionStatus.IDLE
        assert sched.current_phase.name == "Inhale"
        assert sched.remaining_seconds == 60

    def test_start(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        snap = sched.start()
        assert snap.status is SessionStatus.RUNNING
        assert sched.state.running

    def test_double_start_rejected(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        with pytest.raises(InvalidStateError) as exc_info:
            sched.start()
        assert exc_info.value.action == "start"
        assert exc_info.value.status == "running"
        assert sched.status is SessionStatus.RUNNING

    def test_pause_when_idle_rejected(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        with pytest.raises(InvalidStateError):
            sched.pause()
        assert sched.status is SessionStatus.IDLE

    def test_resume_when_running_rejected(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        with pytest.raises(InvalidStateError):
            sched.resume()

    def test_pause_resume_keeps_progress(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        for _ in range(25):
            sched.tick(0.1)
        before = sched.state
        sched.pause()
        sched.resume()
        after = sched.state
        assert after == before

    def test_ticks_ignored_while_paused(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        sched.tick(1.0)
        sched.pause()
        before = sched.state
        for _ in range(10):
            sched.tick(1.0)
        assert sched.state == before

    def test_ticks_ignored_while_idle(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.tick(1.0)
        assert sched.state.total_elapsed == 0.0

    def test_toggle(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        assert sched.toggle().status is SessionStatus.PAUSED
        assert sched.toggle().status is SessionStatus.RUNNING

    def test_toggle_when_idle_rejected(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        with pytest.raises(InvalidStateError):
            sched.toggle()

    def test_non_positive_delta(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        with pytest.raises(ValueError):
            sched.tick(0)

    def test_non_finite_delta_rejected(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        for bad in (float("nan"), float("inf")):
            with pytest.raises(ValueError):
                sched.tick(bad)
        assert sched.state.total_elapsed == 0.0
        assert run_ticks(sched, 1.0) == 60


class TestTick:
    def test_phase_advances_at_boundary(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        for _ in range(39):
            sched.tick(0.1)
        assert sched.current_phase.name == "Inhale"
        sched.tick(0.1)
        assert sched.current_phase.name == "Hold"
        assert sched.state.phase_elapsed == 0.0

    def test_progress_within_phase(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        snap = sched.tick(2.0)
        assert snap.phase_progress == pytest.approx(0.5)
        assert snap.remaining_seconds == pytest.approx(58.0)

    def test_sixty_second_session(self) -> None:
        """Clear Mind at 0.1s ticks: 600 ticks, four full cycles in order."""
        seen: list[str] = []
        completions: list[SessionSnapshot] = []

        def on_tick(snap: SessionSnapshot) -> None:
            if not seen or seen[-1] != snap.phase_name:
                seen.append(snap.phase_name)

        sched = PhaseScheduler(_clear_mind(), on_tick=on_tick, on_complete=completions.append)
        ticks = run_ticks(sched, 0.1)

        assert ticks == 600
        assert seen[:12] == ["Inhale", "Hold", "Exhale"] * 4
        assert len(completions) == 1
        assert completions[0].completed
        assert completions[0].remaining_seconds == 0.0
        assert sched.state.total_elapsed == 60

    def test_whole_second_ticks(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        assert run_ticks(sched, 1.0) == 60

    def _phase_order(self, delta: float) -> tuple[list[int], list[SessionSnapshot]]:
        indexes: list[int] = [0]
        completions: list[SessionSnapshot] = []

        def on_tick(snap: SessionSnapshot) -> None:
            if snap.phase_index != indexes[-1]:
                indexes.append(snap.phase_index)

        sched = PhaseScheduler(_clear_mind(), on_tick=on_tick, on_complete=completions.append)
        run_ticks(sched, delta)
        return indexes, completions

    def test_uneven_delta_keeps_phase_order(self) -> None:
        for delta in (0.3, 0.7):
            indexes, completions = self._phase_order(delta)
            for prev, nxt in zip(indexes, indexes[1:]):
                assert nxt == (prev + 1) % 3, (delta, indexes)
            assert len(indexes) >= 10
            assert len(completions) == 1
            assert completions[0].remaining_seconds == 0.0

    def test_total_not_a_multiple_of_cycle(self) -> None:
        """15s cycle in a 20s session ends partway through the second Hold."""
        completions: list[SessionSnapshot] = []
        sched = PhaseScheduler(
            SessionSpec.build([("Inhale", 4), ("Hold", 4), ("Exhale", 7)], 20),
            on_complete=completions.append,
        )
        assert run_ticks(sched, 1.0) == 20
        assert len(completions) == 1
        final = completions[0]
        assert final.phase_name == "Hold"
        assert final.phase_index == 1
        assert final.phase_progress == pytest.approx(0.25)
        assert final.remaining_seconds == 0.0

    def test_completed_is_terminal(self) -> None:
        completions = []
        sched = PhaseScheduler(
            SessionSpec.build([("Inhale", 1)], 2), on_complete=completions.append
        )
        run_ticks(sched, 0.5)
        final = sched.state
        for _ in range(5):
            sched.tick(0.5)
        assert sched.state == final
        assert len(completions) == 1
        with pytest.raises(InvalidStateError):
            sched.start()
        with pytest.raises(InvalidStateError):
            sched.pause()

    def test_overshoot_clamped(self) -> None:
        sched = PhaseScheduler(SessionSpec.build([("Inhale", 4)], 3))
        sched.start()
        snap = sched.tick(5.0)
        assert snap.completed
        assert sched.state.total_elapsed == 3
        assert snap.remaining_seconds == 0.0

    def test_state_is_a_copy(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        state = sched.state
        state.total_elapsed = 999
        assert sched.state.total_elapsed == 0.0


class TestObservers:
    def test_failing_observer_does_not_stop_session(self) -> None:
        completions = []

        def broken(snap: SessionSnapshot) -> None:
            raise RuntimeError("display went away")

        sched = PhaseScheduler(
            SessionSpec.build([("Inhale", 1)], 1), on_tick=broken, on_complete=completions.append
        )
        assert run_ticks(sched, 0.25) == 4
        assert sched.status is SessionStatus.COMPLETED
        assert len(completions) == 1

    def test_snapshots_are_frozen(self) -> None:
        snaps: list[SessionSnapshot] = []
        sched = PhaseScheduler(_clear_mind(), on_tick=snaps.append)
        sched.start()
        sched.tick(1.0)
        with pytest.raises(AttributeError):
            snaps[0].phase_name = "Hold"  # type: ignore[misc]


class TestRunTicks:
    def test_rejects_paused(self) -> None:
        sched = PhaseScheduler(_clear_mind())
        sched.start()
        sched.pause()
        with pytest.raises(InvalidStateError):
            run_ticks(sched, 0.1)
