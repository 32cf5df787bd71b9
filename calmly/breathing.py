"""Breathing exercises and the terminal session runner."""

from __future__ import annotations

import time

from calmly import records
from calmly.display import console, create_session_progress, print_nudge, print_warning
from calmly.epoch import DailyGate
from calmly.models import BreathingExercise
from calmly.scheduler import PhaseScheduler, SessionSnapshot, SessionSpec, SessionStatus
from calmly.storage import KeyValueStore

EXERCISES: dict[str, BreathingExercise] = {
    e.id: e
    for e in (
        BreathingExercise(id="1", name="Clear Mind", inhale=4, hold=4, exhale=7, duration=60),
        BreathingExercise(
            id="2", name="Let Go of Worries", inhale=5, hold=4, exhale=6, duration=120
        ),
        BreathingExercise(id="3", name="Dream", inhale=6, hold=5, exhale=5, duration=180),
    )
}

PHASE_STYLE: dict[str, str] = {
    "Inhale": "green",
    "Hold": "yellow",
    "Exhale": "red",
}


def get_exercise(exercise_id: str) -> BreathingExercise:
    """Look up an exercise. Raises KeyError for unknown ids."""
    return EXERCISES[str(exercise_id)]


def session_spec(exercise: BreathingExercise) -> SessionSpec:
    return SessionSpec.build(
        [("Inhale", exercise.inhale), ("Hold", exercise.hold), ("Exhale", exercise.exhale)],
        exercise.duration,
    )


def format_remaining(seconds: float) -> str:
    """Whole seconds left, rounded up, e.g. ``42s``."""
    whole = int(seconds) if seconds == int(seconds) else int(seconds) + 1
    return f"{whole}s"


def run_session(
    exercise: BreathingExercise,
    username: str,
    store: KeyValueStore,
    gate: DailyGate,
    tick_interval: float = 0.1,
    countdown: int = 3,
) -> bool:
    """Run a breathing session in the terminal. Returns True if completed.

    Ctrl-C stops the session without recording anything.
    """
    progress = create_session_progress()

    try:
        for n in range(countdown, 0, -1):
            console.print(f"[bold]Get ready... {n}[/bold]")
            time.sleep(1)

        with progress:
            phase_bar = progress.add_task("Inhale", total=1.0)
            overall = progress.add_task(exercise.name, total=float(exercise.duration))

            def show(snap: SessionSnapshot) -> None:
                style = PHASE_STYLE.get(snap.phase_name, "blue")
                progress.update(
                    phase_bar,
                    description=f"[{style}]{snap.phase_name}[/{style}]",
                    completed=snap.phase_progress,
                )
                progress.update(overall, completed=exercise.duration - snap.remaining_seconds)

            scheduler = PhaseScheduler(session_spec(exercise), on_tick=show)
            scheduler.start()
            while scheduler.status is SessionStatus.RUNNING:
                time.sleep(tick_interval)
                scheduler.tick(tick_interval)
    except KeyboardInterrupt:
        console.print("\n[yellow]Session stopped early.[/yellow]")
        return False

    # Bell notification
    console.print("\a", end="")
    print_nudge("Exercise complete! Notice how you feel right now.")
    if not records.mark_exercise_completed(store, gate, username, exercise.id, exercise.name):
        print_warning("Could not save your progress, but well done all the same.")
    return True
