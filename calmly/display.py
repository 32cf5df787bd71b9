"""Rich terminal formatting helpers."""

from __future__ import annotations

from datetime import date
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table
from rich.text import Text

from calmly.models import (
    BreathingExercise,
    ChatMessage,
    ChatRole,
    HistoryEntry,
    JournalEntry,
    Note,
    ProfileStats,
    ProgramTask,
    SoberCategory,
)
from calmly.records import sober_days

console = Console()

_PROGRAM_LABELS: dict[ProgramTask, str] = {
    ProgramTask.JOURNAL: "Reflect on your day",
    ProgramTask.BREATHING: "Deep breathing exercise",
    ProgramTask.CHALLENGE: "Daily challenge",
}


def _done_icon(done: bool) -> str:
    return escape("[x]") if done else "[ ]"


def print_program(program: dict[ProgramTask, bool]) -> None:
    """Print today's program checklist."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("status", width=3)
    table.add_column("task")
    for task, done in program.items():
        table.add_row(_done_icon(done), _PROGRAM_LABELS[task], style="green" if done else "dim")
    console.print(Panel(table, title="Today's Program", border_style="green"))


def print_exercises(exercises: list[BreathingExercise], completed: set[str]) -> None:
    table = Table(box=None, pad_edge=False)
    table.add_column("", width=3)
    table.add_column("id", width=3)
    table.add_column("exercise")
    table.add_column("pattern")
    table.add_column("length")
    for ex in exercises:
        table.add_row(
            _done_icon(ex.id in completed),
            ex.id,
            ex.name,
            f"{ex.inhale}-{ex.hold}-{ex.exhale}",
            f"{ex.duration // 60} min",
            style="green" if ex.id in completed else None,
        )
    console.print(Panel(table, title="Breathing", border_style="blue"))


def print_journal(entries: list[JournalEntry]) -> None:
    if not entries:
        console.print(Panel("No journal entries yet.", title="Journal", border_style="dim"))
        return
    lines = [f"[bold]{e.date:%Y-%m-%d %H:%M}[/bold]\n{escape(e.entry)}" for e in entries]
    console.print(Panel("\n\n".join(lines), title="Journal", border_style="blue"))


def print_notes(notes: list[Note]) -> None:
    if not notes:
        console.print(Panel("No notes.", title="Notes", border_style="dim"))
        return
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("id")
    table.add_column("note")
    for note in notes:
        table.add_row(f"#{note.id}", escape(note.content))
    console.print(Panel(table, title="Notes", border_style="blue"))


def print_sober(categories: list[SoberCategory], today: Optional[date] = None) -> None:
    if not categories:
        console.print(Panel("Nothing tracked yet.", title="Sober Tracker", border_style="dim"))
        return
    table = Table(box=None, pad_edge=False)
    table.add_column("category")
    table.add_column("since")
    table.add_column("days", justify="right")
    for cat in categories:
        days = sober_days(cat.start_date, today)
        table.add_row(cat.name, cat.start_date.isoformat(), str(days))
    console.print(Panel(table, title="Sober Tracker", border_style="green"))


def print_history(history: list[HistoryEntry]) -> None:
    if not history:
        console.print(Panel("No activity yet.", title="History", border_style="dim"))
        return
    table = Table(box=None, pad_edge=False)
    table.add_column("when")
    table.add_column("tool")
    table.add_column("action")
    # Most recent first
    for entry in reversed(history):
        table.add_row(f"{entry.timestamp:%Y-%m-%d %H:%M}", entry.tool, entry.action)
    console.print(Panel(table, title="History", border_style="blue"))


def print_chat(messages: list[ChatMessage]) -> None:
    for msg in messages:
        if msg.role is ChatRole.USER:
            console.print(f"[bold cyan]You:[/bold cyan] {escape(msg.content)}")
        else:
            console.print(f"[magenta]Calmly:[/magenta] {escape(msg.content)}")


def print_profile(username: str, stats: ProfileStats) -> None:
    lines = [
        f"Challenges completed: {stats.challenges}",
        f"Breathing exercises completed: {stats.breathing_exercises}",
        f"Sobriety categories tracked: {stats.sobriety_categories}",
        f"Mood entries: {stats.mood_entries}",
    ]
    console.print(Panel("\n".join(lines), title=f"Profile: {username}", border_style="green"))


def print_nudge(message: str) -> None:
    """Print an encouragement message in a styled panel."""
    text = Text(message, justify="center")
    console.print(Panel(text, border_style="magenta", padding=(1, 4)))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]{message}[/blue]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{escape(message)}[/yellow]")


def create_session_progress() -> Progress:
    """Progress display for a breathing session: phase bar and overall bar."""
    return Progress(
        TextColumn("{task.description}", justify="left"),
        BarColumn(bar_width=40),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeRemainingColumn(),
        console=console,
    )
