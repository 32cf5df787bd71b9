"""Calmly CLI -- breathe, reflect, and keep track of the small wins."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from calmly import auth, breathing, chatbot, display, records
from calmly import config as cfg
from calmly.epoch import DailyGate
from calmly.errors import InvalidConfigError, StorageError
from calmly.models import Mood, User
from calmly.storage import SqliteStore, open_store

app = typer.Typer(
    name="calmly",
    help="Small daily practices for a calmer mind.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _store() -> SqliteStore:
    """Open the local store (convenience wrapper)."""
    try:
        return open_store()
    except StorageError as exc:
        display.print_warning(str(exc))
        raise typer.Exit(1)


def _require_user(store: SqliteStore) -> User:
    user = records.get_current_user(store)
    if user is None:
        display.print_warning("You are not logged in. Run `calmly login` first.")
        store.close()
        raise typer.Exit(1)
    return user


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@app.command()
def register(
    username: str = typer.Argument(..., help="Choose a username"),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True, help="Choose a password"
    ),
    dob: str = typer.Option(..., prompt="Date of birth (YYYY-MM-DD)", help="Date of birth"),
) -> None:
    """Create an account on the auth server and log in."""
    result = auth.register(cfg.load_config().api_url, username, password, dob)
    if not result.ok:
        display.print_warning(result.message or "Registration failed.")
        raise typer.Exit(1)
    with _store() as store:
        records.save_current_user(store, result.user or User(username=username, dob=dob))
    display.print_success(f"Welcome, {username}!")


@app.command()
def login(
    username: str = typer.Argument(..., help="Your username"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Your password"),
) -> None:
    """Log in against the auth server."""
    result = auth.login(cfg.load_config().api_url, username, password)
    if not result.ok:
        display.print_warning(result.message or "Login failed.")
        raise typer.Exit(1)
    with _store() as store:
        records.save_current_user(store, result.user or User(username=username))
    display.print_success(f"Logged in as {username}.")


@app.command()
def logout() -> None:
    """Forget the logged-in user on this device."""
    with _store() as store:
        records.clear_current_user(store)
    display.print_success("Logged out.")


@app.command()
def whoami() -> None:
    """Show who is logged in."""
    with _store() as store:
        user = _require_user(store)
    display.print_info(user.username + (f" (born {user.dob})" if user.dob else ""))


# ---------------------------------------------------------------------------
# Breathing
# ---------------------------------------------------------------------------


@app.command()
def breathe(
    exercise_id: Optional[str] = typer.Argument(None, help="Exercise to start (1-3)"),
) -> None:
    """List breathing exercises, or start one."""
    store = _store()
    user = _require_user(store)
    if exercise_id is None:
        completed = set(records.list_completed_exercises(store, user.username))
        display.print_exercises(list(breathing.EXERCISES.values()), completed)
        store.close()
        return

    try:
        exercise = breathing.get_exercise(exercise_id)
    except KeyError:
        display.print_warning(f"No exercise #{exercise_id}. Pick 1, 2 or 3.")
        store.close()
        raise typer.Exit(1)

    settings = cfg.load_config()
    display.print_info(
        f"{exercise.name}: inhale {exercise.inhale}s, hold {exercise.hold}s, "
        f"exhale {exercise.exhale}s for {exercise.duration // 60} min."
    )
    breathing.run_session(
        exercise,
        user.username,
        store,
        DailyGate(store),
        tick_interval=settings.tick_interval,
        countdown=settings.countdown_seconds,
    )
    store.close()


# ---------------------------------------------------------------------------
# Today's program & challenge
# ---------------------------------------------------------------------------


@app.command()
def program(
    clear: bool = typer.Option(False, "--clear", help="Clear all of today's progress"),
) -> None:
    """See what is left on today's program."""
    store = _store()
    user = _require_user(store)
    gate = DailyGate(store)
    if clear:
        records.clear_today(gate, user.username)
        display.print_success("All data for today has been cleared!")
    display.print_program(records.get_program(gate, user.username))
    store.close()


@app.command()
def challenge(
    complete: bool = typer.Option(False, "--complete", help="Mark today's challenge done"),
) -> None:
    """Today's challenge: meditate for 20 minutes."""
    store = _store()
    user = _require_user(store)
    gate = DailyGate(store)
    if complete:
        if not records.complete_challenge(store, gate, user.username):
            display.print_warning("Could not save that, but it still counts.")
        display.print_success("Challenge completed!")
    elif records.is_challenge_completed(gate, user.username):
        display.print_success("Today's challenge is done. See you tomorrow.")
    else:
        display.print_info("Today's challenge: meditate for 20 minutes.")
        display.print_info("Run `calmly challenge --complete` when you are done.")
    store.close()


# ---------------------------------------------------------------------------
# Journal, notes, mood
# ---------------------------------------------------------------------------


@app.command()
def journal(
    text: Optional[str] = typer.Argument(None, help="Write a new entry"),
    clear: bool = typer.Option(False, "--clear", help="Delete all journal entries"),
) -> None:
    """Write about how you feel today, or read past entries."""
    store = _store()
    user = _require_user(store)
    if clear:
        if typer.confirm("Clear all journal entries?", default=False):
            records.clear_journal(store, user.username)
            display.print_success("Journal cleared.")
    elif text is not None:
        try:
            records.add_journal_entry(store, DailyGate(store), user.username, text)
        except ValueError as exc:
            display.print_warning(str(exc))
            store.close()
            raise typer.Exit(1)
        display.print_success("Entry saved.")
    else:
        display.print_journal(records.list_journal(store, user.username))
    store.close()


@app.command()
def notes(
    add: Optional[str] = typer.Option(None, "--add", "-a", help="Add a note"),
    delete: Optional[int] = typer.Option(None, "--delete", "-d", help="Delete a note by id"),
) -> None:
    """Keep quick notes."""
    store = _store()
    user = _require_user(store)
    if add is not None:
        try:
            note = records.add_note(store, user.username, add)
        except ValueError as exc:
            display.print_warning(str(exc))
            store.close()
            raise typer.Exit(1)
        display.print_success(f"Added note #{note.id}.")
    elif delete is not None:
        if not records.delete_note(store, user.username, delete):
            display.print_warning(f"Note #{delete} not found.")
            store.close()
            raise typer.Exit(1)
        display.print_success(f"Deleted note #{delete}.")
    else:
        display.print_notes(records.list_notes(store, user.username))
    store.close()


@app.command()
def mood(
    choice: Optional[str] = typer.Argument(
        None, help="happy, neutral, sad, angry or love"
    ),
) -> None:
    """Record how you feel, or show your last mood."""
    store = _store()
    user = _require_user(store)
    if choice is None:
        entry = records.get_mood(store, user.username)
        if entry is None:
            display.print_info("No mood saved yet.")
        else:
            display.print_info(
                f"Last mood: {entry.mood.display_name} ({entry.date:%Y-%m-%d %H:%M})"
            )
        store.close()
        return
    try:
        selected = Mood(choice.lower())
    except ValueError:
        display.print_warning(f"Unknown mood '{choice}'. Use: {', '.join(m.value for m in Mood)}.")
        store.close()
        raise typer.Exit(1)
    records.save_mood(store, user.username, selected)
    display.print_success(f"Mood saved: {selected.display_name}")
    store.close()


# ---------------------------------------------------------------------------
# Sober tracker
# ---------------------------------------------------------------------------


@app.command()
def sober(
    add: Optional[str] = typer.Option(None, "--add", help="Start tracking a category"),
    since: Optional[str] = typer.Option(None, "--since", help="Start date (YYYY-MM-DD)"),
    reset: Optional[str] = typer.Option(None, "--reset", help="Stop tracking a category"),
) -> None:
    """Count the days since you stopped something."""
    store = _store()
    user = _require_user(store)
    if add is not None:
        try:
            records.add_sober_category(store, user.username, add, since or "")
        except ValueError as exc:
            display.print_warning(str(exc))
            store.close()
            raise typer.Exit(1)
        display.print_success(f"Tracking {add.strip()}.")
    elif reset is not None:
        if not typer.confirm(f'Reset progress for "{reset}"?', default=False):
            store.close()
            return
        if not records.reset_sober_category(store, user.username, reset):
            display.print_warning(f"Not tracking '{reset}'.")
            store.close()
            raise typer.Exit(1)
        display.print_success(f"Reset {reset}.")
    display.print_sober(records.list_sober_categories(store, user.username))
    store.close()


# ---------------------------------------------------------------------------
# Chat, history, profile
# ---------------------------------------------------------------------------


@app.command()
def chat(
    message: Optional[str] = typer.Argument(None, help="Say something"),
    clear: bool = typer.Option(False, "--clear", help="Start the conversation over"),
) -> None:
    """Talk things through."""
    store = _store()
    user = _require_user(store)
    if clear:
        display.print_chat(records.clear_chat(store, user.username))
        store.close()
        return
    messages = records.load_chat(store, user.username)
    if message is None:
        display.print_chat(messages)
        store.close()
        return
    updated = chatbot.respond(messages, message)
    records.save_chat(store, user.username, updated)
    display.print_chat(updated[len(messages):])
    store.close()


@app.command()
def history() -> None:
    """Everything you have done, most recent first."""
    store = _store()
    user = _require_user(store)
    display.print_history(records.list_history(store, user.username))
    store.close()


@app.command()
def profile() -> None:
    """Your progress at a glance."""
    store = _store()
    user = _require_user(store)
    stats = records.get_profile_stats(store, DailyGate(store), user.username)
    display.print_profile(user.username, stats)
    store.close()


# ---------------------------------------------------------------------------
# Configuration & server
# ---------------------------------------------------------------------------


@app.command()
def config(
    db_path: Optional[str] = typer.Option(
        None, "--db-path",
        help="Set a custom database file path",
    ),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Auth server base URL"),
    tick: Optional[float] = typer.Option(
        None, "--tick", help="Seconds between session updates (0-1]"
    ),
    countdown: Optional[int] = typer.Option(
        None, "--countdown", help="Get-ready seconds before a session (0-10)"
    ),
    reset: bool = typer.Option(False, "--reset", help="Reset to default local DB"),
    show: bool = typer.Option(False, "--show", help="Show current config"),
) -> None:
    """Configure storage, the auth server and session pacing."""
    try:
        if db_path:
            result = cfg.set_db_path(db_path)
            display.print_success(f"Database path set to: {result.db_path}")
        elif api_url:
            result = cfg.set_api_url(api_url)
            display.print_success(f"Auth server set to: {result.api_url}")
        elif tick is not None or countdown is not None:
            result = cfg.set_session_pacing(tick, countdown)
            display.print_success(
                f"Sessions tick every {result.tick_interval}s "
                f"after a {result.countdown_seconds}s countdown."
            )
        elif reset:
            cfg.set_db_path(None)
            display.print_success("Reset to default local database.")
        elif show:
            current = cfg.load_config()
            resolved = cfg.get_db_path()
            if current.db_path:
                display.print_info(f"Database: {current.db_path}")
            else:
                display.print_info(f"Database: {resolved} (default)")
            display.print_info(f"Auth server: {current.api_url}")
            display.print_info(f"Tick interval: {current.tick_interval}s")
            display.print_info(f"Countdown: {current.countdown_seconds}s")
        else:
            display.print_info("Use --db-path, --api-url, --tick, --countdown, --reset, or --show.")
    except InvalidConfigError as exc:
        display.print_warning(str(exc))
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int = typer.Option(9000, "--port", "-p", help="Port to listen on"),
) -> None:
    """Run the demo login/register server."""
    from calmly.server import serve as run_server

    display.print_info(f"Auth server on http://{host}:{port}")
    run_server(host=host, port=port)

