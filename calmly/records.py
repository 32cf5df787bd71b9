"""Per-user feature data. All public functions take a store and return Pydantic models.

Lists (history, journal, notes, chat, sobriety categories) are append-only
JSON arrays under one key per user; they are never cleared by date. Daily
completion flags go through :class:`calmly.epoch.DailyGate`.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Optional

from pydantic import ValidationError

from calmly import storage
from calmly.chatbot import GREETING
from calmly.epoch import CHALLENGE, PROGRAM, DailyGate
from calmly.models import (
    ChatMessage,
    ChatRole,
    HistoryEntry,
    JournalEntry,
    Mood,
    MoodEntry,
    Note,
    ProfileStats,
    ProgramTask,
    SoberCategory,
    User,
)
from calmly.storage import KeyValueStore, user_key

log = logging.getLogger(__name__)


def _load_list(store: KeyValueStore, key: str, model: type) -> list:
    """Decode a JSON array into models, skipping items that no longer validate."""
    data = storage.read_json(store, key, default=[])
    if not isinstance(data, list):
        return []
    items = []
    for raw in data:
        try:
            items.append(model.model_validate(raw))
        except ValidationError:
            log.warning("Skipping malformed %s in %s", model.__name__, key)
    return items


def _save_list(store: KeyValueStore, key: str, items: list) -> bool:
    return storage.write_json(store, key, [i.model_dump(mode="json") for i in items])


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------


def save_current_user(store: KeyValueStore, user: User) -> bool:
    return storage.write_text(store, storage.CURRENT_USER_KEY, user.model_dump_json())


def get_current_user(store: KeyValueStore) -> Optional[User]:
    """Return the logged-in user, or None."""
    raw = storage.read_json(store, storage.CURRENT_USER_KEY)
    if not isinstance(raw, dict):
        return None
    try:
        return User.model_validate(raw)
    except ValidationError:
        return None


def clear_current_user(store: KeyValueStore) -> bool:
    return storage.remove_key(store, storage.CURRENT_USER_KEY)


# ---------------------------------------------------------------------------
# Activity history
# ---------------------------------------------------------------------------


def add_history(store: KeyValueStore, username: str, tool: str, action: str) -> HistoryEntry:
    """Append an entry to the user's activity history."""
    key = user_key(storage.HISTORY, username)
    entry = HistoryEntry(tool=tool, action=action)
    history = _load_list(store, key, HistoryEntry)
    history.append(entry)
    _save_list(store, key, history)
    return entry


def list_history(store: KeyValueStore, username: str) -> list[HistoryEntry]:
    """Oldest first."""
    return _load_list(store, user_key(storage.HISTORY, username), HistoryEntry)


# ---------------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------------


def add_journal_entry(
    store: KeyValueStore, gate: DailyGate, username: str, text: str
) -> JournalEntry:
    """Save a reflection and tick off today's journal task."""
    if not text.strip():
        raise ValueError("Please write something before saving.")
    key = user_key(storage.JOURNAL_ENTRIES, username)
    entry = JournalEntry(entry=text)
    entries = _load_list(store, key, JournalEntry)
    entries.append(entry)
    _save_list(store, key, entries)
    gate.mark(username, PROGRAM, ProgramTask.JOURNAL.value)
    return entry


def list_journal(store: KeyValueStore, username: str) -> list[JournalEntry]:
    return _load_list(store, user_key(storage.JOURNAL_ENTRIES, username), JournalEntry)


def clear_journal(store: KeyValueStore, username: str) -> bool:
    return storage.remove_key(store, user_key(storage.JOURNAL_ENTRIES, username))


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


def add_note(store: KeyValueStore, username: str, content: str) -> Note:
    if not content.strip():
        raise ValueError("A note cannot be empty.")
    key = user_key(storage.NOTES, username)
    notes = _load_list(store, key, Note)
    note_id = int(time.time() * 1000)
    # Two notes in the same millisecond still need distinct ids
    taken = {n.id for n in notes}
    while note_id in taken:
        note_id += 1
    note = Note(id=note_id, content=content)
    notes.append(note)
    _save_list(store, key, notes)
    return note


def delete_note(store: KeyValueStore, username: str, note_id: int) -> bool:
    """Remove a note. Returns False if there was no such note."""
    key = user_key(storage.NOTES, username)
    notes = _load_list(store, key, Note)
    remaining = [n for n in notes if n.id != note_id]
    if len(remaining) == len(notes):
        return False
    _save_list(store, key, remaining)
    return True


def list_notes(store: KeyValueStore, username: str) -> list[Note]:
    return _load_list(store, user_key(storage.NOTES, username), Note)


# ---------------------------------------------------------------------------
# Mood
# ---------------------------------------------------------------------------


def save_mood(store: KeyValueStore, username: str, mood: Mood) -> MoodEntry:
    entry = MoodEntry(mood=mood)
    storage.write_text(store, user_key(storage.SELECTED_MOOD, username), entry.model_dump_json())
    add_history(store, username, "Mood Tracker", f"Saved Mood: {mood.display_name}")
    return entry


def get_mood(store: KeyValueStore, username: str) -> Optional[MoodEntry]:
    raw = storage.read_json(store, user_key(storage.SELECTED_MOOD, username))
    if not isinstance(raw, dict):
        return None
    try:
        return MoodEntry.model_validate(raw)
    except ValidationError:
        return None


# ---------------------------------------------------------------------------
# Sobriety tracker
# ---------------------------------------------------------------------------


def sober_days(start: date, today: Optional[date] = None) -> int:
    """Whole days since ``start``; never negative for future dates."""
    today = today or date.today()
    return max((today - start).days, 0)


def list_sober_categories(store: KeyValueStore, username: str) -> list[SoberCategory]:
    return _load_list(store, user_key(storage.SOBER_CATEGORIES, username), SoberCategory)


def add_sober_category(
    store: KeyValueStore, username: str, name: str, start_date: str
) -> SoberCategory:
    """Start tracking ``name`` from ``start_date`` (YYYY-MM-DD)."""
    name = name.strip()
    if not name:
        raise ValueError("Category name is required.")
    try:
        start = date.fromisoformat(start_date.strip())
    except ValueError:
        raise ValueError(f"Invalid start date {start_date!r}; use YYYY-MM-DD.") from None
    key = user_key(storage.SOBER_CATEGORIES, username)
    categories = _load_list(store, key, SoberCategory)
    if any(c.name.lower() == name.lower() for c in categories):
        raise ValueError(f"Already tracking {name!r}.")
    category = SoberCategory(name=name, start_date=start)
    categories.append(category)
    _save_list(store, key, categories)
    add_history(store, username, "Sober Tracker", f"Started Tracking: {name}")
    return category


def reset_sober_category(store: KeyValueStore, username: str, name: str) -> bool:
    """Stop tracking ``name``. Returns False if it was not tracked."""
    key = user_key(storage.SOBER_CATEGORIES, username)
    categories = _load_list(store, key, SoberCategory)
    remaining = [c for c in categories if c.name != name]
    if len(remaining) == len(categories):
        return False
    _save_list(store, key, remaining)
    add_history(store, username, "Sober Tracker", f"Reset Progress: {name}")
    return True


# ---------------------------------------------------------------------------
# Breathing completions
# ---------------------------------------------------------------------------


def list_completed_exercises(store: KeyValueStore, username: str) -> list[str]:
    data = storage.read_json(store, user_key(storage.COMPLETED_EXERCISES, username), default=[])
    if not isinstance(data, list):
        return []
    return [str(x) for x in data]


def mark_exercise_completed(
    store: KeyValueStore,
    gate: DailyGate,
    username: str,
    exercise_id: str,
    exercise_name: str,
) -> bool:
    """Record a finished breathing session. Returns False if it did not persist."""
    key = user_key(storage.COMPLETED_EXERCISES, username)
    completed = list_completed_exercises(store, username)
    ok = True
    if exercise_id not in completed:
        completed.append(exercise_id)
        ok = storage.write_json(store, key, completed)
    add_history(store, username, "Breathing", f"Completed Exercise: {exercise_name}")
    ok = gate.mark(username, PROGRAM, ProgramTask.BREATHING.value) and ok
    return ok


# ---------------------------------------------------------------------------
# Today's program & challenge
# ---------------------------------------------------------------------------


def get_program(gate: DailyGate, username: str) -> dict[ProgramTask, bool]:
    """Today's program with stale completions already cleared."""
    record = gate.load(username, PROGRAM)
    return {task: record.is_done(task.value) for task in ProgramTask}


def is_challenge_completed(gate: DailyGate, username: str) -> bool:
    return gate.load(username, CHALLENGE).is_done(ProgramTask.CHALLENGE.value)


def complete_challenge(store: KeyValueStore, gate: DailyGate, username: str) -> bool:
    """Mark today's challenge done in both the challenge and program records."""
    ok = gate.mark(username, CHALLENGE, ProgramTask.CHALLENGE.value)
    ok = gate.mark(username, PROGRAM, ProgramTask.CHALLENGE.value) and ok
    add_history(store, username, "Challenges", "Completed Today's Challenge")
    return ok


def clear_today(gate: DailyGate, username: str) -> None:
    gate.clear(username, (PROGRAM, CHALLENGE))


# ---------------------------------------------------------------------------
# Chat transcript
# ---------------------------------------------------------------------------


def _greeting() -> ChatMessage:
    return ChatMessage(role=ChatRole.PSYCHOLOGIST, content=GREETING)


def load_chat(store: KeyValueStore, username: str) -> list[ChatMessage]:
    """The saved conversation, or just the greeting for a new one."""
    key = user_key(storage.CHAT_HISTORY, username)
    if storage.read_text(store, key) is None:
        return [_greeting()]
    return _load_list(store, key, ChatMessage)


def save_chat(store: KeyValueStore, username: str, messages: list[ChatMessage]) -> bool:
    return _save_list(store, user_key(storage.CHAT_HISTORY, username), messages)


def clear_chat(store: KeyValueStore, username: str) -> list[ChatMessage]:
    messages = [_greeting()]
    save_chat(store, username, messages)
    return messages


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


def get_profile_stats(store: KeyValueStore, gate: DailyGate, username: str) -> ProfileStats:
    program = get_program(gate, username)
    return ProfileStats(
        challenges=1 if program[ProgramTask.CHALLENGE] else 0,
        breathing_exercises=len(list_completed_exercises(store, username)),
        sobriety_categories=len(list_sober_categories(store, username)),
        mood_entries=1 if get_mood(store, username) is not None else 0,
    )
