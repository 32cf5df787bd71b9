"""Tests for per-user feature records."""

from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest

from calmly import records
from calmly.chatbot import GREETING
from calmly.clock import ManualClock
from calmly.epoch import DailyGate
from calmly.models import ChatRole, Mood, ProgramTask, User
from calmly.storage import MemoryStore

USER = "alice"


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(today=date(2024, 5, 1))


@pytest.fixture
def gate(store: MemoryStore, clock: ManualClock) -> DailyGate:
    return DailyGate(store, clock)


class TestCurrentUser:
    def test_none_by_default(self, store) -> None:
        assert records.get_current_user(store) is None

    def test_save_and_clear(self, store) -> None:
        records.save_current_user(store, User(username=USER, dob="1990-01-01"))
        assert records.get_current_user(store) == User(username=USER, dob="1990-01-01")
        records.clear_current_user(store)
        assert records.get_current_user(store) is None

    def test_garbage_reads_as_logged_out(self) -> None:
        assert records.get_current_user(MemoryStore({"user": "[1, 2]"})) is None


class TestJournal:
    def test_add_entry_ticks_program(self, store, gate) -> None:
        records.add_journal_entry(store, gate, USER, "Slept well.")
        assert [e.entry for e in records.list_journal(store, USER)] == ["Slept well."]
        assert records.get_program(gate, USER)[ProgramTask.JOURNAL]

    def test_blank_entry_rejected(self, store, gate) -> None:
        with pytest.raises(ValueError, match="write something"):
            records.add_journal_entry(store, gate, USER, "   ")
        assert records.list_journal(store, USER) == []
        assert not records.get_program(gate, USER)[ProgramTask.JOURNAL]

    def test_entries_survive_new_day(self, store, gate, clock) -> None:
        records.add_journal_entry(store, gate, USER, "Day one")
        clock.next_day()
        assert not records.get_program(gate, USER)[ProgramTask.JOURNAL]
        assert len(records.list_journal(store, USER)) == 1

    def test_clear(self, store, gate) -> None:
        records.add_journal_entry(store, gate, USER, "Gone soon")
        records.clear_journal(store, USER)
        assert records.list_journal(store, USER) == []

    def test_malformed_items_skipped(self, store) -> None:
        store.set(
            "journalEntries_alice",
            '[{"date": "2024-05-01T10:00:00", "entry": "ok"}, {"entry": ""}]',
        )
        assert [e.entry for e in records.list_journal(store, USER)] == ["ok"]


class TestNotes:
    def test_add_and_list(self, store) -> None:
        records.add_note(store, USER, "Buy tea")
        assert [n.content for n in records.list_notes(store, USER)] == ["Buy tea"]

    @patch("calmly.records.time.time", return_value=1.0)
    def test_ids_unique_within_same_millisecond(self, mock_time, store) -> None:
        first = records.add_note(store, USER, "one")
        second = records.add_note(store, USER, "two")
        assert first.id == 1000
        assert second.id == 1001

    def test_blank_rejected(self, store) -> None:
        with pytest.raises(ValueError):
            records.add_note(store, USER, "")

    def test_delete(self, store) -> None:
        note = records.add_note(store, USER, "Temporary")
        assert records.delete_note(store, USER, note.id)
        assert records.list_notes(store, USER) == []
        assert not records.delete_note(store, USER, note.id)


class TestMood:
    def test_save_and_get(self, store) -> None:
        records.save_mood(store, USER, Mood.LOVE)
        assert records.get_mood(store, USER).mood is Mood.LOVE
        history = records.list_history(store, USER)
        assert history[-1].tool == "Mood Tracker"
        assert history[-1].action == "Saved Mood: In Love"

    def test_none_saved(self, store) -> None:
        assert records.get_mood(store, USER) is None


class TestSober:
    def test_days(self) -> None:
        assert records.sober_days(date(2024, 1, 1), date(2024, 1, 31)) == 30
        assert records.sober_days(date(2024, 2, 1), date(2024, 1, 31)) == 0

    def test_add(self, store) -> None:
        cat = records.add_sober_category(store, USER, " Coffee ", "2024-04-01")
        assert cat.name == "Coffee"
        assert cat.start_date == date(2024, 4, 1)
        assert records.list_history(store, USER)[-1].action == "Started Tracking: Coffee"

    def test_duplicate_rejected(self, store) -> None:
        records.add_sober_category(store, USER, "Coffee", "2024-04-01")
        with pytest.raises(ValueError, match="Already tracking"):
            records.add_sober_category(store, USER, "coffee", "2024-04-02")

    def test_bad_date_rejected(self, store) -> None:
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            records.add_sober_category(store, USER, "Coffee", "April")

    def test_blank_name_rejected(self, store) -> None:
        with pytest.raises(ValueError):
            records.add_sober_category(store, USER, "  ", "2024-04-01")

    def test_reset(self, store) -> None:
        records.add_sober_category(store, USER, "Coffee", "2024-04-01")
        assert records.reset_sober_category(store, USER, "Coffee")
        assert records.list_sober_categories(store, USER) == []
        assert records.list_history(store, USER)[-1].action == "Reset Progress: Coffee"
        assert not records.reset_sober_category(store, USER, "Coffee")


class TestBreathing:
    def test_mark_completed(self, store, gate) -> None:
        assert records.mark_exercise_completed(store, gate, USER, "1", "Clear Mind")
        assert records.list_completed_exercises(store, USER) == ["1"]
        assert records.get_program(gate, USER)[ProgramTask.BREATHING]
        entry = records.list_history(store, USER)[-1]
        assert entry.tool == "Breathing"
        assert entry.action == "Completed Exercise: Clear Mind"

    def test_completed_set_has_no_duplicates(self, store, gate) -> None:
        records.mark_exercise_completed(store, gate, USER, "1", "Clear Mind")
        records.mark_exercise_completed(store, gate, USER, "1", "Clear Mind")
        assert records.list_completed_exercises(store, USER) == ["1"]
        assert len(records.list_history(store, USER)) == 2


class TestProgramAndChallenge:
    def test_fresh_program(self, gate) -> None:
        assert records.get_program(gate, USER) == {task: False for task in ProgramTask}

    def test_complete_challenge(self, store, gate) -> None:
        assert records.complete_challenge(store, gate, USER)
        assert records.is_challenge_completed(gate, USER)
        assert records.get_program(gate, USER)[ProgramTask.CHALLENGE]
        assert records.list_history(store, USER)[-1].action == "Completed Today's Challenge"

    def test_challenge_resets_next_day(self, store, gate, clock) -> None:
        records.complete_challenge(store, gate, USER)
        clock.next_day()
        assert not records.is_challenge_completed(gate, USER)
        assert not records.get_program(gate, USER)[ProgramTask.CHALLENGE]

    def test_history_is_never_reset(self, store, gate, clock) -> None:
        records.complete_challenge(store, gate, USER)
        clock.next_day()
        records.get_program(gate, USER)
        assert len(records.list_history(store, USER)) == 1

    def test_clear_today(self, store, gate) -> None:
        records.add_journal_entry(store, gate, USER, "Hello")
        records.complete_challenge(store, gate, USER)
        records.clear_today(gate, USER)
        assert records.get_program(gate, USER) == {task: False for task in ProgramTask}
        assert not records.is_challenge_completed(gate, USER)


class TestChat:
    def test_new_chat_has_greeting(self, store) -> None:
        messages = records.load_chat(store, USER)
        assert len(messages) == 1
        assert messages[0].role is ChatRole.PSYCHOLOGIST
        assert messages[0].content == GREETING

    def test_clear(self, store) -> None:
        records.save_chat(store, USER, [])
        assert records.load_chat(store, USER) == []
        assert records.clear_chat(store, USER)[0].content == GREETING
        assert len(records.load_chat(store, USER)) == 1


class TestProfile:
    def test_stats(self, store, gate) -> None:
        records.complete_challenge(store, gate, USER)
        records.mark_exercise_completed(store, gate, USER, "1", "Clear Mind")
        records.mark_exercise_completed(store, gate, USER, "3", "Dream")
        records.add_sober_category(store, USER, "Sugar", "2024-04-01")
        records.save_mood(store, USER, Mood.HAPPY)
        stats = records.get_profile_stats(store, gate, USER)
        assert stats.challenges == 1
        assert stats.breathing_exercises == 2
        assert stats.sobriety_categories == 1
        assert stats.mood_entries == 1

    def test_empty(self, store, gate) -> None:
        stats = records.get_profile_stats(store, gate, USER)
        assert stats.challenges == 0
        assert stats.mood_entries == 0
