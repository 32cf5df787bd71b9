"""Tests for Pydantic models."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from calmly.models import (
    AppConfig,
    BreathingExercise,
    DailyRecord,
    Mood,
    MoodEntry,
    Note,
    SoberCategory,
    User,
)


class TestUser:
    def test_requires_username(self) -> None:
        with pytest.raises(ValidationError):
            User(username="")

    def test_dob_optional(self) -> None:
        assert User(username="alice").dob is None


class TestMood:
    def test_display_names(self) -> None:
        assert Mood.LOVE.display_name == "In Love"
        assert Mood.HAPPY.display_name == "Happy"

    def test_entry_roundtrip(self) -> None:
        entry = MoodEntry(mood=Mood.SAD)
        assert MoodEntry.model_validate_json(entry.model_dump_json()) == entry


class TestNote:
    def test_empty_content_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Note(id=1, content="")


class TestSoberCategory:
    def test_parses_iso_date(self) -> None:
        cat = SoberCategory.model_validate({"name": "Sugar", "start_date": "2024-02-29"})
        assert cat.start_date == date(2024, 2, 29)


class TestDailyRecord:
    def test_defaults(self) -> None:
        record = DailyRecord()
        assert record.last_seen_date is None
        assert not record.is_done("journal")

    def test_is_done(self) -> None:
        assert DailyRecord(completion_flags={"journal": True}).is_done("journal")


class TestBreathingExercise:
    def test_cycle_seconds(self) -> None:
        ex = BreathingExercise(id="1", name="Clear Mind", inhale=4, hold=4, exhale=7, duration=60)
        assert ex.cycle_seconds == 15

    def test_zero_phase_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BreathingExercise(id="x", name="Bad", inhale=0, hold=4, exhale=7, duration=60)


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.db_path is None
        assert config.api_url == "http://127.0.0.1:9000"
        assert config.tick_interval == 0.1
        assert config.countdown_seconds == 3

    def test_tick_interval_bounds(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(tick_interval=0)
        with pytest.raises(ValidationError):
            AppConfig(tick_interval=5)

    def test_json_roundtrip(self) -> None:
        config = AppConfig(db_path="/tmp/calmly.db", api_url="http://example.test")
        assert AppConfig.model_validate_json(config.model_dump_json()) == config
