"""Pydantic models for everything Calmly persists or exchanges."""

from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """The logged-in user as returned by the auth server."""

    username: str = Field(min_length=1)
    dob: Optional[str] = None


class HistoryEntry(BaseModel):
    """One line in the append-only activity history."""

    tool: str
    action: str
    timestamp: datetime = Field(default_factory=datetime.now)


class JournalEntry(BaseModel):
    """A saved journal reflection."""

    date: datetime = Field(default_factory=datetime.now)
    entry: str = Field(min_length=1)


class Note(BaseModel):
    """A short free-form note. ``id`` is a millisecond timestamp."""

    id: int
    content: str = Field(min_length=1)


class Mood(str, enum.Enum):
    """Moods the user can pick."""

    HAPPY = "happy"
    NEUTRAL = "neutral"
    SAD = "sad"
    ANGRY = "angry"
    LOVE = "love"

    @property
    def display_name(self) -> str:
        return _MOOD_NAMES[self]


_MOOD_NAMES: dict[Mood, str] = {
    Mood.HAPPY: "Happy",
    Mood.NEUTRAL: "Neutral",
    Mood.SAD: "Sad",
    Mood.ANGRY: "Angry",
    Mood.LOVE: "In Love",
}


class MoodEntry(BaseModel):
    """The most recently saved mood."""

    mood: Mood
    date: datetime = Field(default_factory=datetime.now)


class SoberCategory(BaseModel):
    """Something the user is staying away from, and since when."""

    name: str = Field(min_length=1, max_length=100)
    start_date: date


class ChatRole(str, enum.Enum):
    USER = "user"
    PSYCHOLOGIST = "psychologist"


class ChatMessage(BaseModel):
    """A single chat bubble."""

    role: ChatRole
    content: str


class ProgramTask(str, enum.Enum):
    """Items on today's program. Each maps to a completion flag."""

    JOURNAL = "journal"
    BREATHING = "breathing"
    CHALLENGE = "challenge"


class DailyRecord(BaseModel):
    """Completion flags that are only valid on ``last_seen_date``.

    ``last_seen_date`` is a day-level string (see ``clock.day_string``).
    """

    last_seen_date: Optional[str] = None
    completion_flags: dict[str, bool] = Field(default_factory=dict)

    def is_done(self, flag: str) -> bool:
        return self.completion_flags.get(flag, False)


class BreathingExercise(BaseModel):
    """A guided breathing pattern: inhale, hold and exhale seconds."""

    id: str
    name: str
    inhale: int = Field(gt=0)
    hold: int = Field(gt=0)
    exhale: int = Field(gt=0)
    duration: int = Field(gt=0)  # whole session, seconds

    @property
    def cycle_seconds(self) -> int:
        return self.inhale + self.hold + self.exhale


class ProfileStats(BaseModel):
    """Counters shown on the profile page."""

    challenges: int = Field(default=0, ge=0)
    breathing_exercises: int = Field(default=0, ge=0)
    sobriety_categories: int = Field(default=0, ge=0)
    mood_entries: int = Field(default=0, ge=0)


class AuthResult(BaseModel):
    """Outcome of a login or register call against the auth server."""

    ok: bool
    status: int = 0
    message: str = ""
    token: Optional[str] = None
    user: Optional[User] = None


class AppConfig(BaseModel):
    """Application settings (persisted to ~/.config/calmly/settings.json)."""

    db_path: Optional[str] = None  # None = use default (~/.local/share/calmly/)
    api_url: str = "http://127.0.0.1:9000"
    tick_interval: float = Field(default=0.1, gt=0, le=1, allow_inf_nan=False)
    countdown_seconds: int = Field(default=3, ge=0, le=10)
