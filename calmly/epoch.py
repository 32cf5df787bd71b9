"""Daily reset of "completed today" flags.

Flags such as "today's challenge is done" are only meaningful on the day
they were recorded. :func:`reconcile` compares the stored day against
today and wipes stale flags; :class:`DailyGate` wraps it in the
load-then-reconcile pipeline every screen runs when it is opened.

Append-only records (history, journal, notes, chat) never pass through
here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Union

from calmly import storage
from calmly.clock import Clock, SystemClock, day_string
from calmly.models import DailyRecord, ProgramTask

log = logging.getLogger(__name__)


def reconcile(today: Union[date, str], record: DailyRecord) -> DailyRecord:
    """Return ``record`` if it belongs to ``today``, else a fresh empty record.

    Comparison is by day string, not elapsed hours: 23:59 and 00:01 are
    different days.
    """
    today_str = today if isinstance(today, str) else day_string(today)
    if record.last_seen_date == today_str:
        return record
    return DailyRecord(last_seen_date=today_str, completion_flags={})


@dataclass(frozen=True)
class DailyFeature:
    """Where one gated feature keeps its date marker and its flags.

    ``single_flag`` marks features that store one boolean (``"true"``)
    instead of a JSON mapping; the flag name is what it maps to.
    """

    name: str
    date_prefix: str
    flags_prefix: str
    single_flag: Optional[str] = None


PROGRAM = DailyFeature(
    name="program",
    date_prefix=storage.PROGRAM_DATE,
    flags_prefix=storage.COMPLETED_TASKS,
)
CHALLENGE = DailyFeature(
    name="challenge",
    date_prefix=storage.CHALLENGE_DATE,
    flags_prefix=storage.CHALLENGE_COMPLETED,
    single_flag=ProgramTask.CHALLENGE.value,
)

FEATURES: dict[str, DailyFeature] = {f.name: f for f in (PROGRAM, CHALLENGE)}


class DailyGate:
    """Load a feature's daily record from storage and reconcile it with today."""

    def __init__(self, store: storage.KeyValueStore, clock: Optional[Clock] = None) -> None:
        self.store = store
        self.clock = clock or SystemClock()

    def today(self) -> str:
        return day_string(self.clock.today())

    def load(self, username: str, feature: DailyFeature) -> DailyRecord:
        """Read, reconcile and (if it was reset) persist the reset record."""
        date_key = storage.user_key(feature.date_prefix, username)
        flags_key = storage.user_key(feature.flags_prefix, username)

        stored_date = storage.read_text(self.store, date_key)
        today = self.today()
        if stored_date != today:
            record = reconcile(today, DailyRecord(last_seen_date=stored_date))
            log.debug("Resetting %s for %s (was %s)", feature.name, username, stored_date)
            storage.write_text(self.store, date_key, today)
            storage.remove_key(self.store, flags_key)
            return record

        return reconcile(
            today,
            DailyRecord(
                last_seen_date=stored_date,
                completion_flags=self._read_flags(feature, flags_key),
            ),
        )

    def mark(self, username: str, feature: DailyFeature, flag: str) -> bool:
        """Set ``flag`` for today. Returns False if the write did not persist.

        Single-flag features only accept their own flag name; anything else
        raises ``ValueError`` before storage is touched.
        """
        if feature.single_flag is not None and flag != feature.single_flag:
            raise ValueError(f"{feature.name} only tracks {feature.single_flag!r}, not {flag!r}")
        record = self.load(username, feature)
        flags = {**record.completion_flags, flag: True}
        flags_key = storage.user_key(feature.flags_prefix, username)
        if feature.single_flag is not None:
            return storage.write_text(
                self.store, flags_key, "true" if flags.get(feature.single_flag) else "false"
            )
        return storage.write_json(self.store, flags_key, flags)

    def clear(self, username: str, features: Iterable[DailyFeature] = FEATURES.values()) -> None:
        """Forget today's markers and flags for the given features."""
        for feature in features:
            storage.remove_key(self.store, storage.user_key(feature.flags_prefix, username))
            storage.remove_key(self.store, storage.user_key(feature.date_prefix, username))

    def _read_flags(self, feature: DailyFeature, key: str) -> dict[str, bool]:
        if feature.single_flag is not None:
            raw = storage.read_text(self.store, key)
            return {feature.single_flag: True} if raw == "true" else {}
        data = storage.read_json(self.store, key, default={})
        if not isinstance(data, dict):
            return {}
        return {str(k): bool(v) for k, v in data.items()}
