"""Exception types shared by the core modules."""

from __future__ import annotations


class CalmlyError(Exception):
    """Base class for all Calmly errors."""


class InvalidConfigError(CalmlyError, ValueError):
    """A session configuration is malformed (no phases, non-positive durations)."""


class InvalidStateError(CalmlyError):
    """A scheduler transition was requested from a state that forbids it."""

    def __init__(self, action: str, status: str) -> None:
        super().__init__(f"Cannot {action} a session that is {status}.")
        self.action = action
        self.status = status


class StorageError(CalmlyError, OSError):
    """The key-value store could not be read or written."""
