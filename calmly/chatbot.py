"""Scripted supportive replies for the chat screen.

There is no model behind this: a few keywords pick a reply, anything else
gets a gentle prompt to keep talking.
"""

from __future__ import annotations

import logging

from calmly.models import ChatMessage, ChatRole

log = logging.getLogger(__name__)

GREETING = "Hello! I’m here to help you. How are you feeling today?"
FALLBACK = "Something went wrong. Let's try again."

_LOW_WORDS = ("sad", "depressed")
_HIGH_WORDS = ("happy",)

_LOW_REPLY = "I'm sorry you're feeling this way. Can you tell me more about what's troubling you?"
_HIGH_REPLY = "That's wonderful to hear! What's making you feel happy today?"
_LISTEN_REPLY = "I'm here to listen. Please tell me more."


def reply_to(text: str) -> str:
    """Pick a reply for one user message."""
    lowered = text.lower()
    if any(word in lowered for word in _LOW_WORDS):
        return _LOW_REPLY
    if any(word in lowered for word in _HIGH_WORDS):
        return _HIGH_REPLY
    return _LISTEN_REPLY


def respond(messages: list[ChatMessage], text: str) -> list[ChatMessage]:
    """Return the conversation with the user's message and the reply appended.

    Blank input leaves the conversation unchanged.
    """
    if not text.strip():
        return messages
    updated = [*messages, ChatMessage(role=ChatRole.USER, content=text)]
    try:
        answer = reply_to(text)
    except Exception:
        log.warning("Chat reply failed", exc_info=True)
        answer = FALLBACK
    return [*updated, ChatMessage(role=ChatRole.PSYCHOLOGIST, content=answer)]
