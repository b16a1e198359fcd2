"""Agent event normalizer.

Turns the untrusted ``attributes["cc"]`` payload of a chat message into a
typed :class:`AgentEvent`. This is an allow-list: only the five known fields
are read, each is type-checked, and nothing else is forwarded downstream.
Payloads that fail validation are not errors; the message is simply treated
as an ordinary chat message.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from groupchat.shared.models.events import (
    EVENT_KINDS,
    AgentEvent,
    ConversationRecord,
    EventKind,
)
from groupchat.shared.models.message import ChatMessage

logger = logging.getLogger(__name__)

# Key under ``ChatMessage.attributes`` that carries agent event payloads.
EVENT_ATTRIBUTE = "cc"


def normalize_session_id(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_event(payload: Any) -> AgentEvent | None:
    """Validate and coerce a raw event payload.

    Returns None unless ``turn_id`` is a string and ``event`` is a known
    kind. ``tool_name`` and ``is_error`` are dropped when mistyped.
    """
    if not isinstance(payload, Mapping):
        return None
    turn_id = payload.get("turn_id")
    kind = payload.get("event")
    if not isinstance(turn_id, str) or not isinstance(kind, str) or kind not in EVENT_KINDS:
        return None

    tool_name = payload.get("tool_name")
    is_error = payload.get("is_error")
    return AgentEvent(
        turn_id=turn_id,
        event=EventKind(kind),
        session_id=normalize_session_id(payload.get("session_id")),
        tool_name=tool_name if isinstance(tool_name, str) else None,
        is_error=is_error if isinstance(is_error, bool) else None,
    )


def get_event_payload(message: ChatMessage) -> Mapping[str, Any] | None:
    payload = message.attributes.get(EVENT_ATTRIBUTE)
    return payload if isinstance(payload, Mapping) else None


def read_event(message: ChatMessage) -> AgentEvent | None:
    """Return the message's own (latest) event, or None."""
    return normalize_event(get_event_payload(message))


def is_turn_event_message(message: ChatMessage) -> bool:
    return read_event(message) is not None


def grouping_key(username: str, event: AgentEvent) -> str:
    """Key locating the accumulated record an event belongs to."""
    if event.session_id:
        return f"{username}:session:{event.session_id}"
    return f"{username}:turn:{event.turn_id}"


def read_record(message: ChatMessage) -> ConversationRecord | None:
    """Read the accumulated (event, content) history carried by a message.

    History entries are validated pairwise: an entry whose event fails
    normalization is dropped together with its content. Without usable
    history the record is the message's own event and content.
    """
    payload = get_event_payload(message)
    latest = normalize_event(payload)
    if payload is None or latest is None:
        return None

    raw_events = payload.get("events")
    raw_contents = payload.get("contents")
    contents: list[str] | None = None
    if isinstance(raw_contents, list):
        contents = [entry if isinstance(entry, str) else "" for entry in raw_contents]

    if isinstance(raw_events, list):
        padded = (contents or []) + [""] * max(0, len(raw_events) - len(contents or []))
        events: list[AgentEvent] = []
        kept: list[str] = []
        for raw_event, content in zip(raw_events, padded):
            event = normalize_event(raw_event)
            if event is None:
                continue
            events.append(event)
            kept.append(content)
        if len(events) != len(raw_events):
            logger.debug(
                "read_record: dropped %d invalid history entries from message %s",
                len(raw_events) - len(events), message.id,
            )
        if events:
            return ConversationRecord(events=events, contents=kept)

    fallback = contents[0] if contents else message.content
    return ConversationRecord(events=[latest], contents=[fallback])
