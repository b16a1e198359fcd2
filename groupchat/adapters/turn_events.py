"""Turn aggregation for agent event messages.

A remote agent turn arrives as a series of separate chat messages, one per
event (question, tool call, streamed text, result). These functions fold
them into a single accumulated message per grouping key, so the renderer
sees one entry exposing ordered (event, content) pairs.

Both operations are pure and return a new list. Driving :func:`upsert_turn_event`
one message at a time and running :func:`condense_turn_events` over the same
batch produce the same structure, and condensing is idempotent.
"""
from __future__ import annotations

import logging
from dataclasses import replace

from groupchat.adapters.normalizer import (
    EVENT_ATTRIBUTE,
    grouping_key,
    read_event,
    read_record,
)
from groupchat.shared.models.events import ConversationRecord
from groupchat.shared.models.message import ChatMessage, MessageType

logger = logging.getLogger(__name__)


def _with_record(message: ChatMessage, record: ConversationRecord, content: str) -> ChatMessage:
    return replace(
        message,
        content=content,
        type=MessageType.CC.value,
        attributes={**message.attributes, EVENT_ATTRIBUTE: record.to_attribute()},
    )


def find_record_index(messages: list[ChatMessage], username: str, key: str) -> int | None:
    """Index of the first record by *username* whose own event maps to *key*."""
    for index, candidate in enumerate(messages):
        if candidate.username != username:
            continue
        event = read_event(candidate)
        if event is not None and grouping_key(candidate.username, event) == key:
            return index
    return None


def upsert_turn_event(
    messages: list[ChatMessage],
    incoming: ChatMessage,
    self_username: str | None,
) -> list[ChatMessage]:
    """Merge *incoming* into the accumulated record it belongs to.

    Messages without a valid event are appended unchanged. Events authored
    by *self_username* are dropped: the local client already shows its own
    agent turns, so the broadcast copy would duplicate them.
    """
    event = read_event(incoming)
    if event is None:
        return [*messages, incoming]

    if self_username and incoming.username == self_username:
        logger.debug("upsert_turn_event: ignoring own echo %s (turn %s)", incoming.id, event.turn_id)
        return list(messages)

    key = grouping_key(incoming.username, event)
    index = find_record_index(messages, incoming.username, key)

    if index is None:
        # Carried history is adopted only when it ends with the message's own
        # event; the record must stay under the key it was looked up by.
        carried = read_record(incoming)
        if carried is not None and carried.latest == event:
            record = carried
        else:
            record = (carried or ConversationRecord()).append(event, incoming.content)
        logger.debug("upsert_turn_event: new record %s for %s (%d events)", incoming.id, key, len(record.events))
        return [*messages, _with_record(incoming, record, incoming.content)]

    existing = messages[index]
    existing_record = read_record(existing)
    if existing_record is None:
        return [*messages, incoming]

    record = existing_record.append(event, incoming.content)
    logger.debug(
        "upsert_turn_event: merged %s into %s (%d events)",
        incoming.id, existing.id, len(record.events),
    )
    updated = _with_record(existing, record, incoming.content)
    return [updated if i == index else candidate for i, candidate in enumerate(messages)]


def condense_turn_events(
    messages: list[ChatMessage],
    self_username: str | None,
) -> list[ChatMessage]:
    """Fold :func:`upsert_turn_event` over a history page, in order."""
    condensed: list[ChatMessage] = []
    for message in messages:
        condensed = upsert_turn_event(condensed, message, self_username)
    return condensed
