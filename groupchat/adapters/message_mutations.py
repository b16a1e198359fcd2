"""Mutator registry for agent message formats.

Each mutator either handles an incoming message (returning the new list) or
returns None to let the next one try. Messages no mutator claims are
appended unchanged.
"""
from __future__ import annotations

from collections.abc import Callable

from groupchat.adapters.normalizer import is_turn_event_message
from groupchat.adapters.turn_events import upsert_turn_event
from groupchat.shared.models.message import ChatMessage

AgentMessageMutator = Callable[
    [list[ChatMessage], ChatMessage, str | None], list[ChatMessage] | None
]


def _upsert_turn_event_mutator(
    messages: list[ChatMessage],
    incoming: ChatMessage,
    self_username: str | None,
) -> list[ChatMessage] | None:
    if not is_turn_event_message(incoming):
        return None
    return upsert_turn_event(messages, incoming, self_username)


# Add mutators in priority order as new agent message formats appear.
AGENT_MESSAGE_MUTATORS: list[AgentMessageMutator] = [
    _upsert_turn_event_mutator,
]


def upsert_agent_message(
    messages: list[ChatMessage],
    incoming: ChatMessage,
    self_username: str | None,
) -> list[ChatMessage]:
    for mutate in AGENT_MESSAGE_MUTATORS:
        updated = mutate(messages, incoming, self_username)
        if updated is not None:
            return updated
    return [*messages, incoming]


def condense_agent_messages(
    messages: list[ChatMessage],
    self_username: str | None,
) -> list[ChatMessage]:
    """Normalize a freshly fetched history page into live-upsert shape."""
    condensed: list[ChatMessage] = []
    for message in messages:
        condensed = upsert_agent_message(condensed, message, self_username)
    return condensed
