"""Agent event models: canonical events and accumulated turn records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    QUESTION = "question"
    TOOL_CALL = "tool_call"
    TEXT = "text"
    RESULT = "result"


EVENT_KINDS: frozenset[str] = frozenset(kind.value for kind in EventKind)


@dataclass(frozen=True)
class AgentEvent:
    """A validated agent event. Only ever built by the normalizer."""

    turn_id: str
    event: EventKind
    session_id: str | None = None
    tool_name: str | None = None
    is_error: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire form, omitting absent fields."""
        d: dict[str, Any] = {"turn_id": self.turn_id, "event": self.event.value}
        if self.session_id is not None:
            d["session_id"] = self.session_id
        if self.tool_name is not None:
            d["tool_name"] = self.tool_name
        if self.is_error is not None:
            d["is_error"] = self.is_error
        return d


@dataclass
class ConversationRecord:
    """Ordered (event, content) history of one accumulated agent turn.

    ``events`` and ``contents`` always have the same length: missing
    contents are padded with ``""`` and surplus contents are dropped.
    """

    events: list[AgentEvent] = field(default_factory=list)
    contents: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        contents = [c if isinstance(c, str) else "" for c in self.contents]
        if len(contents) < len(self.events):
            contents.extend([""] * (len(self.events) - len(contents)))
        self.events = list(self.events)
        self.contents = contents[: len(self.events)]

    @property
    def latest(self) -> AgentEvent | None:
        return self.events[-1] if self.events else None

    def append(self, event: AgentEvent, content: str) -> ConversationRecord:
        """Return a new record with one more (event, content) pair."""
        return ConversationRecord(
            events=[*self.events, event],
            contents=[*self.contents, content],
        )

    def pairs(self) -> list[tuple[AgentEvent, str]]:
        return list(zip(self.events, self.contents))

    def to_attribute(self) -> dict[str, Any]:
        """Render the ``attributes["cc"]`` payload for this record."""
        latest = self.latest
        d: dict[str, Any] = latest.to_dict() if latest is not None else {}
        d["events"] = [event.to_dict() for event in self.events]
        d["contents"] = list(self.contents)
        return d
