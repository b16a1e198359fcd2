"""Chat message model as delivered by the transport/message store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageType(str, Enum):
    USER = "user"
    SYSTEM = "system"
    CLAUDE_RESPONSE = "claude-response"
    CC = "cc"


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class ChatMessage:
    """A single chat message.

    ``attributes`` is an extensible map supplied by the sender and must be
    treated as untrusted. Agent event payloads live under ``"cc"`` and local
    agent responses under ``"claude"``.
    """

    id: str
    username: str
    content: str = ""
    timestamp: str = ""
    type: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ChatMessage:
        """Build a message from a transport dict, coercing loose types."""
        attributes = payload.get("attributes")
        msg_type = payload.get("type")
        return cls(
            id=_as_str(payload.get("id")),
            username=_as_str(payload.get("username")),
            content=_as_str(payload.get("content")),
            timestamp=_as_str(payload.get("timestamp")),
            type=msg_type if isinstance(msg_type, str) else None,
            attributes=dict(attributes) if isinstance(attributes, dict) else {},
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "username": self.username,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.type is not None:
            d["type"] = self.type
        if self.attributes:
            d["attributes"] = self.attributes
        return d
