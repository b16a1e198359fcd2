"""Message, event and content-block models."""
from __future__ import annotations

from groupchat.shared.models.content import (
    AgentResponse,
    ContentBlock,
    ContentGroup,
    GroupedBlock,
    PermissionRequest,
    TextBlock,
    ThinkingBlock,
    ToolGroup,
    ToolGroupItem,
    ToolResultBlock,
    ToolUseBlock,
)
from groupchat.shared.models.events import AgentEvent, ConversationRecord, EventKind
from groupchat.shared.models.message import ChatMessage, MessageType

__all__ = [
    "AgentEvent",
    "AgentResponse",
    "ChatMessage",
    "ContentBlock",
    "ContentGroup",
    "ConversationRecord",
    "EventKind",
    "GroupedBlock",
    "MessageType",
    "PermissionRequest",
    "TextBlock",
    "ThinkingBlock",
    "ToolGroup",
    "ToolGroupItem",
    "ToolResultBlock",
    "ToolUseBlock",
]
