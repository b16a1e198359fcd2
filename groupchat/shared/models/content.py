"""Structured agent output: content blocks and their grouped display form.

``ContentBlock`` and ``GroupedBlock`` are closed tagged unions. Consumers
dispatch with ``isinstance`` and finish with ``assert_never`` so a new block
kind shows up in the type checker instead of falling through silently.

Agent responses arrive as loosely typed dicts under
``message.attributes["claude"]``; :func:`read_agent_response` turns them into
typed values and never raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from groupchat.shared.models.message import ChatMessage, MessageType

logger = logging.getLogger(__name__)


# ── Content blocks ──


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResultBlock:
    tool_use_id: str
    content: str | list[ContentBlock] = ""
    is_error: bool = False


@dataclass(frozen=True)
class ThinkingBlock:
    text: str
    budget_tokens: int | None = None


ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock | ThinkingBlock


# ── Grouped blocks ──


@dataclass(frozen=True)
class ToolGroupItem:
    id: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ContentGroup:
    block: ContentBlock


@dataclass
class ToolGroup:
    """Adjacent invocations of the same tool, collapsed for display."""

    name: str
    items: list[ToolGroupItem] = field(default_factory=list)


GroupedBlock = ContentGroup | ToolGroup


# ── Agent response metadata ──


@dataclass
class PermissionRequest:
    """A pending (or resolved) tool permission prompt from a local agent."""

    request_id: str
    tool_name: str
    tool_use_id: str = ""
    input: dict[str, Any] = field(default_factory=dict)
    description: str | None = None
    resolution: str | None = None  # "allowed", "denied", "cancelled"


@dataclass
class AgentResponse:
    """Metadata of a local agent response message."""

    parent_tool_use_id: str | None = None
    content_blocks: list[ContentBlock] = field(default_factory=list)
    model: str | None = None
    stop_reason: str | None = None
    streaming: bool = False
    thinking: bool = False
    interrupted: bool = False
    event_type: str | None = None
    permission_request: PermissionRequest | None = None


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError):
        return str(value)


def parse_content_block(raw: Any) -> ContentBlock | None:
    """Parse one provider content block dict.

    Blocks with an unknown ``type`` keep their payload visible as a text
    block. Structurally broken blocks (non-dicts, tool blocks without ids)
    yield ``None``.
    """
    if not isinstance(raw, dict):
        return None

    block_type = raw.get("type")
    if block_type == "text":
        return TextBlock(text=_coerce_text(raw.get("text")))

    if block_type == "tool_use":
        block_id = raw.get("id")
        name = raw.get("name")
        if not isinstance(block_id, str) or not isinstance(name, str):
            return None
        tool_input = raw.get("input")
        return ToolUseBlock(
            id=block_id,
            name=name,
            input=dict(tool_input) if isinstance(tool_input, dict) else {},
        )

    if block_type == "tool_result":
        tool_use_id = raw.get("tool_use_id")
        if not isinstance(tool_use_id, str):
            return None
        content = raw.get("content")
        if isinstance(content, list):
            nested = parse_content_blocks(content)
            parsed_content: str | list[ContentBlock] = nested
        else:
            parsed_content = _coerce_text(content)
        is_error = raw.get("is_error")
        return ToolResultBlock(
            tool_use_id=tool_use_id,
            content=parsed_content,
            is_error=is_error if isinstance(is_error, bool) else False,
        )

    if block_type == "thinking":
        budget = raw.get("budget_tokens")
        return ThinkingBlock(
            text=_coerce_text(raw.get("thinking")),
            budget_tokens=budget if isinstance(budget, int) and not isinstance(budget, bool) else None,
        )

    logger.debug("parse_content_block: unknown block type %r shown as text", block_type)
    return TextBlock(text=_coerce_text(raw))


def parse_content_blocks(raw: Any) -> list[ContentBlock]:
    if not isinstance(raw, list):
        return []
    blocks: list[ContentBlock] = []
    for entry in raw:
        block = parse_content_block(entry)
        if block is not None:
            blocks.append(block)
    return blocks


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


_RESOLUTIONS = frozenset({"allowed", "denied", "cancelled"})


def parse_permission_request(raw: Any) -> PermissionRequest | None:
    if not isinstance(raw, dict):
        return None
    request_id = raw.get("requestId")
    tool_name = raw.get("toolName")
    if not isinstance(request_id, str) or not isinstance(tool_name, str):
        return None
    tool_input = raw.get("input")
    resolution = raw.get("resolution")
    return PermissionRequest(
        request_id=request_id,
        tool_name=tool_name,
        tool_use_id=_opt_str(raw.get("toolUseId")) or "",
        input=dict(tool_input) if isinstance(tool_input, dict) else {},
        description=_opt_str(raw.get("description")),
        resolution=resolution if resolution in _RESOLUTIONS else None,
    )


def read_agent_response(message: ChatMessage) -> AgentResponse | None:
    """Return typed agent-response metadata, or None for other messages."""
    if message.type != MessageType.CLAUDE_RESPONSE.value:
        return None
    raw = message.attributes.get("claude")
    if not isinstance(raw, dict):
        return None

    parent = raw.get("parentToolUseId")
    return AgentResponse(
        parent_tool_use_id=parent if isinstance(parent, str) and parent else None,
        content_blocks=parse_content_blocks(raw.get("contentBlocks")),
        model=_opt_str(raw.get("model")),
        stop_reason=_opt_str(raw.get("stopReason")),
        streaming=raw.get("streaming") is True,
        thinking=raw.get("thinking") is True,
        interrupted=raw.get("interrupted") is True,
        event_type=_opt_str(raw.get("eventType")),
        permission_request=parse_permission_request(raw.get("permissionRequest")),
    )
