"""Collapse bursts of same-tool invocations for compact display."""
from __future__ import annotations

from collections.abc import Iterable

from groupchat.shared.models.content import (
    ContentBlock,
    ContentGroup,
    GroupedBlock,
    TextBlock,
    ToolGroup,
    ToolGroupItem,
    ToolUseBlock,
    read_agent_response,
)
from groupchat.shared.models.message import ChatMessage


def group_blocks(blocks: Iterable[ContentBlock]) -> list[GroupedBlock]:
    """Group strictly adjacent ``tool_use`` blocks that share a tool name.

    Any other block, or a different tool name, starts a new group. Each
    grouped call keeps its own id and input for detail views.
    """
    groups: list[GroupedBlock] = []
    for block in blocks:
        if isinstance(block, ToolUseBlock):
            item = ToolGroupItem(id=block.id, input=block.input)
            last = groups[-1] if groups else None
            if isinstance(last, ToolGroup) and last.name == block.name:
                last.items.append(item)
            else:
                groups.append(ToolGroup(name=block.name, items=[item]))
            continue
        groups.append(ContentGroup(block=block))
    return groups


def group_message_blocks(message: ChatMessage) -> list[GroupedBlock]:
    """Group a message's content blocks, falling back to its plain content."""
    response = read_agent_response(message)
    if response is not None and response.content_blocks:
        return group_blocks(response.content_blocks)
    return group_blocks([TextBlock(text=message.content)])
