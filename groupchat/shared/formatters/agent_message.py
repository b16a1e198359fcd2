"""Rich line rendering for agent messages.

Converts local agent responses (grouped content blocks) and accumulated
remote agent turns (timelines) into ``rich.text.Text`` lines ready for the
message list. Every string taken from a message goes through the sanitizer
before it is placed in a line, and lines are built with ``Text.append`` so
message text is never parsed as Rich markup.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import assert_never

from rich.text import Text

from groupchat.adapters.grouping import group_message_blocks
from groupchat.adapters.timeline import build_turn_timeline, duration_seconds, parse_timestamp
from groupchat.config import ClientConfig
from groupchat.shared.formatters.sanitizer import sanitize_markdown, sanitize_plain_text
from groupchat.shared.formatters.tool_summary import (
    compact_json,
    content_to_lines,
    permission_one_liner,
    tool_group_one_liner,
)
from groupchat.shared.models.content import (
    ContentBlock,
    ContentGroup,
    TextBlock,
    ThinkingBlock,
    ToolGroup,
    ToolGroupItem,
    ToolResultBlock,
    ToolUseBlock,
    read_agent_response,
)
from groupchat.shared.models.message import ChatMessage, MessageType

AGENT_COLOR = "#FFA500"
DIM_COLOR = "#888888"
USERNAME_COLORS = (
    "cyan",
    "magenta",
    "bright_green",
    "bright_blue",
    "bright_yellow",
    "bright_magenta",
)
THINKING_FRAMES = ("⋆", "✦", "⋆", "✧", "⋆", "❉", "⋆", "❈", "⋆")
BULLET = "⏺ "


def _inline(text: str) -> str:
    return sanitize_plain_text(text, preserve_newlines=False, preserve_tabs=False)


def username_color(username: str) -> str:
    """Stable per-user color."""
    h = 0
    for ch in username:
        h = (ord(ch) + ((h << 5) - h)) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 1 << 32
    return USERNAME_COLORS[abs(h) % len(USERNAME_COLORS)]


def format_time(timestamp: str) -> str:
    dt = parse_timestamp(timestamp)
    if dt is None:
        return ""
    return dt.strftime("%I:%M %p")


def _block_lines(pad: str, text: str, style: str = "") -> list[Text]:
    lines = []
    for line in content_to_lines(sanitize_plain_text(text)):
        row = Text(pad)
        row.append(line, style=style)
        lines.append(row)
    return lines


def _result_text(content: str | list[ContentBlock]) -> str:
    if isinstance(content, str):
        return content
    return compact_json([dataclasses.asdict(block) for block in content], 200)


def _tool_line(pad: str, name: str, items: list[ToolGroupItem]) -> Text:
    row = Text(pad)
    row.append(BULLET, style="green")
    row.append(_inline(tool_group_one_liner(name, items)), style="white")
    return row


def _content_lines(pad: str, block: ContentBlock) -> list[Text]:
    if isinstance(block, TextBlock):
        return _block_lines(pad, block.text)
    if isinstance(block, ThinkingBlock):
        return [Text(pad + "[Thinking]", style=AGENT_COLOR), *_block_lines(pad, block.text, "#BBBBBB")]
    if isinstance(block, ToolResultBlock):
        color = "red" if block.is_error else DIM_COLOR
        header = Text(pad)
        header.append(BULLET, style="red" if block.is_error else "green")
        header.append("Error" if block.is_error else "Result", style=color)
        body_style = "red" if block.is_error else "#AAAAAA"
        return [header, *_block_lines(pad, _result_text(block.content), body_style)]
    if isinstance(block, ToolUseBlock):
        return [_tool_line(pad, block.name, [ToolGroupItem(id=block.id, input=block.input)])]
    assert_never(block)


def render_agent_response(
    message: ChatMessage,
    depth: int = 0,
    config: ClientConfig | None = None,
) -> list[Text]:
    """Render a local agent response, indented by sub-agent *depth*."""
    response = read_agent_response(message)
    if response is None:
        return []
    config = config or ClientConfig()
    indent = " " * config.indent_for(depth)
    body = indent + "  "

    header = Text(indent)
    if depth > 0:
        header.append("↳ ", style=DIM_COLOR)
    header.append("claude", style=f"bold {AGENT_COLOR}")
    stamp = format_time(message.timestamp)
    if stamp:
        header.append(f" {stamp}", style=DIM_COLOR)
    lines = [header]

    for grouped in group_message_blocks(message):
        if isinstance(grouped, ToolGroup):
            lines.append(_tool_line(body, grouped.name, grouped.items))
        elif isinstance(grouped, ContentGroup):
            lines.extend(_content_lines(body, grouped.block))
        else:
            assert_never(grouped)

    permission = response.permission_request
    if permission is not None:
        row = Text(body)
        row.append(BULLET, style="yellow")
        row.append(_inline(permission_one_liner(permission.tool_name, permission.input)))
        if permission.resolution:
            row.append(f" ({permission.resolution})", style=DIM_COLOR)
        lines.append(row)

    if response.thinking:
        lines.append(Text(f"{body}{THINKING_FRAMES[0]} Thinking... ", style=AGENT_COLOR))
    return lines


def render_turn_record(
    message: ChatMessage,
    now: datetime | None = None,
    config: ClientConfig | None = None,
    frame: int = 0,
) -> list[Text]:
    """Render a remote user's accumulated agent turn as a compact summary."""
    timeline = build_turn_timeline(message)
    if not timeline.events:
        return []
    config = config or ClientConfig()
    policy = config.sanitize_policy()
    username = _inline(message.username)
    lines: list[Text] = []

    if timeline.questions:
        header = Text()
        stamp = format_time(message.timestamp)
        if stamp:
            header.append(f"{stamp} ", style=DIM_COLOR)
        header.append(username, style=f"bold {username_color(message.username)}")
        header.append(" ←", style=DIM_COLOR)
        lines.append(header)
        for question in timeline.questions:
            lines.extend(_block_lines("  ", question, "italic"))

    if len(timeline.tool_indexes) > 1:
        lines.append(Text(f"{len(timeline.tool_indexes) - 1} tools used", style=DIM_COLOR))

    if timeline.latest_tool_detail:
        row = Text()
        row.append(BULLET, style="green")
        row.append(_inline(timeline.latest_tool_detail), style=DIM_COLOR)
        lines.append(row)

    if timeline.text:
        text_lines = content_to_lines(sanitize_markdown(timeline.text, policy))
        for i, line in enumerate(text_lines):
            row = Text()
            if timeline.has_result:
                row.append(BULLET if i == 0 else "  ", style="white")
            row.append(line)
            lines.append(row)

    if timeline.is_working:
        elapsed = int(float(duration_seconds(message, now)))
        row = Text()
        row.append(f"{THINKING_FRAMES[frame % len(THINKING_FRAMES)]} Thinking... ", style=AGENT_COLOR)
        row.append(f"({elapsed}s)", style=DIM_COLOR)
        lines.append(row)

    if timeline.has_result:
        outcome = "finished with error" if timeline.is_error else "finished"
        row = Text()
        row.append(BULLET, style="red" if timeline.is_error else DIM_COLOR)
        row.append(
            f"{username}'s Claude {outcome} "
            f"({timeline.turn_count} turns, {duration_seconds(message, now)}s)",
            style="#AA6666" if timeline.is_error else DIM_COLOR,
        )
        lines.append(row)
    return lines


def _render_response(message: ChatMessage, depth: int, config: ClientConfig, now: datetime | None) -> list[Text] | None:
    if message.type != MessageType.CLAUDE_RESPONSE.value:
        return None
    return render_agent_response(message, depth, config)


def _render_turn(message: ChatMessage, depth: int, config: ClientConfig, now: datetime | None) -> list[Text] | None:
    if message.type != MessageType.CC.value:
        return None
    return render_turn_record(message, now, config)


# Add renderers here as new agent message formats are introduced.
AGENT_MESSAGE_RENDERERS = [
    _render_response,
    _render_turn,
]


def render_agent_message(
    message: ChatMessage,
    depth: int = 0,
    config: ClientConfig | None = None,
    now: datetime | None = None,
) -> list[Text] | None:
    """Render an agent message, or None when no renderer claims it."""
    config = config or ClientConfig()
    for render in AGENT_MESSAGE_RENDERERS:
        lines = render(message, depth, config, now)
        if lines is not None:
            return lines
    return None
