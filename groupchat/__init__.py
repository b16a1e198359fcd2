"""groupchat: agent-turn pipeline for the terminal chat client.

Aggregates streamed agent events into per-turn records, resolves sub-agent
depth, groups tool invocations and sanitizes everything bound for the
terminal.
"""
from __future__ import annotations

__version__ = "0.4.0"

from groupchat.adapters import (
    build_agent_depth_map,
    condense_agent_messages,
    group_blocks,
    resolve_depths,
    upsert_agent_message,
)
from groupchat.shared.formatters.sanitizer import (
    SanitizePolicy,
    sanitize_markdown,
    sanitize_plain_text,
)

__all__ = [
    "SanitizePolicy",
    "build_agent_depth_map",
    "condense_agent_messages",
    "group_blocks",
    "resolve_depths",
    "sanitize_markdown",
    "sanitize_plain_text",
    "upsert_agent_message",
]
