"""Sub-agent nesting depth for agent response messages.

A message produced inside a sub-agent carries the id of the tool call that
spawned it (``parentToolUseId``). The spawning tool call itself lives in a
message that may in turn belong to a sub-agent, so depth is the length of
that chain.

Depth maps are derived values: rebuild them from the full message list on
every change rather than patching them incrementally.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from groupchat.shared.models.content import ToolUseBlock, read_agent_response
from groupchat.shared.models.message import ChatMessage

logger = logging.getLogger(__name__)

# Tool names whose invocation spawns a sub-agent.
SPAWN_TOOL_NAMES: frozenset[str] = frozenset({"Task"})

DepthResolver = Callable[[list[ChatMessage], frozenset[str]], dict[str, int]]


def build_task_parent_index(
    messages: Iterable[ChatMessage],
    spawn_tools: frozenset[str] = SPAWN_TOOL_NAMES,
) -> dict[str, str | None]:
    """Map each spawned task id to the parent tool-use id of its spawner."""
    index: dict[str, str | None] = {}
    for message in messages:
        response = read_agent_response(message)
        if response is None:
            continue
        for block in response.content_blocks:
            if isinstance(block, ToolUseBlock) and block.name in spawn_tools:
                index[block.id] = response.parent_tool_use_id
    return index


def _resolve_task_depth(
    task_id: str,
    parent_index: dict[str, str | None],
    cache: dict[str, int],
) -> int:
    """Depth of messages running under *task_id*.

    Walks the parent chain iteratively. A task seen twice on the same walk
    is a cycle; that branch bottoms out at depth 1.
    """
    chain: list[str] = []
    seen: set[str] = set()
    current: str | None = task_id
    base = 0
    while current is not None:
        if current in cache:
            base = cache[current]
            break
        if current in seen:
            logger.warning("depth: spawn cycle through task %s", current)
            base = 1
            break
        seen.add(current)
        chain.append(current)
        current = parent_index.get(current)

    for node in reversed(chain):
        base += 1
        cache[node] = base
    return cache.get(task_id, base)


def resolve_depths(
    messages: list[ChatMessage],
    spawn_tools: frozenset[str] = SPAWN_TOOL_NAMES,
) -> dict[str, int]:
    """Compute message id -> nesting depth for agent response messages.

    Top-level messages are depth 0; a message running under a task spawned
    from depth ``n`` is depth ``n + 1``. Always terminates, even on cyclic
    or dangling parent references.
    """
    parent_index = build_task_parent_index(messages, spawn_tools)
    cache: dict[str, int] = {}
    depths: dict[str, int] = {}
    for message in messages:
        response = read_agent_response(message)
        if response is None:
            continue
        if not response.parent_tool_use_id:
            depths[message.id] = 0
            continue
        depths[message.id] = _resolve_task_depth(response.parent_tool_use_id, parent_index, cache)
    return depths


# Add resolvers here as new agent message formats carry nesting information.
AGENT_DEPTH_RESOLVERS: list[DepthResolver] = [
    resolve_depths,
]


def build_agent_depth_map(
    messages: list[ChatMessage],
    spawn_tools: frozenset[str] = SPAWN_TOOL_NAMES,
) -> dict[str, int]:
    """Merge every registered resolver, keeping the deepest value per id."""
    merged: dict[str, int] = {}
    for resolve in AGENT_DEPTH_RESOLVERS:
        for message_id, depth in resolve(messages, spawn_tools).items():
            if depth > merged.get(message_id, -1):
                merged[message_id] = depth
    return merged
