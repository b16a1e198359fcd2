"""Adapters package - turns raw chat messages into renderable agent structures.

Normalization, turn aggregation, depth resolution, block grouping and the
turn timeline. Everything here is pure: inputs are never mutated and every
call returns fresh values.
"""
from __future__ import annotations

__all__ = [
    "build_agent_depth_map",
    "build_turn_timeline",
    "condense_agent_messages",
    "condense_turn_events",
    "group_blocks",
    "group_message_blocks",
    "grouping_key",
    "normalize_event",
    "resolve_depths",
    "upsert_agent_message",
    "upsert_turn_event",
]

from groupchat.adapters.depth import build_agent_depth_map, resolve_depths
from groupchat.adapters.grouping import group_blocks, group_message_blocks
from groupchat.adapters.message_mutations import condense_agent_messages, upsert_agent_message
from groupchat.adapters.normalizer import grouping_key, normalize_event
from groupchat.adapters.timeline import build_turn_timeline
from groupchat.adapters.turn_events import condense_turn_events, upsert_turn_event
