"""Turn timeline view model for accumulated agent event messages.

Reduces a record's (event, content) history to what a compact remote-user
bubble shows: the questions asked, the latest tool in use, the latest text,
and whether the current turn has finished.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from groupchat.adapters.normalizer import read_record
from groupchat.shared.formatters.tool_summary import truncate
from groupchat.shared.models.events import AgentEvent, EventKind
from groupchat.shared.models.message import ChatMessage

_WHITESPACE_RE = re.compile(r"\s+")


def compact_preview(content: str, max_length: int = 120) -> str:
    """Collapse whitespace and truncate for single-line display."""
    normalized = _WHITESPACE_RE.sub(" ", content).strip()
    if not normalized:
        return ""
    return truncate(normalized, max_length)


@dataclass
class TurnTimeline:
    events: list[AgentEvent] = field(default_factory=list)
    contents: list[str] = field(default_factory=list)
    questions: list[str] = field(default_factory=list)
    latest_turn_id: str | None = None
    current_turn_indexes: list[int] = field(default_factory=list)
    tool_indexes: list[int] = field(default_factory=list)
    latest_tool_detail: str = ""
    text: str = ""
    result_index: int | None = None

    @property
    def has_result(self) -> bool:
        return self.result_index is not None

    @property
    def is_error(self) -> bool:
        if self.result_index is None:
            return False
        return bool(self.events[self.result_index].is_error)

    @property
    def turn_count(self) -> int:
        return len(self.questions)

    @property
    def is_working(self) -> bool:
        return not self.has_result and bool(self.current_turn_indexes)


def _latest_index(indexes: list[int], events: list[AgentEvent], kind: EventKind) -> int | None:
    for index in reversed(indexes):
        if events[index].event == kind:
            return index
    return None


def build_turn_timeline(message: ChatMessage) -> TurnTimeline:
    """Build the timeline for an accumulated message (empty for others)."""
    record = read_record(message)
    if record is None:
        return TurnTimeline()

    events, contents = record.events, record.contents
    questions = [
        contents[i] for i, event in enumerate(events)
        if event.event == EventKind.QUESTION and contents[i].strip()
    ]

    latest_turn_id = next((e.turn_id for e in reversed(events) if e.turn_id), None)
    current = [i for i, e in enumerate(events) if latest_turn_id and e.turn_id == latest_turn_id]
    tools = [i for i in current if events[i].event == EventKind.TOOL_CALL]

    latest_tool_detail = ""
    if tools:
        last = tools[-1]
        tool_name = events[last].tool_name or "Tool"
        summary = compact_preview(contents[last])
        if not summary:
            latest_tool_detail = tool_name
        elif summary.lower().startswith(tool_name.lower()):
            latest_tool_detail = summary
        else:
            latest_tool_detail = f"{tool_name} {summary}"

    text_index = _latest_index(current, events, EventKind.TEXT)
    return TurnTimeline(
        events=events,
        contents=contents,
        questions=questions,
        latest_turn_id=latest_turn_id,
        current_turn_indexes=current,
        tool_indexes=tools,
        latest_tool_detail=latest_tool_detail,
        text=contents[text_index] if text_index is not None else "",
        result_index=_latest_index(current, events, EventKind.RESULT),
    )


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    raw = value.strip() if isinstance(value, str) else ""
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = f"{raw[:-1]}+00:00"
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def duration_seconds(message: ChatMessage, now: datetime | None = None) -> str:
    """Seconds since the message started, with one decimal ("0.0" if unknown)."""
    started = parse_timestamp(message.timestamp)
    if started is None:
        return "0.0"
    now = now or datetime.now(timezone.utc)
    elapsed = max(0.0, (now - started).total_seconds())
    return f"{elapsed:.1f}"
