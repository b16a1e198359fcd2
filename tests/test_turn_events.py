"""Tests for turn aggregation (live upsert and history condensing)."""

from __future__ import annotations

import copy
from dataclasses import replace

from groupchat.adapters.message_mutations import (
    AGENT_MESSAGE_MUTATORS,
    condense_agent_messages,
    upsert_agent_message,
)
from groupchat.adapters.normalizer import read_event, read_record
from groupchat.adapters.timeline import build_turn_timeline
from groupchat.adapters.turn_events import (
    condense_turn_events,
    find_record_index,
    upsert_turn_event,
)
from groupchat.shared.models.events import EventKind
from groupchat.shared.models.message import ChatMessage


def _event(
    msg_id: str,
    event: str,
    content: str = "",
    *,
    username: str = "bob",
    turn_id: str = "t1",
    session_id: str | None = None,
    tool_name: str | None = None,
    is_error: bool | None = None,
) -> ChatMessage:
    cc: dict = {"turn_id": turn_id, "event": event}
    if session_id is not None:
        cc["session_id"] = session_id
    if tool_name is not None:
        cc["tool_name"] = tool_name
    if is_error is not None:
        cc["is_error"] = is_error
    return ChatMessage(
        id=msg_id,
        username=username,
        content=content,
        timestamp=f"2026-01-01T10:00:0{msg_id[-1]}Z",
        type="cc",
        attributes={"cc": cc},
    )


def _carrying(message: ChatMessage, events: list[dict], contents: list[str]) -> ChatMessage:
    cc = {**message.attributes["cc"], "events": events, "contents": contents}
    return replace(message, attributes={"cc": cc})


def _plain(msg_id: str, content: str, username: str = "bob") -> ChatMessage:
    return ChatMessage(id=msg_id, username=username, content=content, type="user")


def _turn() -> list[ChatMessage]:
    return [
        _event("m1", "question", "fix the tests"),
        _event("m2", "tool_call", "Bash: pytest", tool_name="Bash"),
        _event("m3", "text", "All green now."),
        _event("m4", "result", "All green now.", is_error=False),
    ]


# ── upsert_turn_event ──


class TestUpsertTurnEvent:
    def test_non_event_message_is_appended(self):
        plain = _plain("p1", "hello")
        assert upsert_turn_event([], plain, "alice") == [plain]

    def test_first_event_creates_record(self):
        out = upsert_turn_event([], _event("m1", "question", "hi"), "alice")
        assert len(out) == 1
        record = read_record(out[0])
        assert record is not None
        assert [e.event for e in record.events] == [EventKind.QUESTION]
        assert record.contents == ["hi"]
        assert out[0].type == "cc"

    def test_events_accumulate_in_arrival_order(self):
        messages: list[ChatMessage] = []
        for incoming in _turn():
            messages = upsert_turn_event(messages, incoming, "alice")
        assert len(messages) == 1
        record = read_record(messages[0])
        assert record is not None
        assert [e.event for e in record.events] == [
            EventKind.QUESTION,
            EventKind.TOOL_CALL,
            EventKind.TEXT,
            EventKind.RESULT,
        ]
        assert record.contents == ["fix the tests", "Bash: pytest", "All green now.", "All green now."]

    def test_record_keeps_first_message_identity(self):
        messages: list[ChatMessage] = []
        for incoming in _turn():
            messages = upsert_turn_event(messages, incoming, "alice")
        assert messages[0].id == "m1"
        assert messages[0].timestamp == "2026-01-01T10:00:01Z"

    def test_latest_content_wins(self):
        messages = upsert_turn_event([], _event("m1", "question", "q"), "alice")
        messages = upsert_turn_event(messages, _event("m2", "text", "partial"), "alice")
        assert messages[0].content == "partial"
        messages = upsert_turn_event(messages, _event("m3", "tool_call", ""), "alice")
        assert messages[0].content == ""

    def test_latest_event_mirrored_at_top_level(self):
        messages = upsert_turn_event([], _event("m1", "question", "q"), "alice")
        messages = upsert_turn_event(messages, _event("m2", "result", "done", is_error=True), "alice")
        cc = messages[0].attributes["cc"]
        assert cc["event"] == "result"
        assert cc["is_error"] is True
        assert len(cc["events"]) == len(cc["contents"]) == 2

    def test_own_echo_is_dropped(self):
        messages = [_plain("p1", "hi", username="alice")]
        out = upsert_turn_event(messages, _event("m1", "text", "x", username="alice"), "alice")
        assert out == messages
        assert out is not messages

    def test_no_self_username_keeps_everything(self):
        out = upsert_turn_event([], _event("m1", "text", "x", username="alice"), None)
        assert len(out) == 1

    def test_users_do_not_share_records(self):
        messages = upsert_turn_event([], _event("m1", "question", "a", username="bob"), None)
        messages = upsert_turn_event(messages, _event("m2", "question", "b", username="carol"), None)
        assert [m.username for m in messages] == ["bob", "carol"]

    def test_session_groups_across_turns(self):
        messages = upsert_turn_event([], _event("m1", "question", "a", turn_id="t1", session_id="s1"), None)
        messages = upsert_turn_event(messages, _event("m2", "question", "b", turn_id="t2", session_id="s1"), None)
        assert len(messages) == 1
        record = read_record(messages[0])
        assert record is not None
        assert [e.turn_id for e in record.events] == ["t1", "t2"]

    def test_turns_without_session_stay_separate(self):
        messages = upsert_turn_event([], _event("m1", "question", "a", turn_id="t1"), None)
        messages = upsert_turn_event(messages, _event("m2", "question", "b", turn_id="t2"), None)
        assert len(messages) == 2

    def test_record_key_does_not_change_after_creation(self):
        messages = upsert_turn_event([], _event("m1", "question", "a", turn_id="t1"), None)
        messages = upsert_turn_event(messages, _event("m2", "text", "b", turn_id="t1", session_id="s1"), None)
        # The session-keyed event starts its own record.
        assert len(messages) == 2
        messages = upsert_turn_event(messages, _event("m3", "text", "c", turn_id="t1"), None)
        assert len(messages) == 2
        first = read_record(messages[0])
        assert first is not None
        assert first.contents == ["a", "c"]

    def test_interleaved_plain_messages_keep_position(self):
        messages = upsert_turn_event([], _event("m1", "question", "a"), None)
        messages = upsert_turn_event(messages, _plain("p1", "chatter"), None)
        messages = upsert_turn_event(messages, _event("m2", "text", "b"), None)
        assert [m.id for m in messages] == ["m1", "p1"]
        assert messages[0].content == "b"

    def test_inputs_are_not_mutated(self):
        messages = upsert_turn_event([], _event("m1", "question", "a"), None)
        snapshot = copy.deepcopy(messages)
        incoming = _event("m2", "text", "b")
        incoming_snapshot = copy.deepcopy(incoming)
        upsert_turn_event(messages, incoming, None)
        assert messages == snapshot
        assert incoming == incoming_snapshot

    def test_find_record_index(self):
        messages = [_plain("p1", "x"), *upsert_turn_event([], _event("m1", "question", "a"), None)]
        assert find_record_index(messages, "bob", "bob:turn:t1") == 1
        assert find_record_index(messages, "bob", "bob:turn:t9") is None
        assert find_record_index(messages, "carol", "bob:turn:t1") is None

    def test_carried_history_without_own_event_gets_it_appended(self):
        incoming = _carrying(
            _event("m1", "result", "done", is_error=False),
            [{"turn_id": "t1", "event": "question"}],
            ["q"],
        )
        (message,) = upsert_turn_event([], incoming, "alice")
        record = read_record(message)
        assert record is not None
        assert record.latest == read_event(incoming)
        assert [e.event for e in record.events] == [EventKind.QUESTION, EventKind.RESULT]
        assert record.contents == ["q", "done"]
        timeline = build_turn_timeline(message)
        assert timeline.has_result
        assert not timeline.is_working

    def test_carried_history_ending_with_own_event_is_adopted(self):
        incoming = _carrying(
            _event("m1", "text", "a"),
            [{"turn_id": "t1", "event": "question"}, {"turn_id": "t1", "event": "text"}],
            ["q", "a"],
        )
        (message,) = upsert_turn_event([], incoming, "alice")
        record = read_record(message)
        assert record is not None
        assert record.contents == ["q", "a"]
        assert record.latest == read_event(incoming)

    def test_carried_history_keeps_lookup_key(self):
        first = _carrying(
            _event("m1", "text", "a", turn_id="t1", session_id="s1"),
            [{"turn_id": "t0", "event": "question"}],
            ["q"],
        )
        messages = upsert_turn_event([], first, "alice")
        messages = upsert_turn_event(messages, _event("m2", "text", "b", turn_id="t9", session_id="s1"), "alice")
        assert len(messages) == 1
        record = read_record(messages[0])
        assert record is not None
        assert [e.turn_id for e in record.events] == ["t0", "t1", "t9"]


# ── condense_turn_events ──


class TestCondenseTurnEvents:
    def test_live_and_condensed_agree(self):
        batch = [
            *_turn(),
            _plain("p1", "thanks"),
            _event("m5", "question", "and docs?", turn_id="t2"),
            _event("m6", "result", "done", turn_id="t2"),
        ]
        live: list[ChatMessage] = []
        for incoming in batch:
            live = upsert_turn_event(live, incoming, "alice")
        assert condense_turn_events(batch, "alice") == live

    def test_condense_is_idempotent(self):
        batch = [*_turn(), _plain("p1", "thanks"), _event("m5", "question", "next", turn_id="t2")]
        once = condense_turn_events(batch, "alice")
        assert condense_turn_events(once, "alice") == once

    def test_condense_is_idempotent_with_sessions(self):
        batch = [
            _event("m1", "question", "a", turn_id="t1", session_id="s1"),
            _event("m2", "text", "b", turn_id="t2", session_id="s1"),
            _event("m3", "question", "c", turn_id="t1", username="carol"),
        ]
        once = condense_turn_events(batch, None)
        twice = condense_turn_events(once, None)
        assert twice == once
        record = read_record(twice[0])
        assert record is not None
        assert record.contents == ["a", "b"]

    def test_condense_drops_own_events(self):
        batch = [_event("m1", "question", "mine", username="alice"), _plain("p1", "hi")]
        assert [m.id for m in condense_turn_events(batch, "alice")] == ["p1"]

    def test_empty_page(self):
        assert condense_turn_events([], "alice") == []

    def test_condense_is_idempotent_with_foreign_carried_history(self):
        batch = [
            _event("m1", "question", "q", turn_id="t2"),
            _carrying(_event("m2", "text", "a", turn_id="t1"), [{"turn_id": "t2", "event": "text"}], ["old"]),
        ]
        once = condense_turn_events(batch, "alice")
        assert len(once) == 2
        assert condense_turn_events(once, "alice") == once


# ── mutator registry ──


class TestAgentMessageMutators:
    def test_registry_has_turn_event_mutator(self):
        assert len(AGENT_MESSAGE_MUTATORS) >= 1

    def test_unclaimed_message_appended(self):
        plain = _plain("p1", "hello")
        assert upsert_agent_message([], plain, "alice") == [plain]

    def test_malformed_event_appended_unchanged(self):
        bad = ChatMessage(id="x", username="bob", content="raw", attributes={"cc": {"event": "text"}})
        assert upsert_agent_message([], bad, "alice") == [bad]

    def test_turn_event_routed_to_upsert(self):
        messages = upsert_agent_message([], _event("m1", "question", "a"), "alice")
        messages = upsert_agent_message(messages, _event("m2", "text", "b"), "alice")
        assert len(messages) == 1

    def test_condense_agent_messages_matches_turn_condense(self):
        batch = [*_turn(), _plain("p1", "thanks")]
        assert condense_agent_messages(batch, "alice") == condense_turn_events(batch, "alice")
