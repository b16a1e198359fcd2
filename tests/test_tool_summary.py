"""Tests for groupchat.shared.formatters.tool_summary."""

import pytest

from groupchat.shared.formatters.tool_summary import (
    compact_json,
    content_to_lines,
    permission_one_liner,
    shorten_path,
    tool_group_one_liner,
    truncate,
)
from groupchat.shared.models.content import ToolGroupItem


def _items(*inputs):
    return [ToolGroupItem(id=str(i), input=inp) for i, inp in enumerate(inputs)]


# ── Helpers ──


class TestHelpers:
    def test_compact_json(self):
        assert compact_json({"a": 1, "b": [1, 2]}, 100) == '{"a":1,"b":[1,2]}'

    def test_compact_json_truncates(self):
        assert compact_json({"command": "x" * 100}, 10) == '{"command"...'

    def test_compact_json_unserializable(self):
        assert compact_json({"s": {1, 2}}, 100).startswith("{")

    def test_truncate(self):
        assert truncate("abcdef", 3) == "abc…"
        assert truncate("abc", 3) == "abc"

    def test_shorten_path(self):
        assert shorten_path("/home/user/project/src/app.py") == "project/src/app.py"
        assert shorten_path("src/app.py") == "src/app.py"

    def test_content_to_lines(self):
        assert content_to_lines("a\nb\n") == ["a", "b", ""]


# ── tool_group_one_liner ──


class TestToolGroupOneLiner:
    @pytest.mark.parametrize(
        "name,inp,expected",
        [
            ("Bash", {"command": "ls -la"}, "Bash(ls -la)"),
            ("Read", {"file_path": "/a/b/c/d.py"}, "Read(b/c/d.py)"),
            ("Edit", {"file_path": "x.py"}, "Update(x.py)"),
            ("Write", {"file_path": "x.py"}, "Write(x.py)"),
            ("Grep", {"pattern": "TODO"}, 'Searched for "TODO"'),
            ("Glob", {"pattern": "**/*.py"}, "Search(**/*.py)"),
            ("WebSearch", {"query": "rich text"}, "WebSearch(rich text)"),
            ("Task", {"description": "write tests"}, "Task(write tests)"),
        ],
    )
    def test_single(self, name, inp, expected):
        assert tool_group_one_liner(name, _items(inp)) == expected

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Bash", "Bash (3 commands)"),
            ("Read", "Read 3 files"),
            ("Edit", "Updated 3 files"),
            ("Write", "Wrote 3 files"),
            ("Grep", "Searched for 3 patterns"),
            ("Glob", "Searched 3 patterns"),
            ("WebSearch", "WebSearch (3 queries)"),
            ("Task", "Task (3 sub-agents)"),
            ("Custom", "Custom (3 calls)"),
        ],
    )
    def test_plural(self, name, expected):
        assert tool_group_one_liner(name, _items({}, {}, {})) == expected

    def test_long_command_truncated(self):
        summary = tool_group_one_liner("Bash", _items({"command": "x" * 100}))
        assert summary == f"Bash({'x' * 60}…)"

    def test_single_without_key_uses_count(self):
        assert tool_group_one_liner("Read", _items({})) == "Read 1 files"

    def test_unknown_tool_single(self):
        assert tool_group_one_liner("Custom", _items({"k": "v"})) == 'Custom({"k":"v"})'


# ── permission_one_liner ──


class TestPermissionOneLiner:
    @pytest.mark.parametrize(
        "name,inp,expected",
        [
            ("Bash", {"command": "make"}, "$ make"),
            ("Bash", {}, "Run a command"),
            ("Read", {"file_path": "/a/b/c/d.py"}, "Read b/c/d.py"),
            ("Edit", {}, "Edit a file"),
            ("Grep", {"pattern": "foo"}, 'Search for "foo"'),
            ("Grep", {}, "Search file contents"),
            ("Glob", {"pattern": "*.md"}, "Find files matching *.md"),
            ("Glob", {}, "Find files"),
            ("WebFetch", {"url": "https://example.com"}, "Fetch https://example.com"),
            ("WebFetch", {}, "Fetch a URL"),
            ("Task", {"description": "review"}, "Spawn agent: review"),
            ("Task", {}, "Spawn a sub-agent"),
            ("Other", {"a": 1}, 'Other({"a":1})'),
        ],
    )
    def test_one_liners(self, name, inp, expected):
        assert permission_one_liner(name, inp) == expected
