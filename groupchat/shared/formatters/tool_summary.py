"""One-line summaries for tool invocations and small text helpers.

The summaries are display strings built from untrusted tool input; callers
still run them through the sanitizer before they reach the terminal.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from groupchat.shared.models.content import ToolGroupItem


# ── Helpers ──


def compact_json(value: Any, max_length: int) -> str:
    """Serialize *value* compactly, cutting it off after *max_length* chars."""
    try:
        text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        text = str(value)
    if len(text) > max_length:
        return f"{text[:max_length]}..."
    return text


def truncate(text: str, max_length: int) -> str:
    """Truncate text with a single-character ellipsis."""
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}…"


def shorten_path(file_path: str) -> str:
    """Keep the last three path components."""
    parts = file_path.split("/")
    if len(parts) <= 3:
        return file_path
    return "/".join(parts[-3:])


def content_to_lines(content: str) -> list[str]:
    return content.split("\n")


def _str_arg(tool_input: dict[str, Any], key: str) -> str | None:
    value = tool_input.get(key)
    return value if isinstance(value, str) else None


# ── Grouped tool one-liners ──

# name -> (input key, singular formatter, plural formatter)
_GROUP_FORMATS: dict[str, tuple[str, Callable[[str], str], Callable[[int], str]]] = {
    "Bash": (
        "command",
        lambda v: f"Bash({truncate(v, 60)})",
        lambda n: f"Bash ({n} commands)",
    ),
    "Read": (
        "file_path",
        lambda v: f"Read({shorten_path(v)})",
        lambda n: f"Read {n} files",
    ),
    "Edit": (
        "file_path",
        lambda v: f"Update({shorten_path(v)})",
        lambda n: f"Updated {n} files",
    ),
    "Write": (
        "file_path",
        lambda v: f"Write({shorten_path(v)})",
        lambda n: f"Wrote {n} files",
    ),
    "Grep": (
        "pattern",
        lambda v: f'Searched for "{truncate(v, 40)}"',
        lambda n: f"Searched for {n} patterns",
    ),
    "Glob": (
        "pattern",
        lambda v: f"Search({truncate(v, 40)})",
        lambda n: f"Searched {n} patterns",
    ),
    "WebSearch": (
        "query",
        lambda v: f"WebSearch({truncate(v, 40)})",
        lambda n: f"WebSearch ({n} queries)",
    ),
    "Task": (
        "description",
        lambda v: f"Task({truncate(v, 50)})",
        lambda n: f"Task ({n} sub-agents)",
    ),
}


def tool_group_one_liner(name: str, items: list[ToolGroupItem]) -> str:
    """Summarize a group of same-tool invocations in one line.

    A single invocation shows its main argument; several show a count.
    """
    count = len(items)
    fmt = _GROUP_FORMATS.get(name)
    if fmt is not None:
        key, single, plural = fmt
        if count == 1:
            value = _str_arg(items[0].input, key)
            if value is not None:
                return single(value)
        return plural(count)

    if count == 1:
        return f"{name}({compact_json(items[0].input, 50)})"
    return f"{name} ({count} calls)"


# ── Permission prompts ──


def permission_one_liner(tool_name: str, tool_input: dict[str, Any]) -> str:
    """Describe what a tool is asking permission to do."""
    if tool_name == "Bash":
        command = _str_arg(tool_input, "command")
        return f"$ {truncate(command, 80)}" if command is not None else "Run a command"
    if tool_name in ("Read", "Edit", "Write"):
        path = _str_arg(tool_input, "file_path")
        if path is not None:
            return f"{tool_name} {shorten_path(path)}"
        return f"{tool_name} a file"
    if tool_name == "Grep":
        pattern = _str_arg(tool_input, "pattern")
        return f'Search for "{truncate(pattern, 40)}"' if pattern is not None else "Search file contents"
    if tool_name == "Glob":
        pattern = _str_arg(tool_input, "pattern")
        return f"Find files matching {truncate(pattern, 40)}" if pattern is not None else "Find files"
    if tool_name == "WebFetch":
        url = _str_arg(tool_input, "url")
        return f"Fetch {truncate(url, 60)}" if url is not None else "Fetch a URL"
    if tool_name == "Task":
        description = _str_arg(tool_input, "description")
        if description is not None:
            return f"Spawn agent: {truncate(description, 50)}"
        return "Spawn a sub-agent"
    return f"{tool_name}({compact_json(tool_input, 60)})"
