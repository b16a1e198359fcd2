"""Configuration loaded from environment variables.

All settings have safe defaults (hyperlinks off). Override via GROUPCHAT_*
env vars, or load a YAML file with :func:`groupchat.yaml_config.load_yaml_config`.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from groupchat.adapters.depth import SPAWN_TOOL_NAMES
from groupchat.shared.formatters.sanitizer import DEFAULT_ALLOWED_SCHEMES, SanitizePolicy

logger = logging.getLogger(__name__)

TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def is_truthy(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUE_VALUES


def parse_name_list(value: str) -> frozenset[str]:
    """Parse a comma separated list, ignoring blanks."""
    return frozenset(part.strip() for part in value.split(",") if part.strip())


@dataclass
class ClientConfig:
    """Settings for sanitizing, depth resolution, rendering and logging."""

    # Markdown hyperlink policy. Off by default for untrusted content.
    hyperlinks_enabled: bool = False
    allowed_schemes: frozenset[str] = field(default=DEFAULT_ALLOWED_SCHEMES)

    # Tool names that spawn a sub-agent.
    spawn_tools: frozenset[str] = field(default=SPAWN_TOOL_NAMES)

    # Sub-agent indentation: depth * indent_width, capped at max_indent.
    indent_width: int = 2
    max_indent: int = 20

    log_level: str = "WARNING"
    debug: bool = False
    debug_file: str = ".logs/tui-debug.log"
    debug_stderr: bool = False

    def sanitize_policy(self) -> SanitizePolicy:
        return SanitizePolicy(
            hyperlinks_enabled=self.hyperlinks_enabled,
            allowed_schemes=self.allowed_schemes,
        )

    def indent_for(self, depth: int) -> int:
        return min(self.max_indent, max(0, depth) * self.indent_width)

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Load configuration from GROUPCHAT_* environment variables."""
        env_vars = {k: v for k, v in os.environ.items() if k.startswith("GROUPCHAT_")}
        if env_vars:
            logger.info(
                "ClientConfig.from_env: GROUPCHAT_* env overrides: %s",
                ", ".join(sorted(env_vars)),
            )

        config = cls(
            hyperlinks_enabled=is_truthy(os.getenv("GROUPCHAT_HYPERLINKS")),
            log_level=os.getenv("GROUPCHAT_LOG_LEVEL", cls.log_level).upper(),
            debug=is_truthy(os.getenv("GROUPCHAT_DEBUG")),
            debug_file=os.getenv("GROUPCHAT_DEBUG_FILE", cls.debug_file),
            debug_stderr=is_truthy(os.getenv("GROUPCHAT_DEBUG_STDERR")),
        )
        schemes = os.getenv("GROUPCHAT_ALLOWED_SCHEMES")
        if schemes is not None:
            config.allowed_schemes = frozenset(s.lower() for s in parse_name_list(schemes))
        spawn_tools = os.getenv("GROUPCHAT_SPAWN_TOOLS")
        if spawn_tools is not None:
            config.spawn_tools = parse_name_list(spawn_tools) or SPAWN_TOOL_NAMES
        max_indent = os.getenv("GROUPCHAT_MAX_INDENT")
        if max_indent is not None:
            try:
                config.max_indent = max(0, int(max_indent))
            except ValueError:
                logger.warning("ClientConfig.from_env: ignoring GROUPCHAT_MAX_INDENT=%r", max_indent)
        return config
