"""YAML configuration loader.

Loads a single YAML file over the environment defaults from
:meth:`ClientConfig.from_env`. Unknown keys are ignored.

Example YAML:
    sanitizer:
      hyperlinks: true
      allowed_schemes: [https, mailto]

    agents:
      spawn_tools: [Task, Agent]
      indent_width: 2
      max_indent: 20

    logging:
      level: DEBUG
      debug: true
      file: .logs/tui-debug.log
      stderr: false
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from groupchat.config import ClientConfig
from groupchat.errors import ConfigError

logger = logging.getLogger(__name__)


def _section(data: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(str(path), f"'{name}' must be a mapping")
    return value


def _names(value: Any, key: str, path: Path) -> frozenset[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(str(path), f"'{key}' must be a list of strings")
    return frozenset(v.strip() for v in value if v.strip())


def _int(value: Any, key: str, path: Path) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(str(path), f"'{key}' must be a non-negative integer")
    return value


def apply_yaml_data(config: ClientConfig, data: dict[str, Any], path: Path) -> ClientConfig:
    """Apply parsed YAML sections onto *config* (in place) and return it."""
    sanitizer = _section(data, "sanitizer", path)
    if "hyperlinks" in sanitizer:
        config.hyperlinks_enabled = bool(sanitizer["hyperlinks"])
    if "allowed_schemes" in sanitizer:
        schemes = _names(sanitizer["allowed_schemes"], "allowed_schemes", path)
        config.allowed_schemes = frozenset(s.lower() for s in schemes)

    agents = _section(data, "agents", path)
    if "spawn_tools" in agents:
        config.spawn_tools = _names(agents["spawn_tools"], "spawn_tools", path)
    if "indent_width" in agents:
        config.indent_width = _int(agents["indent_width"], "indent_width", path)
    if "max_indent" in agents:
        config.max_indent = _int(agents["max_indent"], "max_indent", path)

    log = _section(data, "logging", path)
    if "level" in log:
        config.log_level = str(log["level"]).upper()
    if "debug" in log:
        config.debug = bool(log["debug"])
    if "file" in log:
        config.debug_file = str(log["file"])
    if "stderr" in log:
        config.debug_stderr = bool(log["stderr"])
    return config


def load_yaml_config(path: str | Path, *, strict: bool = False) -> ClientConfig:
    """Load a YAML config file over the environment defaults.

    A missing, unreadable or malformed file logs a warning and yields the
    environment defaults, unless *strict* is set, in which case
    :class:`ConfigError` is raised.
    """
    path = Path(path)
    config = ClientConfig.from_env()
    logger.info("load_yaml_config: loading %s (exists=%s)", path, path.is_file())

    try:
        if not path.is_file():
            raise ConfigError(str(path), "file not found")
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(str(path), f"YAML parse error: {exc}") from exc
        except OSError as exc:
            raise ConfigError(str(path), str(exc)) from exc
        if not isinstance(data, dict):
            raise ConfigError(str(path), "top level must be a mapping")
        return apply_yaml_data(config, data, path)
    except ConfigError as exc:
        if strict:
            raise
        logger.warning("load_yaml_config: %s; using defaults", exc)
        return ClientConfig.from_env()
