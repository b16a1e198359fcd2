"""Exception hierarchy.

The message pipeline never raises on untrusted input; malformed payloads
degrade to inert text. Only configuration loading raises, and only when
asked to be strict.
"""
from __future__ import annotations


class GroupchatError(Exception):
    """Base exception for all groupchat errors."""


class ConfigError(GroupchatError):
    """A configuration file could not be read or has an invalid shape."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid config {path}: {reason}")
