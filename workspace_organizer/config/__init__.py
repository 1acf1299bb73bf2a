"""Configuration module for Workspace Organizer."""

from .settings import (
    Config,
    PathsConfig,
    CleanRule,
    WatcherConfig,
    default_rules,
)

__all__ = [
    "Config",
    "PathsConfig",
    "CleanRule",
    "WatcherConfig",
    "default_rules",
]
