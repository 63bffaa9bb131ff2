"""Environment-driven settings for HAR."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from har.core.constants import (
    DEFAULT_DISPLAY_PARAM_LIMIT,
    DROPPED_EDGES_IGNORE,
    DROPPED_EDGES_WARN,
    ENV_DISPLAY_PARAM_LIMIT,
    ENV_LOG_FILE,
    ENV_LOG_JSON,
    ENV_LOG_LEVEL,
    ENV_PARTITION_DROPPED_EDGES,
    TRUTHY_VALUES,
)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class GraphSettings:
    """Settings that tune graph algorithms without changing their results."""

    dropped_edge_policy: str = DROPPED_EDGES_IGNORE
    display_param_limit: int = DEFAULT_DISPLAY_PARAM_LIMIT

    @property
    def warn_on_dropped_edges(self) -> bool:
        """Return True when partitioning should log dropped edges."""
        return self.dropped_edge_policy == DROPPED_EDGES_WARN


@dataclass(frozen=True)
class LoggingSettings:
    """Logging configuration settings."""

    level: str = "INFO"
    json_format: bool = False
    log_file: str | None = None


def _normalise_choice(value: str, aliases: Mapping[str, str], default: str) -> str:
    """Normalise a choice with aliases, falling back to the default."""
    candidate = value.strip().lower()
    if not candidate:
        return default
    return aliases.get(candidate, candidate)


def _empty_to_none(value: str | None) -> str | None:
    """Convert empty strings to None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _positive_int(value: str | None, default: int) -> int:
    """Parse a positive integer, returning the default for anything else."""
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_graph_settings(env: Mapping[str, str] | None = None) -> GraphSettings:
    """
    Load graph settings from environment variables.

    Args:
        env: Optional environment mapping for testing.

    Returns:
        GraphSettings instance.

    """
    source = env if env is not None else os.environ

    policy = _normalise_choice(
        source.get(ENV_PARTITION_DROPPED_EDGES, DROPPED_EDGES_IGNORE),
        {"warning": DROPPED_EDGES_WARN, "silent": DROPPED_EDGES_IGNORE},
        DROPPED_EDGES_IGNORE,
    )
    if policy not in {DROPPED_EDGES_IGNORE, DROPPED_EDGES_WARN}:
        policy = DROPPED_EDGES_IGNORE

    return GraphSettings(
        dropped_edge_policy=policy,
        display_param_limit=_positive_int(
            source.get(ENV_DISPLAY_PARAM_LIMIT), DEFAULT_DISPLAY_PARAM_LIMIT
        ),
    )


def load_logging_settings(env: Mapping[str, str] | None = None) -> LoggingSettings:
    """
    Load logging settings from environment variables.

    Args:
        env: Optional environment mapping for testing.

    Returns:
        LoggingSettings instance.

    """
    source = env if env is not None else os.environ

    level = source.get(ENV_LOG_LEVEL, "INFO").strip().upper()
    if level not in _LOG_LEVELS:
        level = "INFO"

    return LoggingSettings(
        level=level,
        json_format=source.get(ENV_LOG_JSON, "").strip().lower() in TRUTHY_VALUES,
        log_file=_empty_to_none(source.get(ENV_LOG_FILE)),
    )
