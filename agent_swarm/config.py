"""
Centralized Configuration
=========================
Centralized configuration values and constants for the agent swarm core.

This module provides:
- Agent runtime defaults (timeout, retries, backoff)
- Swarm history bounds
- Event log settings
- Tracing settings

Values are read from environment variables once, at import time.
"""

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class RuntimeConfig:
    """Agent runtime defaults, in seconds where applicable."""

    # Per-attempt timeout for an agent implementation
    DEFAULT_TIMEOUT_SECONDS: float = float(os.getenv("SWARM_AGENT_TIMEOUT", "30"))

    # Retries after the first attempt (2 => up to 3 attempts)
    DEFAULT_RETRIES: int = int(os.getenv("SWARM_AGENT_RETRIES", "2"))

    # Delay before attempt k (k >= 2) is BACKOFF_BASE_SECONDS * 2 ** (k - 2)
    BACKOFF_BASE_SECONDS: float = float(os.getenv("SWARM_BACKOFF_BASE", "0.5"))


@dataclass(frozen=True)
class HistoryConfig:
    """Swarm history bounds."""

    MAX_ENTRIES: int = int(os.getenv("SWARM_HISTORY_MAX", "100"))
    RECENT_LIMIT: int = 10

    # Characters of the serialized master task kept in start events
    TASK_PREVIEW_CHARS: int = 200


@dataclass(frozen=True)
class EventLogConfig:
    """Event log configuration."""

    FILE_LOCK_TIMEOUT: int = int(os.getenv("SWARM_EVENT_LOCK_TIMEOUT", "30"))
    MAX_IN_MEMORY: int = int(os.getenv("SWARM_EVENT_LOG_MAX", "1000"))

    # Upper bound on how long a swarm waits for one event append
    EMIT_TIMEOUT: float = float(os.getenv("SWARM_EVENT_EMIT_TIMEOUT", "2"))


@dataclass(frozen=True)
class TracingConfig:
    """Tracing configuration."""

    SERVICE_NAME: str = "agent-swarm"
    OTLP_ENDPOINT: str = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
    ENABLED: bool = os.getenv("ENABLE_TRACING", "false").lower() == "true"


# Agent types whose underlying lookups are slower than the default budget
AGENT_TIMEOUT_OVERRIDES: Mapping[str, float] = MappingProxyType({
    "product_matcher": 45.0,
})


# Global singleton instances
RUNTIME = RuntimeConfig()
HISTORY = HistoryConfig()
EVENT_LOG = EventLogConfig()
TRACING = TracingConfig()


def get_timeout(agent_type: str) -> float:
    """Get the default per-attempt timeout for an agent type.

    Args:
        agent_type: Agent type tag (e.g. 'product_matcher')

    Returns:
        Timeout in seconds
    """
    return AGENT_TIMEOUT_OVERRIDES.get(str(agent_type), RUNTIME.DEFAULT_TIMEOUT_SECONDS)
