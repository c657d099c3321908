"""
Orchestrator Events
===================
Best-effort event sinks for swarm start/completion records.
"""

from .sink import (
    SWARM_COMPLETED,
    SWARM_STARTED,
    EventSink,
    InMemoryEventLog,
    NullEventSink,
    emit_event,
    make_orchestrator_event,
)
from .store import JsonlEventLog

__all__ = [
    "EventSink",
    "NullEventSink",
    "InMemoryEventLog",
    "JsonlEventLog",
    "emit_event",
    "make_orchestrator_event",
    "SWARM_STARTED",
    "SWARM_COMPLETED",
]
