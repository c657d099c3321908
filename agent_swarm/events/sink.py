"""Orchestrator event sinks.

The orchestrator reports swarm start/completion to an append-only event log
it does not own. Delivery is best effort: ``emit_event`` swallows every sink
failure and only logs it, so a broken log can never change a swarm's result.
"""

from __future__ import annotations

import asyncio
import json
import threading
import uuid
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from loguru import logger

from agent_swarm.config import EVENT_LOG
from agent_swarm.utils.schema_validation import validate_orchestrator_event


SCHEMA_VERSION = "1.0"

SWARM_STARTED = "ORCHESTRATOR_SWARM_STARTED"
SWARM_COMPLETED = "ORCHESTRATOR_SWARM_COMPLETED"


def _utc_now_iso_z() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def make_orchestrator_event(
    *,
    event_type: str,
    correlation_id: str,
    payload: Dict[str, Any],
    aggregate_type: str = "orchestrator",
    aggregate_id: str = "main",
    created_at: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a schema-valid orchestrator event record.

    The payload is normalized through JSON so the record is always
    serializable.

    Raises:
        ValueError: When the record does not validate.
    """
    event = {
        "schema_version": SCHEMA_VERSION,
        "event_id": f"evt_{uuid.uuid4().hex[:12]}",
        "event_type": event_type,
        "aggregate_type": aggregate_type,
        "aggregate_id": aggregate_id,
        "correlation_id": correlation_id,
        "created_at": created_at or _utc_now_iso_z(),
        "payload": json.loads(json.dumps(payload, default=str)),
    }
    validate_orchestrator_event(event)
    return event


class EventSink(ABC):
    """Append-only destination for orchestrator events."""

    @abstractmethod
    async def append(self, event: Dict[str, Any]) -> None:
        """Append one event record. May raise; callers treat delivery as best effort."""
        pass


class NullEventSink(EventSink):
    """Discards every event."""

    async def append(self, event: Dict[str, Any]) -> None:
        return None


class InMemoryEventLog(EventSink):
    """Bounded in-memory event log, oldest events evicted first."""

    def __init__(self, max_events: int = EVENT_LOG.MAX_IN_MEMORY):
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    async def append(self, event: Dict[str, Any]) -> None:
        with self._lock:
            self._events.append(dict(event))

    @property
    def events(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._events)

    def for_correlation(self, correlation_id: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("correlation_id") == correlation_id]

    def count(self) -> int:
        return len(self._events)


async def emit_event(
    sink: Optional[EventSink],
    event_type: str,
    correlation_id: str,
    payload: Dict[str, Any],
    timeout_seconds: Optional[float] = None,
) -> bool:
    """Send one event to ``sink`` without ever raising.

    With ``timeout_seconds`` the wait for the sink is bounded; an append that
    is still running when it expires may yet land in the sink.

    Returns:
        True when the sink accepted the event.
    """
    if sink is None:
        return False

    try:
        event = make_orchestrator_event(
            event_type=event_type,
            correlation_id=correlation_id,
            payload=payload,
        )
        await asyncio.wait_for(sink.append(event), timeout=timeout_seconds)
        return True
    except Exception as e:
        reason = str(e) or type(e).__name__
        logger.warning(f"Failed to log orchestrator event {event_type} ({correlation_id}): {reason}")
        return False
