"""Swarm history.

Bounded, in-memory record of completed swarm executions. The oldest entries
are evicted once capacity is reached. Entries are appended in call-completion
order.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Deque, List, Optional

from agent_swarm.config import HISTORY

if TYPE_CHECKING:
    from .orchestrator import SwarmResult


@dataclass(frozen=True)
class SwarmRecord:
    """One history entry."""
    correlation_id: str
    agent_types: List[str]
    execution_time: float
    success_count: int
    failure_count: int
    result: Optional["SwarmResult"] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def from_result(cls, result: "SwarmResult") -> "SwarmRecord":
        return cls(
            correlation_id=result.correlation_id,
            agent_types=list(result.agent_types),
            execution_time=result.execution_time,
            success_count=len(result.successful),
            failure_count=len(result.failed),
            result=result,
        )

    def to_dict(self, include_result: bool = False) -> dict:
        payload = {
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp,
            "agent_types": list(self.agent_types),
            "execution_time": self.execution_time,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
        }
        if include_result and self.result is not None:
            payload["result"] = self.result.to_dict()
        return payload


class SwarmHistory:
    """
    Fixed-capacity history of swarm executions.

    Also keeps all-time counters so totals survive eviction.
    """

    def __init__(self, capacity: int = HISTORY.MAX_ENTRIES):
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._entries: Deque[SwarmRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self.total_count = 0
        self.total_time = 0.0

    def append(self, record: SwarmRecord) -> None:
        with self._lock:
            self._entries.append(record)
            self.total_count += 1
            self.total_time += record.execution_time

    @property
    def average_time(self) -> float:
        with self._lock:
            if self.total_count == 0:
                return 0.0
            return self.total_time / self.total_count

    def recent(self, limit: int = HISTORY.RECENT_LIMIT) -> List[SwarmRecord]:
        """Most recent entries, oldest first."""
        if limit <= 0:
            return []
        with self._lock:
            return list(self._entries)[-limit:]

    def entries(self) -> List[SwarmRecord]:
        with self._lock:
            return list(self._entries)

    def get(self, correlation_id: str) -> Optional[SwarmRecord]:
        with self._lock:
            for record in reversed(self._entries):
                if record.correlation_id == correlation_id:
                    return record
        return None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.total_count = 0
            self.total_time = 0.0

    def __len__(self) -> int:
        return len(self._entries)
