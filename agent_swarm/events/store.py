"""
JSONL Event Log
===============
Append-only JSONL file sink for orchestrator events.

Design goals:
- Simple, transparent on-disk format (one JSON object per line)
- File locking to avoid concurrent write corruption
- Schema validation for predictable downstream parsing
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Union

from filelock import FileLock, Timeout

from agent_swarm.config import EVENT_LOG
from agent_swarm.utils.schema_validation import validate_orchestrator_event

from .sink import EventSink


@dataclass(frozen=True)
class EventLogPaths:
    """Resolved paths for an event log."""

    log_dir: Path
    log_path: Path
    lock_path: Path


class JsonlEventLog(EventSink):
    """Append-only event log stored as JSONL.

    Writes run in a worker thread so lock waits never block the event loop.
    """

    def __init__(
        self,
        log_path: Union[str, Path],
        lock_timeout_seconds: int = EVENT_LOG.FILE_LOCK_TIMEOUT,
    ):
        self.log_path = Path(log_path)
        self.lock_timeout_seconds = lock_timeout_seconds

    def paths(self) -> EventLogPaths:
        lock_path = self.log_path.with_suffix(self.log_path.suffix + ".lock")
        return EventLogPaths(log_dir=self.log_path.parent, log_path=self.log_path, lock_path=lock_path)

    def ensure_exists(self) -> EventLogPaths:
        p = self.paths()
        p.log_dir.mkdir(parents=True, exist_ok=True)
        return p

    def append_sync(self, event: Dict[str, Any]) -> None:
        """Validate and append a single event record."""
        validate_orchestrator_event(event)
        p = self.ensure_exists()

        line = json.dumps(event, ensure_ascii=False, sort_keys=True)

        try:
            with FileLock(p.lock_path, timeout=self.lock_timeout_seconds):
                with open(p.log_path, "a", encoding="utf-8") as f:
                    f.write(line)
                    f.write("\n")
                    f.flush()
        except Timeout as e:
            raise TimeoutError(
                f"Timed out acquiring event log lock {p.lock_path} after {self.lock_timeout_seconds}s"
            ) from e
        except OSError as e:
            raise OSError(f"Failed to append event to {p.log_path}: {e}") from e

    async def append(self, event: Dict[str, Any]) -> None:
        await asyncio.to_thread(self.append_sync, event)

    def iter_events(self, validate: bool = True) -> Iterator[Dict[str, Any]]:
        """Iterate event records in insertion order."""
        p = self.paths()
        if not p.log_path.exists():
            return

        with open(p.log_path, "r", encoding="utf-8") as f:
            for idx, raw_line in enumerate(f, start=1):
                line = raw_line.strip()
                if not line:
                    continue

                try:
                    obj = json.loads(line)
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid JSON at {p.log_path} line {idx}: {e}")

                if not isinstance(obj, dict):
                    raise ValueError(f"Event record must be an object at {p.log_path} line {idx}")

                if validate:
                    try:
                        validate_orchestrator_event(obj)
                    except ValueError as e:
                        raise ValueError(f"Invalid event at {p.log_path} line {idx}: {e}")

                yield obj

    def count(self) -> int:
        return sum(1 for _ in self.iter_events(validate=False))
