"""
Tests for Orchestrator Events
=============================
Tests event construction, in-memory and JSONL sinks, and best-effort emission.
"""

import asyncio
import json

import pytest
from filelock import FileLock

from agent_swarm.events import (
    SWARM_COMPLETED,
    SWARM_STARTED,
    EventSink,
    InMemoryEventLog,
    JsonlEventLog,
    NullEventSink,
    emit_event,
    make_orchestrator_event,
)


class FailingSink(EventSink):
    def __init__(self):
        self.attempts = 0

    async def append(self, event):
        self.attempts += 1
        raise OSError("disk full")


def _event(correlation_id="swarm_1", event_type=SWARM_STARTED):
    return make_orchestrator_event(
        event_type=event_type,
        correlation_id=correlation_id,
        payload={"agent_types": ["validator"]},
    )


class TestMakeOrchestratorEvent:
    """Tests for make_orchestrator_event."""

    @pytest.mark.unit
    def test_envelope_fields(self):
        event = _event()

        assert event["schema_version"] == "1.0"
        assert event["event_type"] == "ORCHESTRATOR_SWARM_STARTED"
        assert event["aggregate_type"] == "orchestrator"
        assert event["aggregate_id"] == "main"
        assert event["correlation_id"] == "swarm_1"
        assert event["event_id"].startswith("evt_")
        assert event["created_at"].endswith("Z")

    @pytest.mark.unit
    def test_payload_is_json_normalized(self):
        event = make_orchestrator_event(
            event_type=SWARM_COMPLETED,
            correlation_id="swarm_1",
            payload={"types": ("a", "b"), "obj": object()},
        )
        assert event["payload"]["types"] == ["a", "b"]
        assert isinstance(event["payload"]["obj"], str)
        json.dumps(event)

    @pytest.mark.unit
    def test_rejects_unknown_event_type(self):
        with pytest.raises(ValueError):
            make_orchestrator_event(event_type="SOMETHING_ELSE", correlation_id="c", payload={})

    @pytest.mark.unit
    def test_rejects_empty_correlation_id(self):
        with pytest.raises(ValueError):
            make_orchestrator_event(event_type=SWARM_STARTED, correlation_id="", payload={})


class TestInMemoryEventLog:
    """Tests for InMemoryEventLog."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_append_and_filter(self):
        log = InMemoryEventLog()
        await log.append(_event("swarm_1"))
        await log.append(_event("swarm_2"))
        await log.append(_event("swarm_1", SWARM_COMPLETED))

        assert log.count() == 3
        assert [e["event_type"] for e in log.for_correlation("swarm_1")] == [
            SWARM_STARTED,
            SWARM_COMPLETED,
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_bounded(self):
        log = InMemoryEventLog(max_events=2)
        for n in range(3):
            await log.append(_event(f"swarm_{n}"))

        assert [e["correlation_id"] for e in log.events] == ["swarm_1", "swarm_2"]


class TestEmitEvent:
    """Tests for best-effort emission."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_emit_to_sink(self):
        log = InMemoryEventLog()
        assert await emit_event(log, SWARM_STARTED, "swarm_1", {"x": 1}) is True
        assert log.events[0]["payload"] == {"x": 1}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_sink(self):
        assert await emit_event(None, SWARM_STARTED, "swarm_1", {}) is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sink_failure_is_swallowed(self):
        sink = FailingSink()
        assert await emit_event(sink, SWARM_STARTED, "swarm_1", {}) is False
        assert sink.attempts == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_event_is_swallowed(self):
        log = InMemoryEventLog()
        assert await emit_event(log, "NOT_AN_EVENT", "swarm_1", {}) is False
        assert log.count() == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_null_sink(self):
        assert await emit_event(NullEventSink(), SWARM_COMPLETED, "swarm_1", {}) is True


class SlowSink(EventSink):
    def __init__(self, delay):
        self.delay = delay
        self.started = 0

    async def append(self, event):
        self.started += 1
        await asyncio.sleep(self.delay)


class TestEmitTimeout:
    """Tests for bounded event delivery."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_slow_sink_is_abandoned_after_timeout(self):
        sink = SlowSink(delay=5.0)
        loop = asyncio.get_running_loop()
        start = loop.time()

        delivered = await emit_event(sink, SWARM_STARTED, "swarm_1", {}, timeout_seconds=0.05)

        assert delivered is False
        assert sink.started == 1
        assert loop.time() - start < 1.0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fast_sink_within_timeout(self):
        log = InMemoryEventLog()
        assert await emit_event(log, SWARM_STARTED, "swarm_1", {}, timeout_seconds=1.0) is True
        assert log.count() == 1


class TestJsonlEventLog:
    """Tests for JsonlEventLog."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_append_and_iter(self, tmp_path):
        log = JsonlEventLog(tmp_path / "logs" / "events.jsonl")
        await log.append(_event("swarm_1"))
        log.append_sync(_event("swarm_1", SWARM_COMPLETED))

        events = list(log.iter_events())
        assert [e["event_type"] for e in events] == [SWARM_STARTED, SWARM_COMPLETED]
        assert log.count() == 2
        assert log.paths().lock_path.name == "events.jsonl.lock"

    @pytest.mark.unit
    def test_iter_missing_file(self, tmp_path):
        log = JsonlEventLog(tmp_path / "events.jsonl")
        assert list(log.iter_events()) == []
        assert log.count() == 0

    @pytest.mark.unit
    def test_rejects_invalid_event_and_does_not_write(self, tmp_path):
        log = JsonlEventLog(tmp_path / "events.jsonl")
        bad = _event()
        bad.pop("payload")

        with pytest.raises(ValueError):
            log.append_sync(bad)

        assert log.count() == 0

    @pytest.mark.unit
    def test_iter_raises_on_invalid_json_line(self, tmp_path):
        log = JsonlEventLog(tmp_path / "events.jsonl")
        log.ensure_exists()
        log.log_path.write_text("not-json\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid JSON"):
            list(log.iter_events())

    @pytest.mark.unit
    def test_iter_validate_flag(self, tmp_path):
        log = JsonlEventLog(tmp_path / "events.jsonl")
        log.append_sync(_event())
        with open(log.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps({"event_type": "bogus"}) + "\n")

        assert len(list(log.iter_events(validate=False))) == 2
        with pytest.raises(ValueError, match="Invalid event"):
            list(log.iter_events(validate=True))

    @pytest.mark.unit
    def test_append_times_out_when_lock_held(self, tmp_path):
        log = JsonlEventLog(tmp_path / "events.jsonl", lock_timeout_seconds=0)
        p = log.ensure_exists()

        with FileLock(p.lock_path, timeout=0):
            with pytest.raises(TimeoutError, match="Timed out acquiring event log lock"):
                log.append_sync(_event())
