"""
Tests for Schema Validation Utilities
=====================================
"""

import pytest

import agent_swarm.utils.schema_validation as schema_validation
from agent_swarm.utils.schema_validation import (
    is_valid_orchestrator_event,
    validate_against_schema,
    validate_orchestrator_event,
)


def _valid_event():
    return {
        "schema_version": "1.0",
        "event_id": "evt_0001",
        "event_type": "ORCHESTRATOR_SWARM_COMPLETED",
        "aggregate_type": "orchestrator",
        "aggregate_id": "main",
        "correlation_id": "swarm_1700000000000_ab12",
        "created_at": "2025-12-22T10:11:12Z",
        "payload": {"success_count": 2, "failure_count": 0},
    }


@pytest.mark.unit
def test_validate_orchestrator_event_accepts_valid_payload():
    validate_orchestrator_event(_valid_event())
    assert is_valid_orchestrator_event(_valid_event()) is True


@pytest.mark.unit
def test_validate_orchestrator_event_rejects_missing_required_field():
    event = _valid_event()
    event.pop("correlation_id")

    with pytest.raises(ValueError, match="correlation_id"):
        validate_orchestrator_event(event)
    assert is_valid_orchestrator_event(event) is False


@pytest.mark.unit
def test_validate_orchestrator_event_rejects_extra_field():
    event = _valid_event()
    event["unexpected"] = True
    assert is_valid_orchestrator_event(event) is False


@pytest.mark.unit
def test_validate_orchestrator_event_reports_path():
    event = _valid_event()
    event["payload"] = "not an object"

    with pytest.raises(ValueError, match="Validation failed at 'payload'"):
        validate_orchestrator_event(event)


@pytest.mark.unit
def test_is_valid_handles_non_object():
    assert is_valid_orchestrator_event(["not", "an", "event"]) is False


@pytest.mark.unit
def test_missing_schema_file_raises():
    with pytest.raises(FileNotFoundError):
        validate_against_schema({}, "does_not_exist.schema.json")


@pytest.mark.unit
def test_schema_path_traversal_rejected():
    with pytest.raises(ValueError, match="escapes schemas directory"):
        schema_validation._load_schema("../config.py")
