"""
Swarm Tracing
=============
OpenTelemetry spans for swarm and agent executions.

Each ``execute_swarm`` call opens one ``swarm`` span and every agent runtime
opens a child ``agent.execute`` span. Export over OTLP/HTTP is switched on by
ENABLE_TRACING=true; otherwise the API's no-op tracer is used.
"""

import atexit
import json
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, Sequence

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from agent_swarm.config import TRACING

SERVICE_NAME_VALUE = TRACING.SERVICE_NAME
OTLP_ENDPOINT = TRACING.OTLP_ENDPOINT
ENABLE_TRACING = TRACING.ENABLED

SWARM_SPAN = "swarm"
AGENT_SPAN = "agent.execute"

# Attribute limits keep spans small for the collector
MAX_STRING_LENGTH = 1024
MAX_SEQUENCE_ITEMS = 32

_provider: Optional[TracerProvider] = None
_tracer: Optional[trace.Tracer] = None


def _shutdown_provider() -> None:
    if _provider is not None:
        _provider.shutdown()


def setup_tracing(service_name: str = SERVICE_NAME_VALUE) -> trace.Tracer:
    """
    Install a global TracerProvider exporting swarm spans over OTLP/HTTP.

    Args:
        service_name: service.name resource attribute

    Returns:
        Tracer bound to the new provider
    """
    global _provider

    _provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    _provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=OTLP_ENDPOINT)))
    trace.set_tracer_provider(_provider)

    # Pending spans are flushed on interpreter exit
    atexit.register(_shutdown_provider)

    return trace.get_tracer(service_name)


def init_tracing() -> trace.Tracer:
    """
    Return the swarm tracer, installing the exporter on first use when enabled.

    Safe to call repeatedly; every orchestrator calls it on construction.
    """
    global _tracer
    if _tracer is None:
        _tracer = setup_tracing() if ENABLE_TRACING else trace.get_tracer(SERVICE_NAME_VALUE)
    return _tracer


def get_tracer(name: str = SERVICE_NAME_VALUE) -> trace.Tracer:
    """Get a named tracer from the current global provider."""
    return trace.get_tracer(name)


def _coerce_attribute(value: Any) -> Any:
    """Convert a value into an OpenTelemetry attribute value, or None to skip it."""
    if value is None:
        return None
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value[:MAX_STRING_LENGTH]
    if isinstance(value, (list, tuple)):
        items = list(value)[:MAX_SEQUENCE_ITEMS]
        if all(isinstance(x, (bool, int, float)) for x in items):
            return items
        return [str(x)[:MAX_STRING_LENGTH] for x in items]
    if isinstance(value, Mapping):
        return json.dumps(value, sort_keys=True, default=str)[:MAX_STRING_LENGTH]
    return str(value)[:MAX_STRING_LENGTH]


def safe_set_span_attributes(span: Any, attributes: Mapping[str, Any]) -> None:
    """Set span attributes without ever failing the caller.

    None values and non-string keys are skipped; other values are coerced
    and truncated.
    """
    setter = getattr(span, "set_attribute", None)
    if not callable(setter):
        return

    for key, value in attributes.items():
        if not isinstance(key, str) or not key:
            continue
        try:
            coerced = _coerce_attribute(value)
            if coerced is not None:
                setter(key, coerced)
        except Exception:
            # Tracing never breaks a swarm
            continue


@contextmanager
def swarm_span(correlation_id: str, agent_types: Sequence[str]) -> Iterator[Any]:
    """Open the span covering one swarm execution."""
    with init_tracing().start_as_current_span(SWARM_SPAN) as span:
        safe_set_span_attributes(span, {
            "swarm.correlation_id": correlation_id,
            "swarm.agent_types": list(agent_types),
            "swarm.agent_count": len(agent_types),
        })
        yield span


@contextmanager
def agent_span(
    agent_type: str,
    agent_id: str,
    timeout_seconds: float,
    retries: int,
) -> Iterator[Any]:
    """Open the span covering one wrapped agent execution (all attempts)."""
    with init_tracing().start_as_current_span(AGENT_SPAN) as span:
        safe_set_span_attributes(span, {
            "agent.type": agent_type,
            "agent.id": agent_id,
            "agent.timeout_seconds": timeout_seconds,
            "agent.retries": retries,
        })
        yield span


def record_swarm_counts(span: Any, execution_time: float, success_count: int, failure_count: int) -> None:
    safe_set_span_attributes(span, {
        "swarm.execution_time": execution_time,
        "swarm.success_count": success_count,
        "swarm.failure_count": failure_count,
    })


def record_agent_result(
    span: Any,
    status: str,
    attempts: int,
    error: Optional[str] = None,
) -> None:
    safe_set_span_attributes(span, {
        "agent.status": status,
        "agent.attempts": attempts,
        "agent.error": error,
    })
