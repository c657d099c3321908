"""
Swarm Agents Module
===================
Concurrent multi-agent orchestration.

Building blocks:
- BaseAgent / FunctionAgent: agent contract and callable adapter
- AgentRegistry: agent descriptors keyed by agent type
- AgentRuntime: timeout, retry with backoff, status and metrics
- TaskExtractor: per-agent task views from a master task
- TaskRouter: agent type inference for single tasks
- aggregate_outcomes: outcome partitioning and conflict resolution
- SwarmOrchestrator: concurrent dispatch, events and history
"""

from .base import (
    AgentConfig,
    AgentMetrics,
    AgentStatus,
    AgentType,
    BaseAgent,
    ExecutionOutcome,
    FunctionAgent,
    OutcomeStatus,
    as_agent,
)
from .registry import AgentDescriptor, AgentRegistry, load_object
from .runtime import AgentRuntime, AgentTimeoutError
from .extraction import DEFAULT_EXTRACTION_RULES, FieldSpec, TaskExtractor, extract_task_for_agent
from .routing import DEFAULT_ROUTES, Route, TaskRouter, infer_agent_type
from .aggregation import (
    DEFAULT_CONFLICT_RULES,
    AggregatedResults,
    aggregate_outcomes,
    resolve_conflicts,
    resolve_price_reconciliation,
    resolve_validation_failure,
)
from .history import SwarmHistory, SwarmRecord
from .orchestrator import (
    OrchestratorConfig,
    SwarmOrchestrator,
    SwarmResult,
    SwarmUsageError,
    create_orchestrator,
)

__all__ = [
    # Base
    "AgentConfig",
    "AgentMetrics",
    "AgentStatus",
    "AgentType",
    "BaseAgent",
    "ExecutionOutcome",
    "FunctionAgent",
    "OutcomeStatus",
    "as_agent",
    # Registry and runtime
    "AgentDescriptor",
    "AgentRegistry",
    "load_object",
    "AgentRuntime",
    "AgentTimeoutError",
    # Task views and routing
    "DEFAULT_EXTRACTION_RULES",
    "FieldSpec",
    "TaskExtractor",
    "extract_task_for_agent",
    "DEFAULT_ROUTES",
    "Route",
    "TaskRouter",
    "infer_agent_type",
    # Aggregation
    "DEFAULT_CONFLICT_RULES",
    "AggregatedResults",
    "aggregate_outcomes",
    "resolve_conflicts",
    "resolve_price_reconciliation",
    "resolve_validation_failure",
    # Orchestration
    "SwarmHistory",
    "SwarmRecord",
    "OrchestratorConfig",
    "SwarmOrchestrator",
    "SwarmResult",
    "SwarmUsageError",
    "create_orchestrator",
]
