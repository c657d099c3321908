"""
Swarm Orchestrator
==================
Dispatches groups of agents concurrently against one master task and
aggregates their outcomes.

Key responsibilities:
- Extract each agent's private task view from the master task
- Run every requested agent concurrently and wait for all of them
- Convert unregistered or crashed agents into failed outcomes
- Aggregate outcomes with conflict resolution
- Emit best-effort start/completion events
- Keep bounded history and per-agent metrics

Failures are reported through returned status fields. Only programming misuse
(for example an empty agent list) raises, as SwarmUsageError.
"""

import asyncio
import copy
import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from loguru import logger

from agent_swarm.config import EVENT_LOG, HISTORY, RUNTIME
from agent_swarm.events.sink import SWARM_COMPLETED, SWARM_STARTED, EventSink, emit_event
from agent_swarm.tracing import init_tracing, record_swarm_counts, swarm_span

from .aggregation import ConflictRule, aggregate_outcomes
from .base import (
    AgentCallable,
    AgentConfig,
    AgentType,
    BaseAgent,
    ExecutionOutcome,
    agent_type_value,
)
from .extraction import TaskExtractor
from .history import SwarmHistory, SwarmRecord
from .registry import AgentDescriptor, AgentRegistry
from .routing import TaskRouter
from .runtime import AgentRuntime, SleepFn


class SwarmUsageError(ValueError):
    """Raised when the orchestrator is called in a way that can never succeed."""


@dataclass
class OrchestratorConfig:
    """Configuration for the orchestrator."""
    # History settings
    history_size: int = HISTORY.MAX_ENTRIES
    recent_history_limit: int = HISTORY.RECENT_LIMIT
    task_preview_chars: int = HISTORY.TASK_PREVIEW_CHARS

    # Agent settings
    backoff_base_seconds: float = RUNTIME.BACKOFF_BASE_SECONDS
    default_agent_config: Optional[AgentConfig] = None

    # Event settings
    emit_events: bool = True
    event_timeout_seconds: Optional[float] = EVENT_LOG.EMIT_TIMEOUT


@dataclass
class SwarmResult:
    """Aggregate of one swarm call."""
    correlation_id: str
    execution_time: float
    agent_types: List[str]
    successful: List[ExecutionOutcome] = field(default_factory=list)
    failed: List[ExecutionOutcome] = field(default_factory=list)
    combined: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        return len(self.failed) > 0

    @property
    def all_succeeded(self) -> bool:
        return len(self.failed) == 0

    @property
    def outcomes(self) -> List[ExecutionOutcome]:
        return self.successful + self.failed

    def get_outcome(self, agent_type: Union[str, AgentType]) -> Optional[ExecutionOutcome]:
        wanted = agent_type_value(agent_type)
        for outcome in self.outcomes:
            if outcome.agent_type == wanted:
                return outcome
        return None

    def to_dict(self) -> dict:
        """Convert result to dictionary for JSON serialization."""
        return {
            "correlation_id": self.correlation_id,
            "execution_time": self.execution_time,
            "agent_types": list(self.agent_types),
            "successful": [o.to_dict() for o in self.successful],
            "failed": [o.to_dict() for o in self.failed],
            "combined": self.combined,
            "has_failures": self.has_failures,
            "all_succeeded": self.all_succeeded,
        }


class SwarmOrchestrator:
    """
    Runs swarms of registered agents.

    Usage:
        orchestrator = SwarmOrchestrator(event_sink=InMemoryEventLog())
        orchestrator.register_agent(AgentType.VALIDATOR, validate_quote)

        result = await orchestrator.execute_swarm(master_task, ["validator"])
        outcome = await orchestrator.execute_task({"data": {...}})
    """

    def __init__(
        self,
        registry: Optional[AgentRegistry] = None,
        config: Optional[OrchestratorConfig] = None,
        event_sink: Optional[EventSink] = None,
        extractor: Optional[TaskExtractor] = None,
        router: Optional[TaskRouter] = None,
        conflict_rules: Optional[Sequence[ConflictRule]] = None,
        sleep: Optional[SleepFn] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            registry: Agent registry (a new empty one using
                config.default_agent_config by default)
            config: Orchestrator configuration
            event_sink: Destination for start/completion events
            extractor: Task view extractor
            router: Single-task router
            conflict_rules: Aggregation rules (defaults apply when None)
            sleep: Backoff sleep passed to every agent runtime
        """
        self.config = config or OrchestratorConfig()
        if registry is None:
            registry = AgentRegistry(default_config=self.config.default_agent_config)
        self.registry = registry
        self.event_sink = event_sink
        self.extractor = extractor or TaskExtractor()
        self.router = router or TaskRouter()
        self.conflict_rules = conflict_rules
        self.sleep = sleep
        self.history = SwarmHistory(capacity=self.config.history_size)
        self.tracer = init_tracing()

        logger.info(
            f"Orchestrator initialized (history_size={self.config.history_size}, "
            f"events={'on' if event_sink is not None and self.config.emit_events else 'off'})"
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_agent(
        self,
        agent_type: Union[str, AgentType, None],
        implementation: Union[BaseAgent, AgentCallable, type],
        config: Optional[Union[AgentConfig, Mapping[str, Any]]] = None,
    ) -> AgentDescriptor:
        """Register an agent implementation. See AgentRegistry.register."""
        return self.registry.register(agent_type, implementation, config)

    def register_agent_from_path(
        self,
        agent_type: Union[str, AgentType, None],
        import_path: str,
        config: Optional[Union[AgentConfig, Mapping[str, Any]]] = None,
    ) -> AgentDescriptor:
        """Register an implementation given as ``module:attribute``."""
        return self.registry.register_from_path(agent_type, import_path, config)

    def get_agent(self, agent_type: Union[str, AgentType]) -> Optional[AgentDescriptor]:
        return self.registry.get(agent_type)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _runtime(self, descriptor: AgentDescriptor) -> AgentRuntime:
        return AgentRuntime(
            descriptor,
            sleep=self.sleep,
            backoff_base_seconds=self.config.backoff_base_seconds,
        )

    def _new_correlation_id(self) -> str:
        return f"swarm_{int(time.time() * 1000)}_{uuid.uuid4().hex[:4]}"

    def _task_preview(self, master_task: Mapping[str, Any]) -> str:
        try:
            text = json.dumps(master_task, default=str, sort_keys=True)
        except (TypeError, ValueError):
            text = repr(master_task)
        return text[: self.config.task_preview_chars]

    async def _emit(self, event_type: str, correlation_id: str, payload: Dict[str, Any]) -> None:
        if not self.config.emit_events:
            return
        await emit_event(
            self.event_sink,
            event_type,
            correlation_id,
            payload,
            timeout_seconds=self.config.event_timeout_seconds,
        )

    def _check_usage(self, agent_types: Sequence[Union[str, AgentType]]) -> None:
        if isinstance(agent_types, (str, bytes)):
            raise SwarmUsageError("agent_types must be a list of agent types, not a string")
        if not agent_types:
            raise SwarmUsageError("execute_swarm requires at least one agent type")
        if len(self.registry) == 0:
            raise SwarmUsageError("No agents registered; register agents before executing a swarm")

    async def _dispatch(
        self,
        agent_type: str,
        master_task: Mapping[str, Any],
        context: Dict[str, Any],
    ) -> ExecutionOutcome:
        descriptor = self.registry.get(agent_type)
        if descriptor is None:
            logger.warning(f"Agent {agent_type} not found in registry")
            return ExecutionOutcome.failure(agent_type, error=f"Agent {agent_type} not found")

        agent_task = self.extractor.extract(master_task, agent_type)
        return await self._runtime(descriptor).execute(agent_task, dict(context))

    async def execute_swarm(
        self,
        master_task: Mapping[str, Any],
        agent_types: Sequence[Union[str, AgentType]],
        context: Optional[Dict[str, Any]] = None,
    ) -> SwarmResult:
        """
        Execute a swarm of agents concurrently.

        Every requested agent type yields exactly one outcome; a failing or
        unregistered agent never prevents the others from being collected.

        Args:
            master_task: Superset task from which each agent's view is extracted
            agent_types: Agent types to dispatch
            context: Shared context passed to every agent

        Returns:
            SwarmResult

        Raises:
            SwarmUsageError: On empty agent_types, an empty registry, or a
                non-mapping master task
        """
        self._check_usage(agent_types)
        if not isinstance(master_task, Mapping):
            raise SwarmUsageError(
                f"master_task must be a mapping, got {type(master_task).__name__}"
            )

        types = [agent_type_value(t) for t in agent_types]
        context = dict(context or {})
        correlation_id = self._new_correlation_id()
        start_time = time.perf_counter()

        with swarm_span(correlation_id, types) as span:
            logger.info(f"Swarm {correlation_id} started with agents: {', '.join(types)}")
            await self._emit(SWARM_STARTED, correlation_id, {
                "agent_types": types,
                "task_preview": self._task_preview(master_task),
            })

            settled = await asyncio.gather(
                *[self._dispatch(t, master_task, context) for t in types],
                return_exceptions=True,
            )

            outcomes: List[ExecutionOutcome] = []
            for agent_type, item in zip(types, settled):
                if isinstance(item, BaseException):
                    logger.error(f"Agent {agent_type} crashed outside its runtime: {item!r}")
                    outcomes.append(ExecutionOutcome.failure(
                        agent_type,
                        error=str(item) or type(item).__name__,
                    ))
                else:
                    outcomes.append(item)

            aggregated = aggregate_outcomes(outcomes, types, self.conflict_rules)
            execution_time = time.perf_counter() - start_time

            result = SwarmResult(
                correlation_id=correlation_id,
                execution_time=execution_time,
                agent_types=types,
                successful=aggregated.successful,
                failed=aggregated.failed,
                combined=aggregated.combined,
            )

            record_swarm_counts(span, execution_time, len(result.successful), len(result.failed))

            await self._emit(SWARM_COMPLETED, correlation_id, {
                "agent_types": types,
                "execution_time": execution_time,
                "success_count": len(result.successful),
                "failure_count": len(result.failed),
            })

        self.history.append(SwarmRecord.from_result(result))

        logger.info(
            f"Swarm {correlation_id} completed in {execution_time:.2f}s "
            f"({len(result.successful)} succeeded, {len(result.failed)} failed)"
        )
        return result

    async def execute_task(
        self,
        task: Mapping[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> ExecutionOutcome:
        """
        Route a single task to the best-matching agent and run it.

        The agent receives a copy of the whole task (no extraction).

        Raises:
            SwarmUsageError: When no agents are registered or task is not a mapping
        """
        if len(self.registry) == 0:
            raise SwarmUsageError("No agents registered; register agents before executing tasks")
        if not isinstance(task, Mapping):
            raise SwarmUsageError(f"task must be a mapping, got {type(task).__name__}")

        agent_type = self.router.infer_agent_type(task)
        descriptor = self.registry.get(agent_type)
        if descriptor is None:
            logger.warning(f"No agent found for task type: {agent_type}")
            return ExecutionOutcome.failure(
                agent_type,
                error=f"No agent found for task type: {agent_type}",
            )

        logger.debug(f"Routing task to {agent_type}")
        runtime = self._runtime(descriptor)
        return await runtime.execute(copy.deepcopy(dict(task)), dict(context or {}))

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get orchestrator metrics.

        Returns:
            Dict with total_swarms, average_swarm_time, per_agent_metrics and
            recent_history (at most recent_history_limit entries)
        """
        return {
            "total_swarms": self.history.total_count,
            "average_swarm_time": self.history.average_time,
            "per_agent_metrics": self.registry.metrics(),
            "recent_history": [
                record.to_dict()
                for record in self.history.recent(self.config.recent_history_limit)
            ],
        }


def create_orchestrator(
    agents: Optional[Mapping[str, Union[BaseAgent, AgentCallable]]] = None,
    event_sink: Optional[EventSink] = None,
    history_size: int = HISTORY.MAX_ENTRIES,
    agent_configs: Optional[Mapping[str, Union[AgentConfig, Mapping[str, Any]]]] = None,
) -> SwarmOrchestrator:
    """
    Create an orchestrator and register agents in one call.

    Args:
        agents: Mapping of agent type to implementation
        event_sink: Destination for orchestrator events
        history_size: Swarm history capacity
        agent_configs: Optional per-type config overrides

    Returns:
        Configured SwarmOrchestrator
    """
    orchestrator = SwarmOrchestrator(
        config=OrchestratorConfig(history_size=history_size),
        event_sink=event_sink,
    )
    agent_configs = agent_configs or {}
    for agent_type, implementation in (agents or {}).items():
        orchestrator.register_agent(agent_type, implementation, agent_configs.get(agent_type))
    return orchestrator
