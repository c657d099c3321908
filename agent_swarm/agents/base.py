"""
Base Agent Classes
==================
Foundation for every agent that can run inside a swarm.

An agent only implements business logic: ``process(task, context)`` returns a
payload or raises. Timeouts, retries, status and metrics are supplied by
:class:`agent_swarm.agents.runtime.AgentRuntime`, so implementations stay small
and must not share mutable state with other agent types.
"""

import asyncio
import inspect
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from agent_swarm.config import RUNTIME, get_timeout


class AgentType(str, Enum):
    """Known agent type tags.

    Any string is accepted as an agent type; members compare equal to their
    string values so ``"validator"`` and ``AgentType.VALIDATOR`` are
    interchangeable as dictionary keys.
    """
    EMAIL_PARSER = "email_parser"
    PRICE_ANALYZER = "price_analyzer"
    STOCK_CHECKER = "stock_checker"
    NEGOTIATOR = "negotiator"
    VALIDATOR = "validator"
    PRODUCT_MATCHER = "product_matcher"
    SUPPLIER_SCORER = "supplier_scorer"

    def __str__(self) -> str:
        return self.value


class AgentStatus(Enum):
    """Advisory execution status tracked on each descriptor."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"


class OutcomeStatus(Enum):
    """Externally visible status of one wrapped execution."""
    SUCCESS = "success"
    FAILED = "failed"


def agent_type_value(agent_type: Union[str, AgentType]) -> str:
    """Normalize an agent type tag to its plain string value."""
    if isinstance(agent_type, AgentType):
        return agent_type.value
    return str(agent_type)


@dataclass(frozen=True)
class AgentConfig:
    """Runtime configuration for one agent type."""
    timeout_seconds: float = RUNTIME.DEFAULT_TIMEOUT_SECONDS
    retries: int = RUNTIME.DEFAULT_RETRIES

    def __post_init__(self):
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    @classmethod
    def for_agent_type(
        cls,
        agent_type: Union[str, AgentType],
        overrides: Optional[Union["AgentConfig", Mapping[str, Any]]] = None,
    ) -> "AgentConfig":
        """
        Build the config for an agent type.

        Accepts either an AgentConfig (returned as-is) or a mapping that may
        contain ``timeout`` / ``timeout_seconds`` (seconds) and ``retries``.
        Missing keys fall back to the per-type defaults.
        """
        if isinstance(overrides, AgentConfig):
            return overrides

        overrides = dict(overrides or {})
        timeout = overrides.get("timeout_seconds", overrides.get("timeout"))
        retries = overrides.get("retries")

        return cls(
            timeout_seconds=float(timeout) if timeout is not None else get_timeout(agent_type_value(agent_type)),
            retries=int(retries) if retries is not None else RUNTIME.DEFAULT_RETRIES,
        )

    def to_dict(self) -> dict:
        return {
            "timeout_seconds": self.timeout_seconds,
            "retries": self.retries,
        }


@dataclass
class AgentMetrics:
    """
    Execution counters for one agent type.

    The running average is updated incrementally so no latency history is
    stored. All mutation goes through the lock.
    """
    execution_count: int = 0
    success_count: int = 0
    average_execution_time: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_invocation(self) -> None:
        with self._lock:
            self.execution_count += 1

    def record_success(self, execution_time: float) -> None:
        with self._lock:
            self.success_count += 1
            n = self.success_count
            self.average_execution_time = (
                (self.average_execution_time * (n - 1)) + execution_time
            ) / n

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "execution_count": self.execution_count,
                "success_count": self.success_count,
                "average_execution_time": self.average_execution_time,
            }


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    Result of one wrapped agent execution.

    Created once per invocation and never mutated; ``result`` is set on
    success and ``error`` on failure.
    """
    agent_type: str
    status: OutcomeStatus
    result: Any = None
    error: Optional[str] = None
    execution_time: float = 0.0
    attempt: int = 0
    agent_id: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @classmethod
    def failure(
        cls,
        agent_type: Union[str, AgentType],
        error: str,
        execution_time: float = 0.0,
        attempt: int = 0,
        agent_id: Optional[str] = None,
    ) -> "ExecutionOutcome":
        """Build a failed outcome (also used for synthetic failures)."""
        return cls(
            agent_type=agent_type_value(agent_type),
            status=OutcomeStatus.FAILED,
            error=error,
            execution_time=execution_time,
            attempt=attempt,
            agent_id=agent_id,
        )

    def to_dict(self) -> dict:
        """Convert outcome to dictionary for JSON serialization."""
        payload = {
            "agent_type": self.agent_type,
            "agent_id": self.agent_id,
            "status": self.status.value,
            "execution_time": self.execution_time,
            "attempt": self.attempt,
            "timestamp": self.timestamp,
        }
        if self.succeeded:
            payload["result"] = self.result
        else:
            payload["error"] = self.error
        return payload


class BaseAgent(ABC):
    """
    Base class for swarm agents.

    Subclasses implement :meth:`process`. The optional class attributes
    ``agent_type`` and ``default_config`` are used when the agent is
    registered without an explicit type or config.
    """

    agent_type: Optional[Union[str, AgentType]] = None
    default_config: Optional[AgentConfig] = None

    @abstractmethod
    async def process(self, task: Dict[str, Any], context: Dict[str, Any]) -> Any:
        """
        Run the agent's business logic.

        Args:
            task: Agent-private view of the master task
            context: Shared, read-only swarm context

        Returns:
            The agent's payload (usually a dict)
        """
        pass

    @property
    def name(self) -> str:
        return type(self).__name__


AgentCallable = Callable[[Dict[str, Any], Dict[str, Any]], Union[Any, Awaitable[Any]]]


class FunctionAgent(BaseAgent):
    """Adapts a plain callable ``fn(task, context)`` to the agent contract.

    Coroutine functions are awaited. Synchronous callables run in a worker
    thread so they never stall other agents on the event loop.
    """

    def __init__(self, fn: AgentCallable, name: Optional[str] = None):
        if not callable(fn):
            raise TypeError(f"Agent implementation must be callable, got {type(fn).__name__}")
        self.fn = fn
        self._name = name or getattr(fn, "__name__", type(fn).__name__)

    @property
    def name(self) -> str:
        return self._name

    async def process(self, task: Dict[str, Any], context: Dict[str, Any]) -> Any:
        if inspect.iscoroutinefunction(self.fn) or inspect.iscoroutinefunction(
            getattr(self.fn, "__call__", None)
        ):
            return await self.fn(task, context)

        result = await asyncio.to_thread(self.fn, task, context)
        if inspect.isawaitable(result):
            return await result
        return result


def as_agent(implementation: Union[BaseAgent, AgentCallable]) -> BaseAgent:
    """Return ``implementation`` as a BaseAgent, wrapping callables."""
    if isinstance(implementation, BaseAgent):
        return implementation
    if isinstance(implementation, type) and issubclass(implementation, BaseAgent):
        return implementation()
    return FunctionAgent(implementation)
