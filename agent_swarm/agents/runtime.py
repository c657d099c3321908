"""
Agent Runtime
=============
Wraps a registered agent with the resilience behavior every agent shares:

- Per-attempt timeout (first of implementation completion or deadline wins)
- Retry with exponential backoff: 0.5s, 1s, 2s, ... before attempts 2, 3, 4, ...
- Advisory status tracking on the descriptor
- Invocation/success counters and a running average latency

``AgentRuntime.execute`` never raises for agent failures; every outcome is
reported through the returned ExecutionOutcome.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from agent_swarm.config import RUNTIME
from agent_swarm.tracing import agent_span, record_agent_result

from .base import AgentStatus, ExecutionOutcome, OutcomeStatus
from .registry import AgentDescriptor


SleepFn = Callable[[float], Awaitable[Any]]


class AgentTimeoutError(Exception):
    """Raised when one attempt does not finish within the agent's timeout."""

    def __init__(self, agent_type: str, timeout_seconds: float):
        self.agent_type = agent_type
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Agent {agent_type} timed out after {timeout_seconds}s")


class _ImplementationTimeout(Exception):
    """Wraps a TimeoutError raised by the implementation itself.

    Keeps it apart from the deadline expiry reported by ``asyncio.wait_for``.
    """

    def __init__(self, original: BaseException):
        self.original = original
        super().__init__(str(original))


class AgentRuntime:
    """
    Runs one agent descriptor with timeout, retry and metrics.

    Usage:
        runtime = AgentRuntime(descriptor)
        outcome = await runtime.execute(task, context)
    """

    def __init__(
        self,
        descriptor: AgentDescriptor,
        sleep: Optional[SleepFn] = None,
        backoff_base_seconds: float = RUNTIME.BACKOFF_BASE_SECONDS,
    ):
        """
        Args:
            descriptor: Registered agent to run
            sleep: Awaitable sleep used between attempts (asyncio.sleep by default)
            backoff_base_seconds: Delay before the second attempt
        """
        self.descriptor = descriptor
        self.sleep = sleep or asyncio.sleep
        self.backoff_base_seconds = backoff_base_seconds

    @property
    def agent_type(self) -> str:
        return self.descriptor.agent_type

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.descriptor.config.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_base_seconds, exp_base=2),
            retry=retry_if_exception_type(Exception),
            before_sleep=self._log_retry,
            sleep=self.sleep,
            reraise=True,
        )

    async def _process(self, task: Dict[str, Any], context: Dict[str, Any]) -> Any:
        try:
            return await self.descriptor.agent.process(task, context)
        except asyncio.TimeoutError as e:
            raise _ImplementationTimeout(e) from e

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Agent {self.agent_type} attempt {retry_state.attempt_number}/"
            f"{self.descriptor.config.max_attempts} failed: {_describe_error(exc)}; "
            f"retrying in {delay:.2f}s"
        )

    async def _run_attempt(self, task: Dict[str, Any], context: Dict[str, Any]) -> Any:
        """Run one attempt racing the implementation against the timeout."""
        self.descriptor.status = AgentStatus.RUNNING
        timeout = self.descriptor.config.timeout_seconds

        try:
            return await asyncio.wait_for(self._process(task, context), timeout=timeout)
        except _ImplementationTimeout as e:
            self.descriptor.status = AgentStatus.FAILED
            raise e.original
        except asyncio.TimeoutError as e:
            self.descriptor.status = AgentStatus.TIMEOUT
            raise AgentTimeoutError(self.agent_type, timeout) from e
        except Exception:
            self.descriptor.status = AgentStatus.FAILED
            raise

    async def execute(
        self,
        task: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> ExecutionOutcome:
        """
        Execute the agent with timeout and retry.

        Args:
            task: Agent-private task view
            context: Shared swarm context

        Returns:
            ExecutionOutcome with status success or failed
        """
        context = context if context is not None else {}
        descriptor = self.descriptor
        start_time = time.perf_counter()
        descriptor.metrics.record_invocation()
        attempts_used = 0

        with agent_span(
            self.agent_type,
            descriptor.agent_id,
            descriptor.config.timeout_seconds,
            descriptor.config.retries,
        ) as span:
            try:
                async for attempt in self._retrying():
                    with attempt:
                        attempts_used = attempt.retry_state.attempt_number
                        result = await self._run_attempt(task, context)
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                error = _describe_error(e)
                logger.error(
                    f"Agent {self.agent_type} failed after {attempts_used} attempt(s) "
                    f"in {elapsed:.2f}s: {error}"
                )
                record_agent_result(span, OutcomeStatus.FAILED.value, attempts_used, error)
                return ExecutionOutcome.failure(
                    self.agent_type,
                    error=error,
                    execution_time=elapsed,
                    attempt=attempts_used,
                    agent_id=descriptor.agent_id,
                )

            elapsed = time.perf_counter() - start_time
            descriptor.status = AgentStatus.SUCCESS
            descriptor.metrics.record_success(elapsed)

            logger.debug(
                f"Agent {self.agent_type} succeeded on attempt {attempts_used} in {elapsed:.2f}s"
            )
            record_agent_result(span, OutcomeStatus.SUCCESS.value, attempts_used)

            return ExecutionOutcome(
                agent_type=self.agent_type,
                status=OutcomeStatus.SUCCESS,
                result=result,
                execution_time=elapsed,
                attempt=attempts_used,
                agent_id=descriptor.agent_id,
            )


def _describe_error(exc: Optional[BaseException]) -> str:
    if exc is None:
        return "Unknown error"
    message = str(exc)
    return message if message else type(exc).__name__
