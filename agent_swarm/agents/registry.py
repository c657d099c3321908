"""
Agent Registry
==============
Registry of agent descriptors keyed by agent type.

Each descriptor pairs an implementation with its runtime configuration,
metrics and advisory status. A registry belongs to one orchestrator instance;
there is no process-wide registry, so tests can build isolated ones.

This enables:
- Agent lookup by type or id
- Registration from objects, callables, or "module:attribute" paths
- Introspection of registered types and their metrics
"""

import importlib
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from loguru import logger

from .base import (
    AgentCallable,
    AgentConfig,
    AgentMetrics,
    AgentStatus,
    AgentType,
    BaseAgent,
    agent_type_value,
    as_agent,
)


@dataclass
class AgentDescriptor:
    """Registered agent type: implementation, config, metrics and status."""
    agent_type: str
    agent: BaseAgent
    config: AgentConfig
    agent_id: str = ""
    metrics: AgentMetrics = field(default_factory=AgentMetrics)
    status: AgentStatus = AgentStatus.IDLE

    def __post_init__(self):
        if not self.agent_id:
            self.agent_id = f"agent_{self.agent_type}_{uuid.uuid4().hex[:8]}"

    def to_dict(self) -> dict:
        return {
            "agent_type": self.agent_type,
            "agent_id": self.agent_id,
            "implementation": self.agent.name,
            "config": self.config.to_dict(),
            "status": self.status.value,
            **self.metrics.to_dict(),
        }


def load_object(path: str) -> Any:
    """
    Import an object from a ``"package.module:attribute"`` path.

    A dotted path without a colon is split at its last dot.

    Raises:
        ValueError: When the path is malformed
        ImportError: When the module cannot be imported
        AttributeError: When the attribute does not exist
    """
    if not isinstance(path, str) or not path.strip():
        raise ValueError("Import path must be a non-empty string")

    path = path.strip()
    if ":" in path:
        module_path, _, attr_path = path.partition(":")
    else:
        module_path, _, attr_path = path.rpartition(".")

    if not module_path or not attr_path:
        raise ValueError(f"Invalid import path '{path}', expected 'module:attribute'")

    obj: Any = importlib.import_module(module_path)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    return obj


class AgentRegistry:
    """
    Registry for agent descriptors.

    Provides:
    - Registration with per-type default configuration
    - Lookup by type or descriptor id
    - Dynamic loading of implementations by import path
    """

    def __init__(self, default_config: Optional[AgentConfig] = None):
        """
        Args:
            default_config: Config for agents registered without an explicit
                or declared config (per-type defaults apply when None)
        """
        self.default_config = default_config
        self._descriptors: Dict[str, AgentDescriptor] = {}

    def register(
        self,
        agent_type: Union[str, AgentType, None],
        implementation: Union[BaseAgent, AgentCallable, type],
        config: Optional[Union[AgentConfig, Mapping[str, Any]]] = None,
    ) -> AgentDescriptor:
        """
        Register (or replace) the implementation for an agent type.

        Args:
            agent_type: Agent type tag; may be None when the implementation
                declares ``agent_type``
            implementation: BaseAgent instance/subclass or callable(task, context)
            config: AgentConfig or mapping with ``timeout``/``retries``

        Returns:
            The new AgentDescriptor
        """
        agent = as_agent(implementation)

        if agent_type is None:
            agent_type = agent.agent_type
        if agent_type is None or not agent_type_value(agent_type).strip():
            raise ValueError("agent_type must be a non-empty string")

        type_value = agent_type_value(agent_type)
        if config is None:
            config = agent.default_config or self.default_config
        agent_config = AgentConfig.for_agent_type(type_value, config)

        if type_value in self._descriptors:
            logger.warning(f"Replacing registered agent {type_value}")

        descriptor = AgentDescriptor(agent_type=type_value, agent=agent, config=agent_config)
        self._descriptors[type_value] = descriptor

        logger.info(
            f"Registered agent {type_value} ({agent.name}, "
            f"timeout={agent_config.timeout_seconds}s, retries={agent_config.retries})"
        )
        return descriptor

    def register_from_path(
        self,
        agent_type: Union[str, AgentType, None],
        import_path: str,
        config: Optional[Union[AgentConfig, Mapping[str, Any]]] = None,
    ) -> AgentDescriptor:
        """Register an implementation loaded from a ``module:attribute`` path."""
        try:
            implementation = load_object(import_path)
        except (ImportError, AttributeError) as e:
            logger.error(f"Failed to load agent {agent_type} from {import_path}: {e}")
            raise
        return self.register(agent_type, implementation, config)

    def unregister(self, agent_type: Union[str, AgentType]) -> bool:
        """Remove an agent type. Returns True when something was removed."""
        return self._descriptors.pop(agent_type_value(agent_type), None) is not None

    def get(self, agent_type: Union[str, AgentType]) -> Optional[AgentDescriptor]:
        """Get descriptor by agent type."""
        return self._descriptors.get(agent_type_value(agent_type))

    def get_by_id(self, agent_id: str) -> Optional[AgentDescriptor]:
        """Get descriptor by its generated agent id."""
        for descriptor in self._descriptors.values():
            if descriptor.agent_id == agent_id:
                return descriptor
        return None

    def list_types(self) -> List[str]:
        """Get all registered agent types in registration order."""
        return list(self._descriptors.keys())

    def list_all(self) -> List[AgentDescriptor]:
        return list(self._descriptors.values())

    def metrics(self) -> Dict[str, dict]:
        """Per-agent metrics snapshot keyed by agent type."""
        return {
            agent_type: {**descriptor.metrics.to_dict(), "status": descriptor.status.value}
            for agent_type, descriptor in self._descriptors.items()
        }

    def __contains__(self, agent_type: object) -> bool:
        if not isinstance(agent_type, str):
            return False
        return agent_type_value(agent_type) in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[AgentDescriptor]:
        return iter(list(self._descriptors.values()))
