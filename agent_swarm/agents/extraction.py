"""Task extraction.

Derives the narrow task view each agent type expects from a composite master
task. Field aliasing is declarative: each target field lists the source fields
it accepts, in priority order, so new aliases are table entries rather than
code.

Extraction is pure. The returned view is a deep copy, so agents never share a
reference into the master task or into each other's inputs.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from .base import AgentType, agent_type_value


_MISSING = object()


@dataclass(frozen=True)
class FieldSpec:
    """One target field of an agent's task view.

    Attributes:
        target: Field name in the extracted view.
        sources: Master-task fields to read, first usable one wins.
        default: Value used when no source is usable.
        null_only: When True any non-None value is usable (so 0 and "" are
            kept); otherwise only truthy values are.
        fallback_to_task: Use the whole master task when no source is usable.
    """

    target: str
    sources: Tuple[str, ...]
    default: Any = None
    null_only: bool = False
    fallback_to_task: bool = False

    def resolve(self, master_task: Mapping[str, Any]) -> Any:
        value = first_present(master_task, self.sources, null_only=self.null_only)
        if value is not _MISSING:
            return value
        if self.fallback_to_task:
            return dict(master_task)
        return self.default


def first_present(
    payload: Mapping[str, Any],
    keys: Sequence[str],
    *,
    null_only: bool = True,
    default: Any = _MISSING,
) -> Any:
    """Return the first usable value among ``keys`` in ``payload``."""
    if not isinstance(payload, Mapping):
        return default
    for key in keys:
        if key not in payload:
            continue
        value = payload[key]
        if null_only and value is not None:
            return value
        if not null_only and value:
            return value
    return default


DEFAULT_EXTRACTION_RULES: Dict[str, Tuple[FieldSpec, ...]] = {
    AgentType.EMAIL_PARSER.value: (
        FieldSpec("email_content", ("emailContent", "email_content", "content")),
        FieldSpec("sender_info", ("sender", "senderInfo", "sender_info")),
    ),
    AgentType.PRICE_ANALYZER.value: (
        FieldSpec("current_price", ("price", "currentPrice", "current_price"), null_only=True),
        FieldSpec("product_id", ("productId", "product_id"), null_only=True),
        FieldSpec("historical_prices", ("priceHistory", "price_history", "historicalPrices"), default=[]),
    ),
    AgentType.STOCK_CHECKER.value: (
        FieldSpec("product_id", ("productId", "product_id"), null_only=True),
        FieldSpec("current_stock", ("stock", "currentStock", "current_stock")),
        FieldSpec("daily_usage", ("dailyUsage", "daily_usage"), default=0),
        FieldSpec("minimum_stock", ("minimumStock", "minimum_stock"), default=0),
    ),
    AgentType.PRODUCT_MATCHER.value: (
        FieldSpec("product_name", ("productName", "product_name", "name")),
        FieldSpec("product_list", ("products", "productList", "product_list"), default=[]),
    ),
    AgentType.VALIDATOR.value: (
        FieldSpec("data", ("data",), fallback_to_task=True),
        FieldSpec("rules", ("validationRules", "validation_rules"), default="quotation"),
    ),
}


class TaskExtractor:
    """
    Builds per-agent task views from a master task.

    Usage:
        extractor = TaskExtractor()
        view = extractor.extract(master_task, AgentType.PRICE_ANALYZER)
    """

    def __init__(self, rules: Optional[Mapping[str, Sequence[FieldSpec]]] = None):
        source = DEFAULT_EXTRACTION_RULES if rules is None else rules
        self._rules: Dict[str, Tuple[FieldSpec, ...]] = {
            agent_type_value(k): tuple(v) for k, v in source.items()
        }

    def register(self, agent_type: Union[str, AgentType], fields: Sequence[FieldSpec]) -> None:
        """Register (or replace) the field table for an agent type."""
        self._rules[agent_type_value(agent_type)] = tuple(fields)

    def has_rules(self, agent_type: Union[str, AgentType]) -> bool:
        return agent_type_value(agent_type) in self._rules

    def extract(
        self,
        master_task: Mapping[str, Any],
        agent_type: Union[str, AgentType],
    ) -> Dict[str, Any]:
        """
        Extract the task view for one agent type.

        Agent types without registered rules receive the whole master task.

        Args:
            master_task: Superset mapping of fields
            agent_type: Target agent type

        Returns:
            A new dict owned by the caller
        """
        fields = self._rules.get(agent_type_value(agent_type))
        if fields is None:
            return copy.deepcopy(dict(master_task))

        view = {spec.target: spec.resolve(master_task) for spec in fields}
        return copy.deepcopy(view)


def extract_task_for_agent(
    master_task: Mapping[str, Any],
    agent_type: Union[str, AgentType],
) -> Dict[str, Any]:
    """Extract a task view using the default rules."""
    return TaskExtractor().extract(master_task, agent_type)
