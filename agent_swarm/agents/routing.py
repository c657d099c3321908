"""Task routing.

Infers which agent type should handle a single ad-hoc task by inspecting its
shape. Routes are checked in a fixed priority order; the first match wins and
the validator is the fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .base import AgentType, agent_type_value


@dataclass(frozen=True)
class Route:
    """A routing rule.

    Matches when any field in ``any_of`` holds a truthy value, or when the
    ``contains`` field is a string containing the given marker.
    """

    agent_type: str
    any_of: Tuple[str, ...] = ()
    contains: Optional[Tuple[str, str]] = None

    def matches(self, task: Mapping[str, Any]) -> bool:
        for key in self.any_of:
            if task.get(key):
                return True
        if self.contains is not None:
            key, marker = self.contains
            value = task.get(key)
            if isinstance(value, str) and marker in value:
                return True
        return False


DEFAULT_ROUTES: Tuple[Route, ...] = (
    Route(
        AgentType.EMAIL_PARSER.value,
        any_of=("emailContent", "email_content"),
        contains=("content", "@"),
    ),
    Route(AgentType.PRICE_ANALYZER.value, any_of=("price", "currentPrice", "current_price")),
    Route(AgentType.STOCK_CHECKER.value, any_of=("stock", "currentStock", "current_stock")),
    Route(
        AgentType.PRODUCT_MATCHER.value,
        any_of=("productName", "product_name", "matchQuery", "match_query"),
    ),
    Route(AgentType.VALIDATOR.value, any_of=("validate", "data")),
)


class TaskRouter:
    """Maps a task to the best-matching agent type."""

    def __init__(
        self,
        routes: Optional[Sequence[Route]] = None,
        fallback: Union[str, AgentType] = AgentType.VALIDATOR,
    ):
        self.routes: List[Route] = list(DEFAULT_ROUTES if routes is None else routes)
        self.fallback = agent_type_value(fallback)

    def add_route(self, route: Route, index: Optional[int] = None) -> None:
        """Add a route; appended (lowest priority) unless ``index`` is given."""
        if index is None:
            self.routes.append(route)
        else:
            self.routes.insert(index, route)

    def infer_agent_type(self, task: Mapping[str, Any]) -> str:
        if not isinstance(task, Mapping):
            return self.fallback
        for route in self.routes:
            if route.matches(task):
                return route.agent_type
        return self.fallback


def infer_agent_type(task: Mapping[str, Any]) -> str:
    """Infer the agent type for ``task`` using the default routes."""
    return TaskRouter().infer_agent_type(task)
