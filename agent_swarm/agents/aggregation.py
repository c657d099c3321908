"""Result aggregation and conflict resolution.

Partitions per-agent outcomes into successes and failures, merges successful
payloads into one ``combined`` mapping keyed by agent type, then applies a
fixed, ordered list of conflict rules. Each rule looks at a known pair of
agents and contributes derived ``_``-prefixed keys; adding a cross-agent
relationship means appending one rule.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from loguru import logger

from .base import AgentType, ExecutionOutcome, agent_type_value
from .extraction import first_present


ConflictRule = Callable[[Mapping[str, Any]], Mapping[str, Any]]


def resolve_validation_failure(combined: Mapping[str, Any]) -> Dict[str, Any]:
    """Flag the combined view when the validator reports invalid data."""
    report = combined.get(AgentType.VALIDATOR.value)
    if not isinstance(report, Mapping):
        return {}

    if first_present(report, ("isValid", "is_valid"), default=None) is not False:
        return {}

    results = report.get("results") or []
    errors = [r for r in results if isinstance(r, Mapping) and not r.get("valid")]
    return {
        "_validationFailed": True,
        "_validationErrors": errors,
    }


def resolve_price_reconciliation(combined: Mapping[str, Any]) -> Dict[str, Any]:
    """Check whether the analyzed price appears among the email's extracted prices."""
    email = combined.get(AgentType.EMAIL_PARSER.value)
    analysis = combined.get(AgentType.PRICE_ANALYZER.value)
    if not isinstance(email, Mapping) or analysis is None:
        return {}

    extracted = email.get("extracted")
    prices = extracted.get("prices") if isinstance(extracted, Mapping) else None
    if prices is None:
        return {}

    analyzed = first_present(analysis, ("currentPrice", "current_price"), default=None)
    return {
        "_priceReconciliation": {
            "extracted": list(prices),
            "analyzed": analyzed,
            "match": analyzed in prices,
        }
    }


DEFAULT_CONFLICT_RULES: List[ConflictRule] = [
    resolve_validation_failure,
    resolve_price_reconciliation,
]


def resolve_conflicts(
    combined: Mapping[str, Any],
    rules: Optional[Sequence[ConflictRule]] = None,
) -> Dict[str, Any]:
    """
    Apply conflict rules in order over ``combined``.

    Rules see the original combined payloads, not each other's derived keys.
    A rule that raises is logged and skipped.
    """
    resolved = dict(combined)
    for rule in (DEFAULT_CONFLICT_RULES if rules is None else rules):
        try:
            derived = rule(combined)
        except Exception as e:
            logger.warning(f"Conflict rule {getattr(rule, '__name__', rule)} failed: {e}")
            continue
        if derived:
            resolved.update(derived)
    return resolved


@dataclass
class AggregatedResults:
    """Partitioned outcomes plus the merged view."""
    successful: List[ExecutionOutcome] = field(default_factory=list)
    failed: List[ExecutionOutcome] = field(default_factory=list)
    combined: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        return len(self.failed) > 0

    @property
    def all_succeeded(self) -> bool:
        return len(self.failed) == 0

    def to_dict(self) -> dict:
        return {
            "successful": [o.to_dict() for o in self.successful],
            "failed": [o.to_dict() for o in self.failed],
            "combined": self.combined,
            "has_failures": self.has_failures,
            "all_succeeded": self.all_succeeded,
        }


def aggregate_outcomes(
    outcomes: Sequence[ExecutionOutcome],
    agent_types: Optional[Sequence[Union[str, AgentType]]] = None,
    rules: Optional[Sequence[ConflictRule]] = None,
) -> AggregatedResults:
    """
    Aggregate per-agent outcomes.

    Args:
        outcomes: One outcome per dispatched agent, in any order
        agent_types: Requested order; ``combined`` keys follow it so the
            result does not depend on completion order
        rules: Conflict rules (defaults to DEFAULT_CONFLICT_RULES)

    Returns:
        AggregatedResults
    """
    successful = [o for o in outcomes if o.succeeded]
    failed = [o for o in outcomes if not o.succeeded]

    by_type: Dict[str, ExecutionOutcome] = {}
    for outcome in successful:
        by_type.setdefault(outcome.agent_type, outcome)
    if agent_types is None:
        order = [o.agent_type for o in successful]
    else:
        order = [agent_type_value(t) for t in agent_types]

    combined: Dict[str, Any] = {}
    for agent_type in order:
        outcome = by_type.get(agent_type)
        if outcome is not None and agent_type not in combined:
            combined[agent_type] = outcome.result

    return AggregatedResults(
        successful=successful,
        failed=failed,
        combined=resolve_conflicts(combined, rules),
    )
