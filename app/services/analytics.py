"""
Read-only views for the rule performance dashboard.

The numbers themselves come from a PerformanceDataSource; this module only
filters, sorts, ranks and paginates what the source returns. It also holds the
stand-in evaluator behind the "test rule" action.
"""

import asyncio
import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Protocol, Sequence

from app.db import seed_data
from app.schemas.analytics import (
    ConditionHit,
    DecisionCounts,
    ExecutionStatus,
    Page,
    RuleKpis,
    SeverityBucket,
    TriggerTrend,
    TriggeredClaim,
)
from app.schemas.rule import EvaluationResult

logger = logging.getLogger(__name__)

AMOUNT_THRESHOLD = 1000

# sort key -> (field, descending)
SORT_KEYS = {
    "amount_desc": ("amount", True),
    "amount_asc": ("amount", False),
    "score_desc": ("score", True),
    "score_asc": ("score", False),
}

LATENCY_MS = {
    "kpis": 120,
    "trends": 100,
    "severity": 90,
    "conditions": 90,
    "claims": 120,
    "decisions": 80,
    "execution": 80,
    "test": 200,
}


class PerformanceDataSource(Protocol):
    def kpi_snapshot(self, rule_id: str, days: int) -> Dict[str, Any]: ...

    def trend_series(self, rule_id: str, days: int) -> List[Dict[str, Any]]: ...

    def severity_distribution(self, rule_id: str, days: int) -> List[Dict[str, Any]]: ...

    def condition_hits(self, rule_id: str, days: int) -> List[Dict[str, Any]]: ...

    def triggered_claims(self, rule_id: str, days: int) -> List[Dict[str, Any]]: ...

    def decision_counts(self, rule_id: str, days: int) -> Dict[str, int]: ...


class SamplePerformanceSource:
    """Canned performance figures from app.db.seed_data, regenerated per call."""

    def kpi_snapshot(self, rule_id: str, days: int) -> Dict[str, Any]:
        keys = ("totalClaimsEvaluated", "flagsTriggered", "confirmedFraud",
                "falsePositiveRate", "hitRate", "lastEvaluated")
        return {key: seed_data.SAMPLE_RULE_PERFORMANCE[key] for key in keys}

    def trend_series(self, rule_id: str, days: int) -> List[Dict[str, Any]]:
        return seed_data.generate_trigger_trends(days)

    def severity_distribution(self, rule_id: str, days: int) -> List[Dict[str, Any]]:
        return [dict(bucket) for bucket in seed_data.SAMPLE_RULE_PERFORMANCE["severityDistribution"]]

    def condition_hits(self, rule_id: str, days: int) -> List[Dict[str, Any]]:
        return [dict(hit) for hit in seed_data.SAMPLE_RULE_PERFORMANCE["conditionHitMap"]]

    def triggered_claims(self, rule_id: str, days: int) -> List[Dict[str, Any]]:
        return seed_data.generate_triggered_claims()

    def decision_counts(self, rule_id: str, days: int) -> Dict[str, int]:
        return dict(seed_data.SAMPLE_RULE_PERFORMANCE["decisionCounts"])


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def filter_claims(items: Sequence[Any], severity: Optional[str] = None,
                  decision: Optional[str] = None) -> List[Any]:
    """Keep items matching every given filter; None means unconstrained."""
    result = list(items)
    if severity:
        result = [item for item in result if _field(item, "severity") == severity]
    if decision:
        result = [item for item in result if _field(item, "decision") == decision]
    return result


def sort_claims(items: Sequence[Any], sort_key: Optional[str]) -> List[Any]:
    """Stable sort on a numeric field; unknown keys leave the order unchanged."""
    if sort_key not in SORT_KEYS:
        return list(items)
    field, descending = SORT_KEYS[sort_key]
    return sorted(items, key=lambda item: _field(item, field) or 0, reverse=descending)


def paginate(items: Sequence[Any], page: int = 1, page_size: int = 20) -> Page:
    """Slice out a 1-indexed page. Pages past the end are empty."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    start = (page - 1) * page_size
    return Page(total=len(items), items=list(items[start:start + page_size]))


def _amount(payload: Any) -> float:
    value = _field(payload, "amount") if payload is not None else None
    if value is None or isinstance(value, bool):
        return 0
    try:
        return float(value)
    except OverflowError:
        # integers beyond float range
        return math.inf if value > 0 else -math.inf
    except (TypeError, ValueError):
        return 0


def evaluate(rule: Any, payload: Any) -> EvaluationResult:
    """Placeholder evaluator: triggers when payload.amount exceeds 1000.

    The rule's logic tree is not consulted.
    """
    triggered = _amount(payload) > AMOUNT_THRESHOLD
    return EvaluationResult(
        triggered=triggered,
        severity="high" if triggered else "low",
        reasons=[f"amount > {AMOUNT_THRESHOLD}"] if triggered else ["no conditions met"],
    )


class RulePerformanceService:
    def __init__(self, source: PerformanceDataSource = None, simulate_latency: bool = False):
        self.source = source or SamplePerformanceSource()
        self.simulate_latency = simulate_latency

    async def _delay(self, operation: str):
        if self.simulate_latency:
            await asyncio.sleep(LATENCY_MS[operation] / 1000)

    async def get_rule_kpis(self, rule_id: str, days: int) -> RuleKpis:
        await self._delay("kpis")
        return RuleKpis(**self.source.kpi_snapshot(rule_id, days))

    async def get_rule_trends(self, rule_id: str, days: int) -> List[TriggerTrend]:
        await self._delay("trends")
        return [TriggerTrend(**point) for point in self.source.trend_series(rule_id, days)]

    async def get_rule_severity(self, rule_id: str, days: int) -> List[SeverityBucket]:
        await self._delay("severity")
        return [SeverityBucket(**bucket) for bucket in self.source.severity_distribution(rule_id, days)]

    async def get_rule_conditions(self, rule_id: str, days: int) -> List[ConditionHit]:
        """Conditions ranked by hit percentage, highest first."""
        await self._delay("conditions")
        hits = sorted(self.source.condition_hits(rule_id, days),
                      key=lambda hit: hit.get("percentage", 0), reverse=True)
        return [
            ConditionHit(condition=hit["condition"], percentage=hit.get("percentage", 0), rank=idx + 1)
            for idx, hit in enumerate(hits)
        ]

    async def get_triggered_claims(
        self,
        rule_id: str,
        days: int,
        severity: Optional[str] = None,
        decision: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
        sort: Optional[str] = None,
    ) -> Page[TriggeredClaim]:
        await self._delay("claims")
        claims = [TriggeredClaim(**claim) for claim in self.source.triggered_claims(rule_id, days)]
        claims = filter_claims(claims, severity=severity, decision=decision)
        claims = sort_claims(claims, sort)
        result = paginate(claims, page, page_size)
        return Page[TriggeredClaim](total=result.total, items=result.items)

    async def get_decision_counts(self, rule_id: str, days: int) -> DecisionCounts:
        await self._delay("decisions")
        return DecisionCounts(**self.source.decision_counts(rule_id, days))

    async def get_execution(self, execution_id: str) -> ExecutionStatus:
        await self._delay("execution")
        return ExecutionStatus(id=str(execution_id), status="completed", result="Sample execution result")

    async def test_rule(self, rule: Any, payload: Any) -> EvaluationResult:
        await self._delay("test")
        result = evaluate(rule, payload)
        logger.debug(f"Test evaluation triggered={result.triggered}")
        return result
