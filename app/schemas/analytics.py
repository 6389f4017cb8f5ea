from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a filtered collection plus the pre-pagination count."""
    total: int
    items: List[T]


class RuleKpis(BaseModel):
    total_claims_evaluated: int = Field(alias="totalClaimsEvaluated")
    flags_triggered: int = Field(alias="flagsTriggered")
    confirmed_fraud: int = Field(alias="confirmedFraud")
    false_positive_rate: float = Field(alias="falsePositiveRate")
    hit_rate: float = Field(alias="hitRate")
    last_evaluated: str = Field(alias="lastEvaluated")

    class Config:
        populate_by_name = True


class TriggerTrend(BaseModel):
    date: str
    triggers: int
    confirmed: int


class SeverityBucket(BaseModel):
    severity: str
    count: int
    percentage: float


class ConditionHit(BaseModel):
    condition: str
    percentage: float
    rank: int


class TriggeredClaim(BaseModel):
    claim_id: str = Field(alias="claimId")
    claimant: str
    amount: float
    severity: str
    decision: str
    score: float
    triggered_at: str = Field(alias="triggeredAt")

    class Config:
        populate_by_name = True


class DecisionCounts(BaseModel):
    fraud: int
    legitimate: int
    pending: int


class ExecutionStatus(BaseModel):
    id: str
    status: str
    result: str


class AuditLogItem(BaseModel):
    id: int
    created_at: Optional[str] = None
    actor_id: Optional[int] = None
    actor_email: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    entity_label: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class AuditFilters(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    action: Optional[str] = None
    entity_type: Optional[str] = None
    actor_email: Optional[str] = None
    entity_id: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
