from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class RuleStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    TESTING = "testing"


class RuleSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def default_logic() -> Dict[str, Any]:
    return {"groups": []}


class RuleVersion(BaseModel):
    """Snapshot of a rule's logic at one point of its publish history."""
    id: str
    version: str
    created_at: str = Field(alias="createdAt")
    created_by: str = Field(alias="createdBy")
    notes: str = ""
    is_active: bool = Field(alias="isActive")
    is_draft: bool = Field(default=False, alias="isDraft")
    logic_snapshot: Dict[str, Any] = Field(default_factory=default_logic)

    class Config:
        populate_by_name = True


class Rule(BaseModel):
    """Canonical fraud rule as produced by the normalizer."""
    id: str
    rule_id: str = Field(alias="ruleId")
    name: str
    description: str = ""
    category: str = "transaction"
    severity: RuleSeverity = RuleSeverity.MEDIUM
    status: RuleStatus = RuleStatus.DRAFT
    triggers_24h: int = Field(default=0, alias="triggers24h")
    trigger_delta: float = Field(default=0, alias="triggerDelta")
    last_updated: str = Field(alias="lastUpdated")
    created_by: str = Field(alias="createdBy")
    owner_name: str = Field(alias="ownerName")
    tags: List[str] = Field(default_factory=list)
    logic: Dict[str, Any] = Field(default_factory=default_logic)
    versions: List[RuleVersion] = Field(default_factory=list)
    current_version: str = Field(alias="currentVersion")
    condition_summary: str = Field(default="", alias="conditionSummary")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @property
    def active_version(self) -> Optional[RuleVersion]:
        """The version currently considered authoritative."""
        for version in self.versions:
            if version.version == self.current_version:
                return version
        return None


class PublishRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    category: str | None = None
    severity: str | None = None
    tags: List[str] | None = None
    condition_summary: str | None = Field(default=None, alias="conditionSummary")
    logic: Dict[str, Any] | None = None
    notes: str | None = None
    version: str | None = None

    class Config:
        populate_by_name = True


class StatusUpdate(BaseModel):
    status: RuleStatus


class VersionNotesUpdate(BaseModel):
    notes: str


class RuleTestRequest(BaseModel):
    rule: Dict[str, Any] = Field(default_factory=dict)
    payload: Dict[str, Any] = Field(default_factory=dict)


class EvaluationResult(BaseModel):
    triggered: bool
    severity: str
    reasons: List[str]
