import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from app.core.config import settings
from app.core.error_handling import (
    NotFoundError,
    RuleStoreError,
    format_error_response,
    handle_api_error,
    handle_not_found,
)
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.schemas.analytics import (
    AuditFilters,
    AuditLogItem,
    ConditionHit,
    DecisionCounts,
    ExecutionStatus,
    Page,
    RuleKpis,
    SeverityBucket,
    TriggerTrend,
    TriggeredClaim,
)
from app.schemas.rule import (
    EvaluationResult,
    PublishRequest,
    Rule,
    RuleTestRequest,
    RuleVersion,
    StatusUpdate,
    VersionNotesUpdate,
)
from app.services.analytics import RulePerformanceService
from app.services.audit import AuditLogService
from app.services.rule_repository import RuleRepository
from app.services.rule_store import InMemoryStorage, RuleStore, SQLAlchemyStorage

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,  # Frontend URL
    allow_credentials=True,
    allow_methods=["*"],  # Allows all methods
    allow_headers=["*"],  # Allows all headers
)

# Initialize services
if settings.STORAGE_BACKEND == "memory":
    storage = InMemoryStorage()
else:
    init_db()
    storage = SQLAlchemyStorage(SessionLocal)

rule_repository = RuleRepository(RuleStore(storage))
performance_service = RulePerformanceService(simulate_latency=settings.SIMULATE_LATENCY)
audit_service = AuditLogService()

def get_rule_repository() -> RuleRepository:
    return rule_repository

def get_performance_service() -> RulePerformanceService:
    return performance_service

def get_audit_service() -> AuditLogService:
    return audit_service

@app.exception_handler(RuleStoreError)
async def rule_store_error_handler(request: Request, exc: RuleStoreError):
    logger.error(f"Unhandled rule store error on {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=500, content=format_error_response(exc, "storage_error"))

@app.get(f"{settings.API_V1_STR}/rules", response_model=List[Rule])
async def list_rules(repo: RuleRepository = Depends(get_rule_repository)):
    """List all rules."""
    return await repo.list_rules()

@app.post(f"{settings.API_V1_STR}/rules", response_model=Rule, status_code=201)
async def create_rule(
    rule_data: Dict[str, Any] = Body(...),
    repo: RuleRepository = Depends(get_rule_repository)
):
    """Create a rule from a loosely shaped record; missing fields get defaults."""
    return await repo.create_rule(rule_data)

@app.post(f"{settings.API_V1_STR}/rules/test", response_model=EvaluationResult)
async def test_rule(
    request: RuleTestRequest,
    service: RulePerformanceService = Depends(get_performance_service)
):
    """Run the placeholder evaluator against a sample payload."""
    return await service.test_rule(request.rule, request.payload)

@app.put(f"{settings.API_V1_STR}/rules/versions/{{version_id}}/notes", response_model=RuleVersion)
async def update_version_notes(
    version_id: str,
    update: VersionNotesUpdate,
    repo: RuleRepository = Depends(get_rule_repository)
):
    """Replace the notes of a single rule version."""
    try:
        return await repo.update_version_notes(version_id, update.notes)
    except NotFoundError as e:
        raise handle_not_found(e)

@app.get(f"{settings.API_V1_STR}/rules/{{rule_id}}", response_model=Rule)
async def get_rule(rule_id: str, repo: RuleRepository = Depends(get_rule_repository)):
    """Get a specific rule by ID or rule ID."""
    try:
        return await repo.get_rule(rule_id)
    except NotFoundError as e:
        raise handle_not_found(e)

@app.put(f"{settings.API_V1_STR}/rules/{{rule_id}}", response_model=Rule)
async def update_rule(
    rule_id: str,
    patch: Dict[str, Any] = Body(...),
    repo: RuleRepository = Depends(get_rule_repository)
):
    """Update a specific rule with a partial record."""
    try:
        return await repo.update_rule(rule_id, patch)
    except NotFoundError as e:
        raise handle_not_found(e)

@app.delete(f"{settings.API_V1_STR}/rules/{{rule_id}}")
async def delete_rule(rule_id: str, repo: RuleRepository = Depends(get_rule_repository)):
    """Delete a specific rule and its versions."""
    await repo.delete_rule(rule_id)
    return {"message": "Rule deleted successfully"}

@app.patch(f"{settings.API_V1_STR}/rules/{{rule_id}}/status", response_model=Rule)
async def update_rule_status(
    rule_id: str,
    update: StatusUpdate,
    repo: RuleRepository = Depends(get_rule_repository)
):
    """Change a rule's lifecycle status."""
    try:
        return await repo.set_status(rule_id, update.status)
    except NotFoundError as e:
        raise handle_not_found(e)
    except ValueError as e:
        raise handle_api_error(e, status_code=400, error_key="invalid_request")

@app.get(f"{settings.API_V1_STR}/rules/{{rule_id}}/versions", response_model=List[RuleVersion])
async def list_rule_versions(rule_id: str, repo: RuleRepository = Depends(get_rule_repository)):
    """Version history of a rule, most recent first."""
    return await repo.list_versions(rule_id)

@app.post(f"{settings.API_V1_STR}/rules/{{rule_id}}/clone", response_model=Rule, status_code=201)
async def clone_rule(rule_id: str, repo: RuleRepository = Depends(get_rule_repository)):
    """Duplicate a rule together with its version history."""
    try:
        return await repo.clone_rule(rule_id)
    except NotFoundError as e:
        raise handle_not_found(e)

@app.post(f"{settings.API_V1_STR}/rules/{{rule_id}}/publish", response_model=Rule)
async def publish_rule(
    rule_id: str,
    payload: PublishRequest,
    repo: RuleRepository = Depends(get_rule_repository)
):
    """Publish a new active version of a rule."""
    try:
        return await repo.publish_rule(rule_id, payload.model_dump(by_alias=True, exclude_none=True))
    except NotFoundError as e:
        raise handle_not_found(e)

@app.get(f"{settings.API_V1_STR}/rules/{{rule_id}}/performance/kpis", response_model=RuleKpis)
async def get_rule_kpis(
    rule_id: str,
    days: int = Query(30, ge=1),
    service: RulePerformanceService = Depends(get_performance_service)
):
    return await service.get_rule_kpis(rule_id, days)

@app.get(f"{settings.API_V1_STR}/rules/{{rule_id}}/performance/trends", response_model=List[TriggerTrend])
async def get_rule_trends(
    rule_id: str,
    days: int = Query(30, ge=1),
    service: RulePerformanceService = Depends(get_performance_service)
):
    return await service.get_rule_trends(rule_id, days)

@app.get(f"{settings.API_V1_STR}/rules/{{rule_id}}/performance/severity", response_model=List[SeverityBucket])
async def get_rule_severity(
    rule_id: str,
    days: int = Query(30, ge=1),
    service: RulePerformanceService = Depends(get_performance_service)
):
    return await service.get_rule_severity(rule_id, days)

@app.get(f"{settings.API_V1_STR}/rules/{{rule_id}}/performance/conditions", response_model=List[ConditionHit])
async def get_rule_conditions(
    rule_id: str,
    days: int = Query(30, ge=1),
    service: RulePerformanceService = Depends(get_performance_service)
):
    return await service.get_rule_conditions(rule_id, days)

@app.get(f"{settings.API_V1_STR}/rules/{{rule_id}}/performance/claims", response_model=Page[TriggeredClaim])
async def get_triggered_claims(
    rule_id: str,
    days: int = Query(30, ge=1),
    severity: Optional[str] = None,
    decision: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, alias="pageSize"),
    sort: Optional[str] = None,
    service: RulePerformanceService = Depends(get_performance_service)
):
    """Claims that triggered the rule, filtered, sorted and paginated."""
    return await service.get_triggered_claims(
        rule_id,
        days,
        severity=severity,
        decision=decision,
        page=page,
        page_size=page_size,
        sort=sort
    )

@app.get(f"{settings.API_V1_STR}/rules/{{rule_id}}/performance/decisions", response_model=DecisionCounts)
async def get_decision_counts(
    rule_id: str,
    days: int = Query(30, ge=1),
    service: RulePerformanceService = Depends(get_performance_service)
):
    return await service.get_decision_counts(rule_id, days)

@app.get(f"{settings.API_V1_STR}/executions/{{execution_id}}", response_model=ExecutionStatus)
async def get_execution(
    execution_id: str,
    service: RulePerformanceService = Depends(get_performance_service)
):
    return await service.get_execution(execution_id)

@app.get(f"{settings.API_V1_STR}/audit-logs", response_model=Page[AuditLogItem])
async def get_audit_logs(
    filters: AuditFilters = Depends(),
    service: AuditLogService = Depends(get_audit_service)
):
    """List audit log entries matching the given filters."""
    return service.get_audit_logs(filters)

@app.get(f"{settings.API_V1_STR}/audit-logs/export")
async def export_audit_logs(
    filters: AuditFilters = Depends(),
    service: AuditLogService = Depends(get_audit_service)
):
    """Download the filtered page of audit log entries as CSV."""
    try:
        csv_text = service.export_audit_logs(filters)
    except Exception as e:
        raise handle_api_error(e, status_code=500, error_key="export_error")
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=audit-export.csv"}
    )

if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
