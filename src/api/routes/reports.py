"""Fraud report case-management endpoints."""

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from src.api.dependencies import FraudEngine, get_engine
from src.domains.fraud.models import (
    REPORT_TYPES,
    EvidenceItem,
    FraudReportInput,
    ReportSeverity,
    ReportStatus,
    ResolutionAction,
    ResolutionDecision,
)

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/fraud/reports", tags=["fraud-reports"])


class AssignRequest(BaseModel):
    investigator_id: str
    assigned_by: str | None = None


class InvestigationUpdateRequest(BaseModel):
    notes: str = ""
    evidence: list[EvidenceItem] = []
    updated_by: str | None = None


class EscalateRequest(BaseModel):
    reason: str
    escalated_by: str | None = None
    insufficient_authority: bool = False


class ResolveRequest(BaseModel):
    decision: ResolutionDecision
    notes: str
    resolved_by: str
    action: ResolutionAction | None = None


class DismissRequest(BaseModel):
    reason: str
    dismissed_by: str


@router.post("", status_code=201)
async def submit_report(
    request: FraudReportInput,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    report = await engine.reports.submit_report(request)
    return report.model_dump(mode="json")


@router.get("")
async def list_reports(
    status: ReportStatus | None = Query(default=None),  # noqa: B008
    severity: ReportSeverity | None = Query(default=None),  # noqa: B008
    reported_entity: str | None = Query(default=None),
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    reports = engine.reports.list_reports(
        status=status, severity=severity, reported_entity=reported_entity
    )
    return {
        "items": [r.model_dump(mode="json") for r in reports],
        "total": len(reports),
    }


@router.get("/types")
async def report_types() -> dict:
    return {entity.value: sorted(types) for entity, types in REPORT_TYPES.items()}


@router.get("/{report_id}")
async def get_report(
    report_id: str,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    return engine.reports.get(report_id).model_dump(mode="json")


@router.post("/{report_id}/assign")
async def assign_report(
    report_id: str,
    request: AssignRequest,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    report = await engine.reports.assign(
        report_id, request.investigator_id, assigned_by=request.assigned_by
    )
    return report.model_dump(mode="json")


@router.post("/{report_id}/investigation")
async def update_investigation(
    report_id: str,
    request: InvestigationUpdateRequest,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    report = await engine.reports.update_investigation(
        report_id, request.notes, evidence=request.evidence, updated_by=request.updated_by
    )
    return report.model_dump(mode="json")


@router.post("/{report_id}/escalate")
async def escalate_report(
    report_id: str,
    request: EscalateRequest,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    report = await engine.reports.escalate(
        report_id,
        request.reason,
        escalated_by=request.escalated_by,
        insufficient_authority=request.insufficient_authority,
    )
    return report.model_dump(mode="json")


@router.post("/{report_id}/resolve")
async def resolve_report(
    report_id: str,
    request: ResolveRequest,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    report = await engine.reports.resolve(
        report_id,
        request.decision,
        request.notes,
        request.resolved_by,
        action=request.action,
    )
    return report.model_dump(mode="json")


@router.post("/{report_id}/dismiss")
async def dismiss_report(
    report_id: str,
    request: DismissRequest,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    report = await engine.reports.dismiss(report_id, request.reason, request.dismissed_by)
    return report.model_dump(mode="json")
