"""Fraud report case management.

Reports move through a closed transition table:

    pending ──assign──▶ under_investigation ──resolve──▶ resolved
       │                      │      │
       │                      │      └──dismiss──▶ dismissed
       ├──escalate──▶ escalated ◀──escalate──┘
       └──dismiss──▶ dismissed

``escalated`` resolves or dismisses. ``resolved`` and ``dismissed`` are
terminal and retained for audit; reports are never deleted.

Every mutating operation validates all guards first and then swaps in an
updated copy of the report, so a failed call leaves the stored report
untouched. Operations on one report id are serialized; different reports are
independent.
"""

import hashlib
import hmac
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum

import structlog

from src.shared.locks import KeyedLock

from .errors import InvalidReportInput, InvalidStateTransition, ReportNotFound
from .events import EventPublisher, EventType, emit
from .models import (
    REPORT_TYPES,
    DetectionMethod,
    EvidenceItem,
    FraudReport,
    FraudReportInput,
    InvestigationNote,
    ReportSeverity,
    ReportStatus,
    ResolutionAction,
    ResolutionDecision,
    StatusChange,
)
from .roles import RoleDirectory, require_privileged

logger = structlog.get_logger()


class ReportOperation(StrEnum):
    ASSIGN = "assign"
    ESCALATE = "escalate"
    RESOLVE = "resolve"
    DISMISS = "dismiss"


TRANSITIONS: dict[tuple[ReportStatus, ReportOperation], ReportStatus] = {
    (ReportStatus.PENDING, ReportOperation.ASSIGN): ReportStatus.UNDER_INVESTIGATION,
    (ReportStatus.PENDING, ReportOperation.ESCALATE): ReportStatus.ESCALATED,
    (ReportStatus.PENDING, ReportOperation.DISMISS): ReportStatus.DISMISSED,
    (ReportStatus.UNDER_INVESTIGATION, ReportOperation.ESCALATE): ReportStatus.ESCALATED,
    (ReportStatus.UNDER_INVESTIGATION, ReportOperation.RESOLVE): ReportStatus.RESOLVED,
    (ReportStatus.UNDER_INVESTIGATION, ReportOperation.DISMISS): ReportStatus.DISMISSED,
    (ReportStatus.ESCALATED, ReportOperation.RESOLVE): ReportStatus.RESOLVED,
    (ReportStatus.ESCALATED, ReportOperation.DISMISS): ReportStatus.DISMISSED,
}

INVESTIGATION_OPEN: frozenset[ReportStatus] = frozenset(
    {ReportStatus.UNDER_INVESTIGATION, ReportStatus.ESCALATED}
)

_ESCALATABLE_SEVERITIES = (ReportSeverity.HIGH, ReportSeverity.CRITICAL)


def next_status(current: ReportStatus, operation: ReportOperation) -> ReportStatus | None:
    """Target status for ``operation`` from ``current``, or None if not allowed."""
    return TRANSITIONS.get((current, operation))


def audit_reference(secret: str, report_id: str, reporter: str) -> str:
    """Keyed, non-reversible reference to the reporter of a report."""
    digest = hmac.new(
        secret.encode("utf-8"), f"{report_id}:{reporter}".encode(), hashlib.sha256
    ).hexdigest()
    return f"aud_{digest[:24]}"


class FraudReportManager:
    """Owns the lifecycle of fraud reports against vendors and beneficiaries."""

    def __init__(
        self,
        roles: RoleDirectory,
        publisher: EventPublisher | None = None,
        audit_secret: str = "relief-audit-secret-dev-only",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._roles = roles
        self._publisher = publisher
        self._audit_secret = audit_secret
        self._clock = clock or (lambda: datetime.now(UTC))
        # In-memory store: {report_id: FraudReport}
        self._reports: dict[str, FraudReport] = {}
        # Per-year sequence counters: {year: last_sequence}
        self._sequences: dict[int, int] = {}
        self._locks = KeyedLock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, report_id: str) -> FraudReport:
        report = self._reports.get(report_id)
        if report is None:
            raise ReportNotFound(f"Fraud report {report_id} not found")
        return report

    def list_reports(
        self,
        status: ReportStatus | None = None,
        severity: ReportSeverity | None = None,
        reported_entity: str | None = None,
    ) -> list[FraudReport]:
        """Reports matching the filters, newest first."""
        items = [
            r
            for r in self._reports.values()
            if (status is None or r.status == status)
            and (severity is None or r.severity == severity)
            and (reported_entity is None or r.reported_entity == reported_entity)
        ]
        return sorted(items, key=lambda r: r.created_at, reverse=True)

    def all_reports(self) -> list[FraudReport]:
        return list(self._reports.values())

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def _next_report_id(self, now: datetime) -> str:
        seq = self._sequences.get(now.year, 0) + 1
        self._sequences[now.year] = seq
        return f"FR-{now.year}-{seq:03d}"

    async def submit_report(
        self, data: FraudReportInput, auto_generated: bool = False
    ) -> FraudReport:
        if not data.reported_entity.strip():
            raise InvalidReportInput("reported_entity is required")
        if not data.description.strip():
            raise InvalidReportInput("description is required")
        allowed = REPORT_TYPES[data.entity_type]
        if data.report_type not in allowed:
            raise InvalidReportInput(
                f"Report type {data.report_type!r} is not valid for {data.entity_type.value}; "
                f"expected one of {sorted(allowed)}"
            )

        now = self._clock()
        report_id = self._next_report_id(now)
        reference = (
            audit_reference(self._audit_secret, report_id, data.reported_by)
            if data.reported_by
            else None
        )

        report = FraudReport(
            report_id=report_id,
            reported_entity=data.reported_entity,
            entity_type=data.entity_type,
            report_type=data.report_type,
            severity=data.severity,
            description=data.description,
            evidence=[
                e.model_copy(update={"submitted_at": e.submitted_at or now})
                for e in data.evidence
            ],
            is_anonymous=data.is_anonymous,
            reported_by=None if data.is_anonymous else data.reported_by,
            audit_reference=reference,
            auto_generated=auto_generated,
            detection_method=(
                DetectionMethod.AUTOMATED if auto_generated else DetectionMethod.MANUAL_REPORT
            ),
            related_transactions=list(data.related_transactions),
            tags=list(data.tags),
            status_history=[
                StatusChange(
                    to_status=ReportStatus.PENDING,
                    changed_by=None if data.is_anonymous else data.reported_by,
                    reason="submitted",
                    changed_at=now,
                )
            ],
            created_at=now,
            updated_at=now,
        )
        self._reports[report_id] = report

        logger.info(
            "fraud_report_created",
            report_id=report_id,
            reported_entity=report.reported_entity,
            entity_type=report.entity_type.value,
            report_type=report.report_type,
            severity=report.severity.value,
            auto_generated=auto_generated,
            is_anonymous=report.is_anonymous,
        )
        await emit(
            self._publisher,
            EventType.REPORT_CREATED,
            {
                "report_id": report_id,
                "reported_entity": report.reported_entity,
                "entity_type": report.entity_type.value,
                "report_type": report.report_type,
                "severity": report.severity.value,
                "status": report.status.value,
                "auto_generated": auto_generated,
            },
            partition_key=report.reported_entity,
        )
        return report

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _transition(
        self,
        report_id: str,
        operation: ReportOperation,
        changed_by: str | None,
        reason: str,
        updates: dict,
        guard: Callable[[FraudReport], str | None] | None = None,
    ) -> FraudReport:
        async with self._locks.hold(report_id):
            report = self.get(report_id)
            target = next_status(report.status, operation)
            if target is None:
                logger.warning(
                    "invalid_state_transition",
                    report_id=report_id,
                    current=report.status.value,
                    operation=operation.value,
                )
                raise InvalidStateTransition(report_id, report.status.value, operation.value)
            if guard is not None and (problem := guard(report)):
                logger.warning(
                    "invalid_state_transition",
                    report_id=report_id,
                    current=report.status.value,
                    operation=operation.value,
                    reason=problem,
                )
                raise InvalidStateTransition(
                    report_id, report.status.value, operation.value, problem
                )

            now = self._clock()
            change = StatusChange(
                from_status=report.status,
                to_status=target,
                changed_by=changed_by,
                reason=reason,
                changed_at=now,
            )
            updated = report.model_copy(
                update={
                    **updates,
                    "status": target,
                    "updated_at": now,
                    "status_history": [*report.status_history, change],
                }
            )
            self._reports[report_id] = updated

        logger.info(
            "fraud_report_status_changed",
            report_id=report_id,
            operation=operation.value,
            from_status=change.from_status.value if change.from_status else None,
            to_status=target.value,
            changed_by=changed_by,
        )
        await emit(
            self._publisher,
            EventType.REPORT_STATUS_CHANGED,
            {
                "report_id": report_id,
                "operation": operation.value,
                "from_status": report.status.value,
                "to_status": target.value,
                "changed_by": changed_by,
                "severity": updated.severity.value,
            },
            partition_key=updated.reported_entity,
        )
        return updated

    async def assign(
        self, report_id: str, investigator_id: str, assigned_by: str | None = None
    ) -> FraudReport:
        """pending → under_investigation; the investigator must be a verifier/admin."""
        require_privileged(self._roles, investigator_id, "investigate fraud reports")
        if assigned_by is not None:
            require_privileged(self._roles, assigned_by, "assign fraud reports")

        return await self._transition(
            report_id,
            ReportOperation.ASSIGN,
            changed_by=assigned_by or investigator_id,
            reason=f"assigned to {investigator_id}",
            updates={"assigned_investigator": investigator_id},
        )

    async def update_investigation(
        self,
        report_id: str,
        notes: str,
        evidence: list[EvidenceItem] | None = None,
        updated_by: str | None = None,
    ) -> FraudReport:
        """Append notes/evidence without changing status."""
        if not notes.strip() and not evidence:
            raise InvalidReportInput("notes or evidence are required")

        async with self._locks.hold(report_id):
            report = self.get(report_id)
            if report.status not in INVESTIGATION_OPEN:
                raise InvalidStateTransition(
                    report_id,
                    report.status.value,
                    "update_investigation",
                    "investigation is not open",
                )

            now = self._clock()
            author = updated_by or report.assigned_investigator or "system"
            new_notes = list(report.investigation_notes)
            if notes.strip():
                new_notes.append(InvestigationNote(author=author, note=notes, created_at=now))
            new_evidence = [
                *report.evidence,
                *(
                    e.model_copy(
                        update={
                            "submitted_by": e.submitted_by or author,
                            "submitted_at": e.submitted_at or now,
                        }
                    )
                    for e in evidence or []
                ),
            ]
            updated = report.model_copy(
                update={
                    "investigation_notes": new_notes,
                    "evidence": new_evidence,
                    "updated_at": now,
                }
            )
            self._reports[report_id] = updated

        logger.info(
            "fraud_investigation_updated",
            report_id=report_id,
            updated_by=author,
            note_count=len(new_notes),
            evidence_count=len(new_evidence),
        )
        return updated

    async def escalate(
        self,
        report_id: str,
        reason: str,
        escalated_by: str | None = None,
        insufficient_authority: bool = False,
    ) -> FraudReport:
        """pending|under_investigation → escalated, for severe reports or on request."""
        if not reason.strip():
            raise InvalidReportInput("escalation reason is required")

        def guard(report: FraudReport) -> str | None:
            if insufficient_authority or report.severity in _ESCALATABLE_SEVERITIES:
                return None
            return "only high/critical reports or insufficient-authority requests escalate"

        return await self._transition(
            report_id,
            ReportOperation.ESCALATE,
            changed_by=escalated_by,
            reason=reason,
            updates={"escalation_reason": reason},
            guard=guard,
        )

    async def resolve(
        self,
        report_id: str,
        decision: ResolutionDecision,
        notes: str,
        resolved_by: str,
        action: ResolutionAction | None = None,
    ) -> FraudReport:
        """under_investigation|escalated → resolved; notes are mandatory."""
        require_privileged(self._roles, resolved_by, "resolve fraud reports")
        if not notes or not notes.strip():
            raise InvalidReportInput("resolution notes are required")

        return await self._transition(
            report_id,
            ReportOperation.RESOLVE,
            changed_by=resolved_by,
            reason=decision.value,
            updates={
                "resolution_decision": decision,
                "resolution_action": action or ResolutionAction.NONE,
                "resolution_notes": notes,
                "resolved_at": self._clock(),
            },
        )

    async def dismiss(self, report_id: str, reason: str, dismissed_by: str) -> FraudReport:
        """pending|under_investigation|escalated → dismissed; a reason is mandatory."""
        require_privileged(self._roles, dismissed_by, "dismiss fraud reports")
        if not reason or not reason.strip():
            raise InvalidReportInput("dismissal reason is required")

        return await self._transition(
            report_id,
            ReportOperation.DISMISS,
            changed_by=dismissed_by,
            reason=reason,
            updates={"dismissal_reason": reason},
        )
