"""Unit tests for fraud report case management."""

import asyncio
import itertools
from datetime import UTC, datetime

import pytest

from src.domains.fraud.errors import (
    InvalidReportInput,
    InvalidStateTransition,
    NotAuthorized,
    ReportNotFound,
)
from src.domains.fraud.events import EventType
from src.domains.fraud.models import (
    DetectionMethod,
    EntityType,
    EvidenceItem,
    FraudReportInput,
    ReportSeverity,
    ReportStatus,
    ResolutionAction,
    ResolutionDecision,
)
from src.domains.fraud.reports import (
    TRANSITIONS,
    FraudReportManager,
    ReportOperation,
    audit_reference,
    next_status,
)


def _input(**kwargs) -> FraudReportInput:
    defaults = {
        "reported_entity": "vendor-1",
        "entity_type": EntityType.VENDOR,
        "report_type": "price_manipulation",
        "severity": ReportSeverity.MEDIUM,
        "description": "Charged double the posted price for water",
        "reported_by": "beneficiary-7",
    }
    defaults.update(kwargs)
    return FraudReportInput(**defaults)


async def _report_in(manager: FraudReportManager, status: ReportStatus) -> str:
    """Drive a fresh high-severity report into ``status``."""
    report = await manager.submit_report(_input(severity=ReportSeverity.HIGH))
    rid = report.report_id
    if status == ReportStatus.UNDER_INVESTIGATION:
        await manager.assign(rid, "verifier-a")
    elif status == ReportStatus.ESCALATED:
        await manager.escalate(rid, "needs senior review")
    elif status == ReportStatus.RESOLVED:
        await manager.assign(rid, "verifier-a")
        await manager.resolve(rid, ResolutionDecision.NO_FRAUD, "checked receipts", "verifier-a")
    elif status == ReportStatus.DISMISSED:
        await manager.dismiss(rid, "duplicate report", "admin-1")
    return rid


async def _apply(manager: FraudReportManager, rid: str, op: ReportOperation):
    if op == ReportOperation.ASSIGN:
        return await manager.assign(rid, "verifier-b", assigned_by="admin-1")
    if op == ReportOperation.ESCALATE:
        return await manager.escalate(rid, "needs senior review")
    if op == ReportOperation.RESOLVE:
        return await manager.resolve(
            rid, ResolutionDecision.CONFIRMED_FRAUD, "receipts forged", "admin-1"
        )
    return await manager.dismiss(rid, "not actionable", "admin-1")


class TestSubmission:
    @pytest.mark.asyncio
    async def test_new_report_is_pending(self, report_manager, publisher):
        report = await report_manager.submit_report(_input())

        assert report.status == ReportStatus.PENDING
        assert report.detection_method == DetectionMethod.MANUAL_REPORT
        assert report.reported_by == "beneficiary-7"
        assert len(report.status_history) == 1
        assert report.status_history[0].to_status == ReportStatus.PENDING
        assert len(publisher.of_type(EventType.REPORT_CREATED)) == 1

    @pytest.mark.asyncio
    async def test_sequential_ids_per_year(self, roles):
        clock_time = datetime(2026, 12, 31, 23, 0, tzinfo=UTC)
        manager = FraudReportManager(roles, clock=lambda: clock_time)

        first = await manager.submit_report(_input())
        second = await manager.submit_report(_input())
        clock_time = datetime(2027, 1, 1, 0, 1, tzinfo=UTC)
        third = await manager.submit_report(_input())

        assert first.report_id == "FR-2026-001"
        assert second.report_id == "FR-2026-002"
        assert third.report_id == "FR-2027-001"

    @pytest.mark.asyncio
    async def test_anonymous_report_hides_reporter(self, report_manager):
        report = await report_manager.submit_report(_input(is_anonymous=True))

        assert report.reported_by is None
        assert report.audit_reference == audit_reference(
            "test-secret", report.report_id, "beneficiary-7"
        )
        assert "beneficiary-7" not in report.model_dump_json()

    def test_audit_reference_is_keyed(self):
        assert audit_reference("k1", "FR-2026-001", "u") != audit_reference(
            "k2", "FR-2026-001", "u"
        )

    @pytest.mark.asyncio
    async def test_report_type_must_match_entity(self, report_manager):
        with pytest.raises(InvalidReportInput, match="not valid for beneficiary"):
            await report_manager.submit_report(
                _input(entity_type=EntityType.BENEFICIARY, report_type="price_manipulation")
            )

    @pytest.mark.asyncio
    async def test_description_required(self, report_manager):
        with pytest.raises(InvalidReportInput):
            await report_manager.submit_report(_input(description="   "))

    @pytest.mark.asyncio
    async def test_unknown_report(self, report_manager):
        with pytest.raises(ReportNotFound):
            report_manager.get("FR-1999-001")


class TestTransitionTable:
    def test_terminal_states_have_no_exits(self):
        for (current, _op) in TRANSITIONS:
            assert not current.is_terminal

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,op", list(itertools.product(list(ReportStatus), list(ReportOperation)))
    )
    async def test_closure(self, report_manager, status, op):
        rid = await _report_in(report_manager, status)
        before = report_manager.get(rid)
        expected = next_status(status, op)

        if expected is None:
            with pytest.raises(InvalidStateTransition):
                await _apply(report_manager, rid, op)
            assert report_manager.get(rid) == before
        else:
            updated = await _apply(report_manager, rid, op)
            assert updated.status == expected
            assert updated.status_history[-1].from_status == status
            assert updated.status_history[-1].to_status == expected
            assert len(updated.status_history) == len(before.status_history) + 1


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_assign_then_resolve(self, report_manager, publisher):
        report = await report_manager.submit_report(_input())
        rid = report.report_id

        assigned = await report_manager.assign(rid, "verifier-a")
        assert assigned.status == ReportStatus.UNDER_INVESTIGATION
        assert assigned.assigned_investigator == "verifier-a"

        resolved = await report_manager.resolve(
            rid,
            ResolutionDecision.CONFIRMED_FRAUD,
            "Prices verified against receipts",
            "verifier-a",
            action=ResolutionAction.TEMPORARY_SUSPENSION,
        )
        assert resolved.status == ReportStatus.RESOLVED
        assert resolved.resolution_action == ResolutionAction.TEMPORARY_SUSPENSION
        assert resolved.resolved_at is not None
        assert [c.to_status for c in resolved.status_history] == [
            ReportStatus.PENDING,
            ReportStatus.UNDER_INVESTIGATION,
            ReportStatus.RESOLVED,
        ]
        assert len(publisher.of_type(EventType.REPORT_STATUS_CHANGED)) == 2

    @pytest.mark.asyncio
    async def test_resolve_from_pending_rejected(self, report_manager):
        report = await report_manager.submit_report(_input())
        with pytest.raises(InvalidStateTransition):
            await report_manager.resolve(
                report.report_id, ResolutionDecision.NO_FRAUD, "nothing found", "verifier-a"
            )
        assert report_manager.get(report.report_id).status == ReportStatus.PENDING

    @pytest.mark.asyncio
    async def test_resolution_defaults_to_no_action(self, report_manager):
        rid = await _report_in(report_manager, ReportStatus.RESOLVED)
        assert report_manager.get(rid).resolution_action == ResolutionAction.NONE


class TestGuards:
    @pytest.mark.asyncio
    async def test_investigator_must_be_privileged(self, report_manager):
        report = await report_manager.submit_report(_input())
        with pytest.raises(NotAuthorized):
            await report_manager.assign(report.report_id, "beneficiary-7")
        assert report_manager.get(report.report_id).status == ReportStatus.PENDING

    @pytest.mark.asyncio
    async def test_assigner_must_be_privileged(self, report_manager):
        report = await report_manager.submit_report(_input())
        with pytest.raises(NotAuthorized):
            await report_manager.assign(report.report_id, "verifier-a", assigned_by="vendor-3")

    @pytest.mark.asyncio
    async def test_resolver_must_be_privileged(self, report_manager):
        rid = await _report_in(report_manager, ReportStatus.UNDER_INVESTIGATION)
        with pytest.raises(NotAuthorized):
            await report_manager.resolve(rid, ResolutionDecision.NO_FRAUD, "ok", "random-user")

    @pytest.mark.asyncio
    async def test_resolve_requires_notes(self, report_manager):
        rid = await _report_in(report_manager, ReportStatus.UNDER_INVESTIGATION)
        with pytest.raises(InvalidReportInput):
            await report_manager.resolve(rid, ResolutionDecision.NO_FRAUD, "  ", "verifier-a")
        assert report_manager.get(rid).status == ReportStatus.UNDER_INVESTIGATION

    @pytest.mark.asyncio
    async def test_dismiss_requires_reason(self, report_manager):
        rid = await _report_in(report_manager, ReportStatus.PENDING)
        with pytest.raises(InvalidReportInput):
            await report_manager.dismiss(rid, "", "admin-1")

    @pytest.mark.asyncio
    async def test_dismisser_must_be_privileged(self, report_manager):
        rid = await _report_in(report_manager, ReportStatus.PENDING)
        with pytest.raises(NotAuthorized):
            await report_manager.dismiss(rid, "spam", "beneficiary-7")

    @pytest.mark.asyncio
    async def test_low_severity_cannot_escalate(self, report_manager):
        report = await report_manager.submit_report(_input(severity=ReportSeverity.LOW))
        with pytest.raises(InvalidStateTransition, match="high/critical"):
            await report_manager.escalate(report.report_id, "want a second opinion")
        assert report_manager.get(report.report_id).status == ReportStatus.PENDING

    @pytest.mark.asyncio
    async def test_insufficient_authority_escalates_any_severity(self, report_manager):
        report = await report_manager.submit_report(_input(severity=ReportSeverity.LOW))
        escalated = await report_manager.escalate(
            report.report_id, "outside my mandate", insufficient_authority=True
        )
        assert escalated.status == ReportStatus.ESCALATED
        assert escalated.escalation_reason == "outside my mandate"


class TestInvestigationUpdates:
    @pytest.mark.asyncio
    async def test_notes_and_evidence_appended(self, report_manager):
        rid = await _report_in(report_manager, ReportStatus.UNDER_INVESTIGATION)
        updated = await report_manager.update_investigation(
            rid,
            "Visited the shop",
            evidence=[EvidenceItem(type="photo", description="price board")],
            updated_by="verifier-a",
        )

        assert updated.status == ReportStatus.UNDER_INVESTIGATION
        assert updated.investigation_notes[-1].note == "Visited the shop"
        assert updated.evidence[-1].submitted_by == "verifier-a"
        assert updated.evidence[-1].submitted_at is not None

    @pytest.mark.asyncio
    async def test_allowed_while_escalated(self, report_manager):
        rid = await _report_in(report_manager, ReportStatus.ESCALATED)
        updated = await report_manager.update_investigation(rid, "Senior review started")
        assert len(updated.investigation_notes) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [ReportStatus.PENDING, ReportStatus.RESOLVED, ReportStatus.DISMISSED]
    )
    async def test_rejected_outside_investigation(self, report_manager, status):
        rid = await _report_in(report_manager, status)
        with pytest.raises(InvalidStateTransition):
            await report_manager.update_investigation(rid, "late note")


class TestListing:
    @pytest.mark.asyncio
    async def test_filters(self, report_manager):
        await report_manager.submit_report(_input(severity=ReportSeverity.LOW))
        await report_manager.submit_report(
            _input(reported_entity="vendor-2", severity=ReportSeverity.CRITICAL)
        )
        await report_manager.submit_report(_input(reported_entity="vendor-2"))

        assert len(report_manager.list_reports()) == 3
        assert len(report_manager.list_reports(reported_entity="vendor-2")) == 2
        critical = report_manager.list_reports(severity=ReportSeverity.CRITICAL)
        assert [r.reported_entity for r in critical] == ["vendor-2"]
        assert report_manager.list_reports(status=ReportStatus.RESOLVED) == []


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_racing_resolve_and_dismiss_apply_once(self, report_manager):
        rid = await _report_in(report_manager, ReportStatus.UNDER_INVESTIGATION)

        outcomes = await asyncio.gather(
            report_manager.resolve(rid, ResolutionDecision.NO_FRAUD, "clean", "verifier-a"),
            report_manager.dismiss(rid, "withdrawn", "admin-1"),
            return_exceptions=True,
        )

        errors = [o for o in outcomes if isinstance(o, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidStateTransition)
        final = report_manager.get(rid)
        assert final.status.is_terminal
        assert len(final.status_history) == 3
