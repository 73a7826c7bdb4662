"""Pydantic models for the fraud domain."""

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidTransaction


class FraudPattern(StrEnum):
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    EXCESSIVE_AMOUNT = "excessive_amount"
    RAPID_SUCCESSION = "rapid_succession"
    EXCESSIVE_DAILY_SPENDING = "excessive_daily_spending"
    SUSPICIOUS_TIMING = "suspicious_timing"
    UNUSUAL_VENDOR_PATTERN = "unusual_vendor_pattern"
    VENDOR_EXCESSIVE_DAILY = "vendor_excessive_daily"
    MAX_TRANSACTIONS_PER_HOUR = "max_transactions_per_hour"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


class Action(StrEnum):
    ALLOW = "allow"
    MONITOR = "monitor"
    REVIEW = "review"
    BLOCK = "block"


class ActorType(StrEnum):
    BENEFICIARY = "beneficiary"
    VENDOR = "vendor"


class Transaction(BaseModel):
    """A candidate or historical value-moving transaction."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str
    actor_id: str
    actor_type: ActorType = ActorType.BENEFICIARY
    counterparty_id: str
    amount: Decimal
    category: str = "general"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    tx_hash: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class FraudFlag(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: FraudPattern
    severity: Severity
    message: str = ""
    evidence: dict = Field(default_factory=dict)
    detected_at: datetime


class FraudWarning(BaseModel):
    """Soft signal kept for monitoring. Never affects the risk level."""

    model_config = ConfigDict(frozen=True)

    pattern: FraudPattern
    severity: str = "info"
    message: str = ""
    evidence: dict = Field(default_factory=dict)
    detected_at: datetime


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Action
    requires_review: bool
    auto_flag: bool
    message: str = ""


class EvaluationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_id: str
    flags: list[FraudFlag] = []
    warnings: list[FraudWarning] = []
    risk_level: RiskLevel
    recommendation: Recommendation
    degraded: bool = False
    evaluated_at: datetime

    @property
    def patterns(self) -> list[str]:
        return [f.pattern.value for f in self.flags]


class EvaluationRequest(BaseModel):
    """Wire shape of an evaluation call; amounts travel as decimal strings."""

    transaction_id: str
    actor_id: str
    actor_type: ActorType = ActorType.BENEFICIARY
    counterparty_id: str
    amount: str
    category: str = "general"
    timestamp: datetime | None = None
    tx_hash: str | None = None

    def to_transaction(self) -> Transaction:
        try:
            amount = Decimal(self.amount)
        except InvalidOperation as exc:
            raise InvalidTransaction(f"Amount is not a decimal: {self.amount!r}") from exc

        data = self.model_dump(exclude={"amount", "timestamp"})
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return Transaction(amount=amount, **data)


# ---------------------------------------------------------------------------
# Fraud reports
# ---------------------------------------------------------------------------


class EntityType(StrEnum):
    VENDOR = "vendor"
    BENEFICIARY = "beneficiary"


class ReportSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReportStatus(StrEnum):
    PENDING = "pending"
    UNDER_INVESTIGATION = "under_investigation"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReportStatus.RESOLVED, ReportStatus.DISMISSED)


class DetectionMethod(StrEnum):
    MANUAL_REPORT = "manual_report"
    AUTOMATED = "automated"


class ResolutionDecision(StrEnum):
    CONFIRMED_FRAUD = "confirmed_fraud"
    NO_FRAUD = "no_fraud"
    INCONCLUSIVE = "inconclusive"


class ResolutionAction(StrEnum):
    NONE = "none"
    WARNING = "warning"
    TEMPORARY_SUSPENSION = "temporary_suspension"
    PERMANENT_SUSPENSION = "permanent_suspension"
    FUND_RECOVERY = "fund_recovery"


REPORT_TYPES: dict[EntityType, frozenset[str]] = {
    EntityType.VENDOR: frozenset(
        {
            "fraudulent_transaction",
            "price_manipulation",
            "fake_documents",
            "suspicious_behavior",
            "other",
        }
    ),
    EntityType.BENEFICIARY: frozenset(
        {
            "identity_theft",
            "duplicate_claims",
            "fake_documents",
            "suspicious_behavior",
            "other",
        }
    ),
}


class EvidenceItem(BaseModel):
    type: str = "note"
    description: str = ""
    data: str | None = None
    submitted_by: str | None = None
    submitted_at: datetime | None = None


class InvestigationNote(BaseModel):
    author: str
    note: str
    created_at: datetime


class StatusChange(BaseModel):
    from_status: ReportStatus | None = None
    to_status: ReportStatus
    changed_by: str | None = None
    reason: str = ""
    changed_at: datetime


class RelatedTransaction(BaseModel):
    transaction_id: str
    tx_hash: str | None = None
    relevance: str = ""


class FraudReportInput(BaseModel):
    reported_entity: str
    entity_type: EntityType
    report_type: str
    severity: ReportSeverity = ReportSeverity.MEDIUM
    description: str
    evidence: list[EvidenceItem] = []
    is_anonymous: bool = False
    reported_by: str | None = None
    related_transactions: list[RelatedTransaction] = []
    tags: list[str] = []


class FraudReport(BaseModel):
    report_id: str
    reported_entity: str
    entity_type: EntityType
    report_type: str
    severity: ReportSeverity
    status: ReportStatus = ReportStatus.PENDING
    assigned_investigator: str | None = None
    description: str
    evidence: list[EvidenceItem] = []
    investigation_notes: list[InvestigationNote] = []
    is_anonymous: bool = False
    reported_by: str | None = None
    audit_reference: str | None = None
    auto_generated: bool = False
    detection_method: DetectionMethod = DetectionMethod.MANUAL_REPORT
    related_transactions: list[RelatedTransaction] = []
    tags: list[str] = []
    escalation_reason: str | None = None
    resolution_decision: ResolutionDecision | None = None
    resolution_action: ResolutionAction | None = None
    resolution_notes: str | None = None
    dismissal_reason: str | None = None
    status_history: list[StatusChange] = []
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None


# ---------------------------------------------------------------------------
# Review queue
# ---------------------------------------------------------------------------


class ReviewDecision(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"


class SettlementSignal(StrEnum):
    HOLD = "hold"
    PROCEED = "proceed"
    ABORT = "abort"


class FlaggedTransactionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_id: str
    risk_level: RiskLevel
    flags: list[FraudFlag] = []
    requires_review: bool = True
    sequence: int
    enqueued_at: datetime
    review_decision: ReviewDecision | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.review_decision is None

    @property
    def settlement(self) -> SettlementSignal:
        if self.review_decision == ReviewDecision.APPROVE:
            return SettlementSignal.PROCEED
        if self.review_decision == ReviewDecision.REJECT:
            return SettlementSignal.ABORT
        return SettlementSignal.HOLD


# ---------------------------------------------------------------------------
# Vendor standing and statistics
# ---------------------------------------------------------------------------


class VendorStatus(StrEnum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class VendorStanding(BaseModel):
    vendor_id: str
    suspicious_activity_count: int = 0
    last_suspicious_activity: datetime | None = None
    status: VendorStatus = VendorStatus.ACTIVE
    risk_level: RiskLevel = RiskLevel.LOW


class FraudStatistics(BaseModel):
    timeframe: str
    since: datetime
    summary: dict = Field(default_factory=dict)
    flagged_vendors: dict = Field(default_factory=dict)
    suspicious_transactions: dict = Field(default_factory=dict)
    patterns: list[dict] = []
    trends: list[dict] = []
