"""Real-time transaction evaluation pipeline.

candidate → history snapshot → pattern checks → risk level → recommendation.
Snapshot, detection and ledger write happen under a per-actor lock so two
concurrent candidates from the same actor always see each other.
"""

from datetime import UTC, datetime

import structlog

from src.shared.locks import KeyedLock

from .config import FraudConfig, default_config
from .detector import PatternDetector
from .errors import HistoryUnavailable, InvalidTransaction
from .events import EventPublisher, EventType, emit
from .ledger import Ledger, load_snapshot
from .models import (
    Action,
    ActorType,
    EntityType,
    EvaluationResult,
    FraudReportInput,
    RelatedTransaction,
    ReportSeverity,
    RiskLevel,
    Transaction,
)
from .reports import FraudReportManager
from .review_queue import ReviewQueue
from .risk import calculate_risk_level, recommendation_for
from .vendors import VendorStandingTracker

logger = structlog.get_logger()


def validate_transaction(transaction: Transaction) -> None:
    """Reject candidates that cannot be evaluated at all."""
    if not transaction.transaction_id or not transaction.transaction_id.strip():
        raise InvalidTransaction("transaction_id is required")
    if not transaction.actor_id or not transaction.actor_id.strip():
        raise InvalidTransaction("actor_id is required")
    if not transaction.counterparty_id or not transaction.counterparty_id.strip():
        raise InvalidTransaction("counterparty_id is required")
    if not transaction.amount.is_finite():
        raise InvalidTransaction(f"Amount must be finite, got {transaction.amount}")
    if transaction.amount <= 0:
        raise InvalidTransaction(f"Amount must be positive, got {transaction.amount}")


def vendor_for(transaction: Transaction) -> str:
    """The vendor side of a transaction."""
    if transaction.actor_type == ActorType.VENDOR:
        return transaction.actor_id
    return transaction.counterparty_id


class FraudEvaluator:
    """Gates value-moving transactions.

    Results are cached per transaction id: evaluating the same id again
    returns the first result without touching the ledger. Blocked
    transactions are never recorded.
    """

    def __init__(
        self,
        ledger: Ledger,
        config: FraudConfig | None = None,
        detector: PatternDetector | None = None,
        publisher: EventPublisher | None = None,
        review_queue: ReviewQueue | None = None,
        case_manager: FraudReportManager | None = None,
        vendor_tracker: VendorStandingTracker | None = None,
    ) -> None:
        self.config = config or default_config
        self.ledger = ledger
        self.detector = detector or PatternDetector(self.config)
        self.publisher = publisher
        self.review_queue = review_queue
        self.case_manager = case_manager
        self.vendor_tracker = vendor_tracker
        self._results: dict[str, EvaluationResult] = {}
        self._actor_locks = KeyedLock()

    def evaluations(self) -> list[EvaluationResult]:
        return list(self._results.values())

    def get_result(self, transaction_id: str) -> EvaluationResult | None:
        return self._results.get(transaction_id)

    async def evaluate(self, transaction: Transaction) -> EvaluationResult:
        validate_transaction(transaction)

        cached = self._results.get(transaction.transaction_id)
        if cached is not None:
            return cached

        async with self._actor_locks.hold(transaction.actor_id):
            # Another caller may have finished the same id while we waited
            cached = self._results.get(transaction.transaction_id)
            if cached is not None:
                return cached

            snapshot = await load_snapshot(self.ledger, transaction, self.config)
            detection = self.detector.detect(transaction, snapshot)
            risk_level = calculate_risk_level(detection.flags, detection.warnings)
            recommendation = recommendation_for(risk_level)

            result = EvaluationResult(
                transaction_id=transaction.transaction_id,
                flags=detection.flags,
                warnings=detection.warnings,
                risk_level=risk_level,
                recommendation=recommendation,
                degraded=detection.degraded,
                evaluated_at=datetime.now(UTC),
            )

            if recommendation.action != Action.BLOCK:
                try:
                    await self.ledger.record(transaction, result)
                except HistoryUnavailable:
                    logger.warning(
                        "ledger_write_failed",
                        transaction_id=transaction.transaction_id,
                        actor_id=transaction.actor_id,
                    )
                    result = result.model_copy(update={"degraded": True})
            self._results[transaction.transaction_id] = result

        logger.info(
            "transaction_evaluated",
            transaction_id=transaction.transaction_id,
            actor_id=transaction.actor_id,
            risk_level=risk_level.value,
            action=recommendation.action.value,
            patterns=result.patterns,
            warning_count=len(result.warnings),
            degraded=result.degraded,
        )

        await self._follow_up(transaction, result)
        return result

    async def _follow_up(self, transaction: Transaction, result: EvaluationResult) -> None:
        recommendation = result.recommendation

        if recommendation.requires_review and self.review_queue is not None:
            self.review_queue.enqueue(transaction.transaction_id, result)

        if not recommendation.auto_flag:
            return

        vendor_id = vendor_for(transaction)
        await emit(
            self.publisher,
            EventType.TRANSACTION_FLAGGED,
            {
                "transaction_id": transaction.transaction_id,
                "actor_id": transaction.actor_id,
                "actor_type": transaction.actor_type.value,
                "counterparty_id": transaction.counterparty_id,
                "amount": str(transaction.amount),
                "risk_level": result.risk_level.value,
                "action": recommendation.action.value,
                "patterns": result.patterns,
                "degraded": result.degraded,
            },
            partition_key=transaction.actor_id,
        )

        if self.vendor_tracker is not None:
            self.vendor_tracker.record_flag(vendor_id, at=result.evaluated_at)

        threshold = RiskLevel(self.config.reports.auto_report_min_risk)
        if self.case_manager is not None and result.risk_level.rank >= threshold.rank:
            await self._auto_report(transaction, result, vendor_id)

    async def _auto_report(
        self, transaction: Transaction, result: EvaluationResult, vendor_id: str
    ) -> None:
        report = await self.case_manager.submit_report(
            FraudReportInput(
                reported_entity=vendor_id,
                entity_type=EntityType.VENDOR,
                report_type="suspicious_behavior",
                severity=ReportSeverity(result.risk_level.value),
                description=(
                    f"Automated detection: {', '.join(result.patterns)} on transaction "
                    f"{transaction.transaction_id} ({result.recommendation.message})"
                ),
                reported_by="system",
                related_transactions=[
                    RelatedTransaction(
                        transaction_id=transaction.transaction_id,
                        tx_hash=transaction.tx_hash,
                        relevance=f"risk level {result.risk_level.value}",
                    )
                ],
                tags=result.patterns,
            ),
            auto_generated=True,
        )
        logger.info(
            "auto_report_generated",
            report_id=report.report_id,
            transaction_id=transaction.transaction_id,
            vendor_id=vendor_id,
        )
