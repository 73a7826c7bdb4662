"""Verifier review queue for transactions that need a human decision."""

import itertools
from collections.abc import Callable, Iterator
from datetime import UTC, datetime

import structlog

from src.shared.locks import KeyedLock

from .errors import AlreadyReviewed, ConflictingReview, RecordNotFound, ReviewNotRequired
from .events import EventPublisher, EventType, emit
from .models import EvaluationResult, FlaggedTransactionRecord, ReviewDecision, RiskLevel
from .roles import RoleDirectory, require_privileged

logger = structlog.get_logger()


class ReviewListing:
    """Lazy view over the queue, oldest enqueue first.

    Each iteration reads the queue afresh, so the same listing can be walked
    again after records were added or reviewed.
    """

    def __init__(
        self,
        source: Callable[[], list[FlaggedTransactionRecord]],
        risk_level: RiskLevel | None = None,
        pending_only: bool = False,
    ) -> None:
        self._source = source
        self._risk_level = risk_level
        self._pending_only = pending_only

    def __iter__(self) -> Iterator[FlaggedTransactionRecord]:
        for record in sorted(self._source(), key=lambda r: r.sequence):
            if self._risk_level is not None and record.risk_level != self._risk_level:
                continue
            if self._pending_only and not record.is_pending:
                continue
            yield record


class ReviewQueue:
    def __init__(
        self,
        roles: RoleDirectory,
        publisher: EventPublisher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._roles = roles
        self._publisher = publisher
        self._clock = clock or (lambda: datetime.now(UTC))
        # In-memory store: {transaction_id: FlaggedTransactionRecord}
        self._records: dict[str, FlaggedTransactionRecord] = {}
        self._sequence = itertools.count(1)
        self._locks = KeyedLock()

    def __len__(self) -> int:
        return len(self._records)

    def get(self, transaction_id: str) -> FlaggedTransactionRecord:
        record = self._records.get(transaction_id)
        if record is None:
            raise RecordNotFound(f"No flagged transaction {transaction_id}")
        return record

    def records(self) -> list[FlaggedTransactionRecord]:
        return list(self._records.values())

    def enqueue(
        self, transaction_id: str, evaluation: EvaluationResult
    ) -> FlaggedTransactionRecord:
        """Queue an evaluation that requires review. Re-enqueueing is a no-op."""
        if not evaluation.recommendation.requires_review:
            raise ReviewNotRequired(
                f"Transaction {transaction_id} at risk {evaluation.risk_level.value} "
                "does not require review"
            )
        existing = self._records.get(transaction_id)
        if existing is not None:
            return existing

        record = FlaggedTransactionRecord(
            transaction_id=transaction_id,
            risk_level=evaluation.risk_level,
            flags=list(evaluation.flags),
            requires_review=True,
            sequence=next(self._sequence),
            enqueued_at=self._clock(),
        )
        self._records[transaction_id] = record
        logger.info(
            "transaction_enqueued_for_review",
            transaction_id=transaction_id,
            risk_level=record.risk_level.value,
            sequence=record.sequence,
        )
        return record

    async def review(
        self,
        transaction_id: str,
        decision: ReviewDecision,
        reviewer_id: str,
        notes: str | None = None,
    ) -> FlaggedTransactionRecord:
        """Record a verifier decision; a transaction is decided at most once."""
        require_privileged(self._roles, reviewer_id, "review flagged transactions")

        async with self._locks.hold(transaction_id):
            record = self.get(transaction_id)

            if not record.is_pending:
                if record.review_decision != decision:
                    logger.warning(
                        "conflicting_review_rejected",
                        transaction_id=transaction_id,
                        existing=record.review_decision.value,
                        attempted=decision.value,
                        reviewer_id=reviewer_id,
                    )
                    raise ConflictingReview(
                        transaction_id, record.review_decision.value, record.reviewed_by
                    )
                if record.reviewed_by != reviewer_id:
                    raise AlreadyReviewed(
                        transaction_id, record.review_decision.value, record.reviewed_by
                    )
                return record

            reviewed = record.model_copy(
                update={
                    "review_decision": decision,
                    "reviewed_by": reviewer_id,
                    "reviewed_at": self._clock(),
                    "review_notes": notes,
                }
            )
            self._records[transaction_id] = reviewed

        logger.info(
            "transaction_reviewed",
            transaction_id=transaction_id,
            decision=decision.value,
            reviewer_id=reviewer_id,
            settlement=reviewed.settlement.value,
        )
        await emit(
            self._publisher,
            EventType.REVIEW_DECIDED,
            {
                "transaction_id": transaction_id,
                "decision": decision.value,
                "reviewed_by": reviewer_id,
                "risk_level": reviewed.risk_level.value,
                "settlement": reviewed.settlement.value,
            },
            partition_key=transaction_id,
        )
        return reviewed

    def list(
        self, risk_level: RiskLevel | None = None, pending_only: bool = False
    ) -> ReviewListing:
        return ReviewListing(self.records, risk_level=risk_level, pending_only=pending_only)
