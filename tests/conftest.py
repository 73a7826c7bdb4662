"""Shared test fixtures for the relief fraud engine tests."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.domains.fraud.config import FraudConfig
from src.domains.fraud.events import InMemoryEventPublisher
from src.domains.fraud.evaluator import FraudEvaluator
from src.domains.fraud.ledger import HistorySnapshot, InMemoryLedger
from src.domains.fraud.models import ActorType, Transaction
from src.domains.fraud.reports import FraudReportManager
from src.domains.fraud.review_queue import ReviewQueue
from src.domains.fraud.roles import StaticRoleDirectory
from src.domains.fraud.vendors import VendorStandingTracker

NOW = datetime(2026, 3, 10, 14, 0, 0, tzinfo=UTC)


def make_txn(
    transaction_id: str = "txn-1",
    actor_id: str = "beneficiary-1",
    counterparty_id: str = "vendor-1",
    amount: str | Decimal = "100.00",
    timestamp: datetime = NOW,
    actor_type: ActorType = ActorType.BENEFICIARY,
    **kwargs,
) -> Transaction:
    return Transaction(
        transaction_id=transaction_id,
        actor_id=actor_id,
        actor_type=actor_type,
        counterparty_id=counterparty_id,
        amount=Decimal(amount),
        timestamp=timestamp,
        **kwargs,
    )


def make_history(
    count: int,
    spacing: timedelta,
    end: datetime = NOW,
    actor_id: str = "beneficiary-1",
    counterparty_id: str = "vendor-1",
    amount: str = "10.00",
    prefix: str = "hist",
) -> list[Transaction]:
    """``count`` prior transactions, the newest ``spacing`` before ``end``."""
    return [
        make_txn(
            transaction_id=f"{prefix}-{i}",
            actor_id=actor_id,
            counterparty_id=counterparty_id,
            amount=amount,
            timestamp=end - spacing * (count - i),
        )
        for i in range(count)
    ]


def make_snapshot(
    actor_history: list[Transaction] | None = None,
    counterparty_received: list[Transaction] | None = None,
    daily_total: str | None = "0",
    as_of: datetime = NOW,
) -> HistorySnapshot:
    return HistorySnapshot(
        as_of=as_of,
        actor_history=tuple(actor_history or ()),
        counterparty_received=tuple(counterparty_received or ()),
        actor_daily_total=Decimal(daily_total) if daily_total is not None else None,
    )


@pytest.fixture
def config() -> FraudConfig:
    return FraudConfig()


@pytest.fixture
def roles() -> StaticRoleDirectory:
    return StaticRoleDirectory.from_lists(
        verifiers=["verifier-a", "verifier-b"], admins=["admin-1"]
    )


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def report_manager(roles, publisher) -> FraudReportManager:
    return FraudReportManager(roles, publisher=publisher, audit_secret="test-secret")


@pytest.fixture
def review_queue(roles, publisher) -> ReviewQueue:
    return ReviewQueue(roles, publisher=publisher)


@pytest.fixture
def vendor_tracker(config) -> VendorStandingTracker:
    return VendorStandingTracker(config)


@pytest.fixture
def evaluator(
    ledger, config, publisher, review_queue, report_manager, vendor_tracker
) -> FraudEvaluator:
    return FraudEvaluator(
        ledger,
        config=config,
        publisher=publisher,
        review_queue=review_queue,
        case_manager=report_manager,
        vendor_tracker=vendor_tracker,
    )
