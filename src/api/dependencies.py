"""Process-wide fraud engine wiring for the HTTP layer."""

from dataclasses import dataclass

import structlog

from src.config import Settings, settings
from src.domains.fraud.config import FraudConfig
from src.domains.fraud.evaluator import FraudEvaluator
from src.domains.fraud.events import EventPublisher
from src.domains.fraud.ledger import InMemoryLedger, Ledger
from src.domains.fraud.reports import FraudReportManager
from src.domains.fraud.review_queue import ReviewQueue
from src.domains.fraud.roles import StaticRoleDirectory
from src.domains.fraud.vendors import VendorStandingTracker

logger = structlog.get_logger()


@dataclass
class FraudEngine:
    evaluator: FraudEvaluator
    reports: FraudReportManager
    reviews: ReviewQueue
    vendors: VendorStandingTracker
    roles: StaticRoleDirectory


def build_engine(
    app_settings: Settings | None = None,
    ledger: Ledger | None = None,
    publisher: EventPublisher | None = None,
    config: FraudConfig | None = None,
) -> FraudEngine:
    app_settings = app_settings or settings
    config = config or FraudConfig.from_env()

    if ledger is None:
        if app_settings.database_enabled:
            from src.db.database import async_session_factory
            from src.db.ledger import SqlLedger

            ledger = SqlLedger(async_session_factory)
        else:
            ledger = InMemoryLedger()

    roles = StaticRoleDirectory.from_lists(app_settings.verifiers, app_settings.admins)
    reports = FraudReportManager(
        roles, publisher=publisher, audit_secret=app_settings.report_audit_secret
    )
    reviews = ReviewQueue(roles, publisher=publisher)
    vendors = VendorStandingTracker(config)
    evaluator = FraudEvaluator(
        ledger,
        config=config,
        publisher=publisher,
        review_queue=reviews,
        case_manager=reports,
        vendor_tracker=vendors,
    )
    logger.info(
        "fraud_engine_built",
        ledger=type(ledger).__name__,
        publisher=type(publisher).__name__ if publisher else None,
    )
    return FraudEngine(
        evaluator=evaluator, reports=reports, reviews=reviews, vendors=vendors, roles=roles
    )


_engine: FraudEngine | None = None


def get_engine() -> FraudEngine:
    """Get or create the global FraudEngine singleton."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def set_engine(engine: FraudEngine | None) -> None:
    global _engine
    _engine = engine
