"""Fraud risk scoring and case management domain."""

from .config import FraudConfig, default_config
from .detector import Detection, PatternDetector
from .evaluator import FraudEvaluator, validate_transaction
from .ledger import HistorySnapshot, InMemoryLedger, Ledger, load_snapshot
from .models import (
    Action,
    EvaluationResult,
    FlaggedTransactionRecord,
    FraudFlag,
    FraudPattern,
    FraudReport,
    FraudWarning,
    Recommendation,
    RiskLevel,
    Transaction,
)
from .reports import FraudReportManager
from .review_queue import ReviewQueue
from .risk import calculate_risk_level, get_recommendation
from .rules import ALL_CHECKS
from .vendors import VendorStandingTracker

__all__ = [
    "ALL_CHECKS",
    "Action",
    "Detection",
    "EvaluationResult",
    "FlaggedTransactionRecord",
    "FraudConfig",
    "FraudEvaluator",
    "FraudFlag",
    "FraudPattern",
    "FraudReport",
    "FraudReportManager",
    "FraudWarning",
    "HistorySnapshot",
    "InMemoryLedger",
    "Ledger",
    "PatternDetector",
    "Recommendation",
    "ReviewQueue",
    "RiskLevel",
    "Transaction",
    "VendorStandingTracker",
    "calculate_risk_level",
    "default_config",
    "get_recommendation",
    "load_snapshot",
    "validate_transaction",
]
