"""Fraud detection checks package.

Importing this package registers every check. Exports ALL_CHECKS (all
registered checks in evaluation order) and the individual check functions.
"""

from .amount import excessive_amount, excessive_daily_spending, vendor_excessive_daily
from .base import PatternCheck, Signal, pattern_check, registered_checks
from .patterns import duplicate_transaction, unusual_vendor_pattern
from .velocity import max_transactions_per_hour, rapid_succession, suspicious_timing

# All registered checks in evaluation order
ALL_CHECKS: list[PatternCheck] = registered_checks()

__all__ = [
    "ALL_CHECKS",
    "PatternCheck",
    "Signal",
    "pattern_check",
    "registered_checks",
    # Amount
    "excessive_amount",
    "excessive_daily_spending",
    "vendor_excessive_daily",
    # Velocity
    "rapid_succession",
    "max_transactions_per_hour",
    "suspicious_timing",
    # Patterns
    "duplicate_transaction",
    "unusual_vendor_pattern",
]
