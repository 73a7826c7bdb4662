"""Amount-based fraud checks."""

from decimal import Decimal

from ..config import FraudConfig
from ..ledger import DAILY_WINDOW, HistorySnapshot
from ..models import FraudFlag, FraudPattern, Severity, Transaction
from .base import pattern_check, triggered


@pattern_check(FraudPattern.EXCESSIVE_AMOUNT, category="amount")
def excessive_amount(
    transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
) -> FraudFlag | None:
    """Single transaction above the per-transaction cap."""
    threshold = config.amount.max_transaction_amount
    if transaction.amount <= threshold:
        return None

    return triggered(
        FraudPattern.EXCESSIVE_AMOUNT,
        Severity.HIGH,
        f"Transaction amount {transaction.amount:,.2f} exceeds maximum {threshold:,.2f}",
        snapshot,
        evidence={"amount": str(transaction.amount), "threshold": str(threshold)},
    )


@pattern_check(FraudPattern.EXCESSIVE_DAILY_SPENDING, category="amount")
def excessive_daily_spending(
    transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
) -> FraudFlag | None:
    """Actor's trailing-24h total, candidate included, above the daily cap."""
    current = snapshot.daily_total()
    projected = current + transaction.amount
    limit = config.amount.max_daily_amount
    if projected <= limit:
        return None

    return triggered(
        FraudPattern.EXCESSIVE_DAILY_SPENDING,
        Severity.MEDIUM,
        f"24h spending {projected:,.2f} exceeds daily limit {limit:,.2f}",
        snapshot,
        evidence={
            "current_daily": str(current),
            "projected_total": str(projected),
            "limit": str(limit),
            "window": "24h",
        },
    )


@pattern_check(FraudPattern.VENDOR_EXCESSIVE_DAILY, category="amount")
def vendor_excessive_daily(
    transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
) -> FraudFlag | None:
    """Counterparty's trailing-24h received total above the vendor cap."""
    received = snapshot.counterparty_window(DAILY_WINDOW)
    current = sum((t.amount for t in received), Decimal("0"))
    projected = current + transaction.amount
    limit = config.amount.max_vendor_daily_amount
    if projected <= limit:
        return None

    return triggered(
        FraudPattern.VENDOR_EXCESSIVE_DAILY,
        Severity.MEDIUM,
        f"Vendor {transaction.counterparty_id} received {projected:,.2f} in 24h "
        f"(limit: {limit:,.2f})",
        snapshot,
        evidence={
            "counterparty_id": transaction.counterparty_id,
            "current_daily": str(current),
            "projected_total": str(projected),
            "limit": str(limit),
            "transaction_count": len(received),
        },
    )
