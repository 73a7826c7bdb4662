"""Pattern-based fraud checks."""

from collections import defaultdict
from datetime import timedelta
from decimal import Decimal

from ..config import FraudConfig
from ..ledger import HistorySnapshot
from ..models import FraudFlag, FraudPattern, Severity, Transaction
from .base import pattern_check, triggered


@pattern_check(FraudPattern.DUPLICATE_TRANSACTION, category="patterns")
def duplicate_transaction(
    transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
) -> FraudFlag | None:
    """Same actor, counterparty and amount seen inside the duplicate window."""
    window_seconds = config.patterns.duplicate_window_seconds
    duplicates = [
        t
        for t in snapshot.actor_window(timedelta(seconds=window_seconds))
        if t.counterparty_id == transaction.counterparty_id and t.amount == transaction.amount
    ]
    if not duplicates:
        return None

    return triggered(
        FraudPattern.DUPLICATE_TRANSACTION,
        Severity.HIGH,
        f"{len(duplicates)} matching transaction(s) to the same counterparty "
        f"within {window_seconds // 60}min",
        snapshot,
        evidence={
            "duplicate_count": len(duplicates),
            "duplicate_ids": [t.transaction_id for t in duplicates],
            "amount": str(transaction.amount),
            "counterparty_id": transaction.counterparty_id,
            "window_seconds": window_seconds,
        },
    )


@pattern_check(FraudPattern.UNUSUAL_VENDOR_PATTERN, category="patterns")
def unusual_vendor_pattern(
    transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
) -> FraudFlag | None:
    """One counterparty takes too large a share of the actor's spend.

    The share is computed by amount over the trailing concentration window,
    candidate included.
    """
    cfg = config.patterns
    recent = snapshot.actor_window(timedelta(days=cfg.vendor_concentration_window_days))
    txns = [*recent, transaction]
    if len(txns) < cfg.vendor_concentration_min_txns:
        return None

    spend: dict[str, Decimal] = defaultdict(Decimal)
    for t in txns:
        spend[t.counterparty_id] += t.amount
    total = sum(spend.values(), Decimal("0"))
    if total <= 0:
        return None

    share = spend[transaction.counterparty_id] / total
    if share <= Decimal(str(cfg.vendor_concentration_ratio)):
        return None

    return triggered(
        FraudPattern.UNUSUAL_VENDOR_PATTERN,
        Severity.MEDIUM,
        f"{float(share):.0%} of spend in {cfg.vendor_concentration_window_days}d "
        f"went to {transaction.counterparty_id}",
        snapshot,
        evidence={
            "counterparty_id": transaction.counterparty_id,
            "concentration": round(float(share), 4),
            "threshold": cfg.vendor_concentration_ratio,
            "counterparty_spend": str(spend[transaction.counterparty_id]),
            "total_spend": str(total),
            "transaction_count": len(txns),
            "distinct_counterparties": len(spend),
            "window_days": cfg.vendor_concentration_window_days,
        },
    )
