"""Velocity and timing fraud checks."""

from collections import Counter
from datetime import UTC, timedelta

from ..config import FraudConfig
from ..ledger import HistorySnapshot
from ..models import FraudPattern, Severity, Transaction
from .base import Signal, advisory, pattern_check, triggered


@pattern_check(FraudPattern.RAPID_SUCCESSION, category="velocity")
def rapid_succession(
    transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
) -> Signal | None:
    """Burst of actor transactions inside the short succession window."""
    window_seconds = config.velocity.rapid_succession_window_seconds
    min_count = config.velocity.rapid_succession_min_count
    recent = snapshot.actor_window(timedelta(seconds=window_seconds))
    count = len(recent) + 1
    if count < min_count:
        return None

    return triggered(
        FraudPattern.RAPID_SUCCESSION,
        Severity.HIGH,
        f"{count} transactions within {window_seconds}s (threshold: {min_count})",
        snapshot,
        evidence={
            "count": count,
            "threshold": min_count,
            "window_seconds": window_seconds,
            "transaction_ids": [t.transaction_id for t in recent],
        },
    )


@pattern_check(FraudPattern.MAX_TRANSACTIONS_PER_HOUR, category="velocity")
def max_transactions_per_hour(
    transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
) -> Signal | None:
    """Actor's trailing-1h transaction count above the hourly cap."""
    cap = config.velocity.max_transactions_per_hour
    count = len(snapshot.actor_window(timedelta(hours=1))) + 1
    if count <= cap:
        return None

    return triggered(
        FraudPattern.MAX_TRANSACTIONS_PER_HOUR,
        Severity.MEDIUM,
        f"{count} transactions in last hour (threshold: {cap})",
        snapshot,
        evidence={"count": count, "threshold": cap, "window": "1h"},
    )


@pattern_check(FraudPattern.SUSPICIOUS_TIMING, category="velocity")
def suspicious_timing(
    transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
) -> Signal | None:
    """Quiet-hours activity or activity bunched into very few hours of the day."""
    cfg = config.patterns
    hour = transaction.timestamp.astimezone(UTC).hour
    evidence: dict = {"hour_utc": hour}
    reasons = []

    if cfg.quiet_hours_start <= hour < cfg.quiet_hours_end:
        reasons.append("quiet_hours")
        evidence["quiet_hours"] = [cfg.quiet_hours_start, cfg.quiet_hours_end]

    recent = snapshot.actor_window(timedelta(days=cfg.timing_lookback_days))
    hours = [t.timestamp.astimezone(UTC).hour for t in recent] + [hour]
    if len(hours) >= cfg.timing_min_txns:
        distribution = Counter(hours)
        top_share = distribution.most_common(1)[0][1] / len(hours)
        if (
            len(distribution) <= cfg.timing_max_active_hours
            and top_share > cfg.timing_concentration_ratio
        ):
            reasons.append("hour_concentration")
            evidence["active_hours"] = len(distribution)
            evidence["max_hour_concentration"] = round(top_share, 4)
            evidence["hour_distribution"] = {str(h): c for h, c in sorted(distribution.items())}

    if not reasons:
        return None

    evidence["reasons"] = reasons
    message = f"Unusual transaction timing: {', '.join(reasons)}"
    if cfg.timing_signal == "warning":
        return advisory(FraudPattern.SUSPICIOUS_TIMING, message, snapshot, evidence=evidence)
    return triggered(
        FraudPattern.SUSPICIOUS_TIMING, Severity.MEDIUM, message, snapshot, evidence=evidence
    )
