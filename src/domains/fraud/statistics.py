"""Fraud statistics for the admin dashboard."""

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from .models import (
    Action,
    EvaluationResult,
    FlaggedTransactionRecord,
    FraudReport,
    FraudStatistics,
    ReportSeverity,
    ReportStatus,
    VendorStanding,
    VendorStatus,
)

TIMEFRAMES: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_TIMEFRAME = "90d"
TOP_PATTERNS = 5


def timeframe_days(timeframe: str) -> int:
    """Days covered by ``timeframe``; unknown values fall back to 90."""
    return TIMEFRAMES.get(timeframe, TIMEFRAMES[DEFAULT_TIMEFRAME])


def top_patterns(evaluations: Iterable[EvaluationResult], limit: int = TOP_PATTERNS) -> list[dict]:
    counts: Counter[str] = Counter()
    for evaluation in evaluations:
        counts.update(evaluation.patterns)
    return [{"pattern": p, "count": c} for p, c in counts.most_common(limit)]


def daily_trends(evaluations: Iterable[EvaluationResult]) -> list[dict]:
    counts: Counter[str] = Counter(
        e.evaluated_at.astimezone(UTC).strftime("%Y-%m-%d") for e in evaluations
    )
    return [{"date": day, "count": counts[day]} for day in sorted(counts)]


def compute_statistics(
    timeframe: str,
    reports: Iterable[FraudReport],
    evaluations: Iterable[EvaluationResult],
    vendor_standings: Iterable[VendorStanding],
    review_records: Iterable[FlaggedTransactionRecord] = (),
    now: datetime | None = None,
) -> FraudStatistics:
    now = now or datetime.now(UTC)
    since = now - timedelta(days=timeframe_days(timeframe))

    window_reports = [r for r in reports if r.created_at >= since]
    flagged = [e for e in evaluations if e.flags and e.evaluated_at >= since]
    vendors = [
        v
        for v in vendor_standings
        if v.suspicious_activity_count > 0
        and v.last_suspicious_activity is not None
        and v.last_suspicious_activity >= since
    ]
    pending_reviews = [
        r for r in review_records if r.is_pending and r.enqueued_at >= since
    ]

    status_counts = Counter(r.status for r in window_reports)
    severity_counts = Counter(r.severity for r in window_reports)

    return FraudStatistics(
        timeframe=timeframe if timeframe in TIMEFRAMES else DEFAULT_TIMEFRAME,
        since=since,
        summary={
            "total_reports": len(window_reports),
            "auto_generated": sum(1 for r in window_reports if r.auto_generated),
            "by_status": {s.value: status_counts.get(s, 0) for s in ReportStatus},
            "by_severity": {s.value: severity_counts.get(s, 0) for s in ReportSeverity},
        },
        flagged_vendors={
            "total": len(vendors),
            "suspended": sum(1 for v in vendors if v.status == VendorStatus.SUSPENDED),
        },
        suspicious_transactions={
            "total": len(flagged),
            "blocked": sum(1 for e in flagged if e.recommendation.action == Action.BLOCK),
            "under_review": len(pending_reviews),
            "degraded": sum(1 for e in flagged if e.degraded),
        },
        patterns=top_patterns(flagged),
        trends=daily_trends(flagged),
    )
