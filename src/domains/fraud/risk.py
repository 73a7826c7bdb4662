"""Risk level aggregation and action policy.

Both functions are pure and total: identical inputs always give identical
outputs, and warnings never raise the level above ``low``.
"""

from collections.abc import Sequence

from .models import (
    Action,
    FraudFlag,
    FraudWarning,
    Recommendation,
    RiskLevel,
    Severity,
)


def calculate_risk_level(
    flags: Sequence[FraudFlag], warnings: Sequence[FraudWarning] = ()
) -> RiskLevel:
    high = sum(1 for f in flags if f.severity == Severity.HIGH)
    medium = sum(1 for f in flags if f.severity == Severity.MEDIUM)

    if high >= 2:
        return RiskLevel.CRITICAL
    if high == 1:
        return RiskLevel.HIGH
    if medium >= 1:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


_RECOMMENDATIONS: dict[RiskLevel, Recommendation] = {
    RiskLevel.LOW: Recommendation(
        action=Action.ALLOW,
        requires_review=False,
        auto_flag=False,
        message="Transaction appears normal",
    ),
    RiskLevel.MEDIUM: Recommendation(
        action=Action.MONITOR,
        requires_review=False,
        auto_flag=True,
        message="Transaction flagged for monitoring",
    ),
    RiskLevel.HIGH: Recommendation(
        action=Action.REVIEW,
        requires_review=True,
        auto_flag=True,
        message="Transaction requires manual review before processing",
    ),
    RiskLevel.CRITICAL: Recommendation(
        action=Action.BLOCK,
        requires_review=True,
        auto_flag=True,
        message="Transaction blocked due to critical fraud risk",
    ),
}


def recommendation_for(level: RiskLevel) -> Recommendation:
    return _RECOMMENDATIONS[level]


def get_recommendation(
    flags: Sequence[FraudFlag], warnings: Sequence[FraudWarning] = ()
) -> Recommendation:
    return recommendation_for(calculate_risk_level(flags, warnings))
