"""Vendor standing: suspicious-activity counts and auto-suspension."""

from datetime import UTC, datetime

import structlog

from .config import FraudConfig, default_config
from .models import RiskLevel, VendorStanding, VendorStatus

logger = structlog.get_logger()


class VendorStandingTracker:
    """Tracks how often each vendor has been auto-flagged.

    In-memory store keyed by vendor id; a vendor reaching the suspension
    threshold is suspended and stays suspended.
    """

    def __init__(self, config: FraudConfig | None = None) -> None:
        self.config = config or default_config
        self._standings: dict[str, VendorStanding] = {}

    def _risk_for(self, count: int) -> RiskLevel:
        if count == 0:
            return RiskLevel.LOW
        if count < self.config.reports.vendor_medium_risk_below:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH

    def get(self, vendor_id: str) -> VendorStanding:
        return self._standings.get(vendor_id) or VendorStanding(vendor_id=vendor_id)

    def record_flag(self, vendor_id: str, at: datetime | None = None) -> VendorStanding:
        current = self.get(vendor_id)
        count = current.suspicious_activity_count + 1
        status = current.status
        if count >= self.config.reports.vendor_suspension_threshold:
            status = VendorStatus.SUSPENDED

        standing = current.model_copy(
            update={
                "suspicious_activity_count": count,
                "last_suspicious_activity": at or datetime.now(UTC),
                "status": status,
                "risk_level": self._risk_for(count),
            }
        )
        self._standings[vendor_id] = standing

        if status == VendorStatus.SUSPENDED and current.status != VendorStatus.SUSPENDED:
            logger.warning(
                "vendor_auto_suspended",
                vendor_id=vendor_id,
                suspicious_activity_count=count,
            )
        else:
            logger.info(
                "vendor_flagged",
                vendor_id=vendor_id,
                suspicious_activity_count=count,
                risk_level=standing.risk_level.value,
            )
        return standing

    def flagged(self, since: datetime | None = None) -> list[VendorStanding]:
        standings = [s for s in self._standings.values() if s.suspicious_activity_count > 0]
        if since is None:
            return standings
        return [
            s
            for s in standings
            if s.last_suspicious_activity is not None and s.last_suspicious_activity >= since
        ]
