"""Unit tests for vendor standing tracking."""

from datetime import timedelta

from src.domains.fraud.config import FraudConfig
from src.domains.fraud.models import RiskLevel, VendorStatus
from src.domains.fraud.vendors import VendorStandingTracker
from tests.conftest import NOW


class TestVendorStandingTracker:
    def test_unknown_vendor_is_clean(self):
        standing = VendorStandingTracker().get("vendor-1")
        assert standing.suspicious_activity_count == 0
        assert standing.status == VendorStatus.ACTIVE
        assert standing.risk_level == RiskLevel.LOW

    def test_risk_rises_with_flags(self):
        tracker = VendorStandingTracker()
        levels = [tracker.record_flag("vendor-1", at=NOW).risk_level for _ in range(4)]
        assert levels == [RiskLevel.MEDIUM, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.HIGH]

    def test_suspended_at_threshold(self):
        tracker = VendorStandingTracker()
        for _ in range(4):
            assert tracker.record_flag("vendor-1", at=NOW).status == VendorStatus.ACTIVE
        standing = tracker.record_flag("vendor-1", at=NOW)
        assert standing.status == VendorStatus.SUSPENDED
        assert standing.suspicious_activity_count == 5

    def test_custom_threshold(self):
        config = FraudConfig()
        config.reports.vendor_suspension_threshold = 2
        tracker = VendorStandingTracker(config)
        tracker.record_flag("vendor-1", at=NOW)
        assert tracker.record_flag("vendor-1", at=NOW).status == VendorStatus.SUSPENDED

    def test_flagged_since(self):
        tracker = VendorStandingTracker()
        tracker.record_flag("old", at=NOW - timedelta(days=40))
        tracker.record_flag("recent", at=NOW - timedelta(days=1))

        assert {s.vendor_id for s in tracker.flagged()} == {"old", "recent"}
        since = NOW - timedelta(days=30)
        assert [s.vendor_id for s in tracker.flagged(since)] == ["recent"]
