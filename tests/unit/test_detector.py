"""Unit tests for the pattern detector and check registry."""

from datetime import timedelta

import pytest

from src.domains.fraud.config import FraudConfig
from src.domains.fraud.detector import PatternDetector
from src.domains.fraud.ledger import HistorySnapshot
from src.domains.fraud.models import FraudPattern
from src.domains.fraud.rules import ALL_CHECKS
from src.domains.fraud.rules.base import PatternCheck, pattern_check
from tests.conftest import NOW, make_history, make_snapshot, make_txn


def _boom(transaction, snapshot, config):
    raise RuntimeError("check exploded")


class TestRegistry:
    def test_every_pattern_has_one_check(self):
        assert {c.pattern for c in ALL_CHECKS} == set(FraudPattern)
        assert len(ALL_CHECKS) == len(FraudPattern)

    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError, match="already registered"):

            @pattern_check(FraudPattern.EXCESSIVE_AMOUNT, category="amount")
            def another(transaction, snapshot, config):
                return None

    def test_descriptions_come_from_docstrings(self):
        for check in ALL_CHECKS:
            assert check.description


class TestPatternDetector:
    def test_clean_transaction(self):
        detection = PatternDetector().detect(make_txn(), make_snapshot())
        assert detection.flags == []
        assert detection.warnings == []
        assert not detection.degraded

    def test_all_checks_run_without_short_circuit(self):
        history = make_history(2, timedelta(seconds=20), amount="1500")
        detection = PatternDetector().detect(make_txn(amount="1500"), make_snapshot(history))
        patterns = {f.pattern for f in detection.flags}
        assert FraudPattern.EXCESSIVE_AMOUNT in patterns
        assert FraudPattern.RAPID_SUCCESSION in patterns
        assert FraudPattern.DUPLICATE_TRANSACTION in patterns

    def test_at_most_one_signal_per_pattern(self):
        history = make_history(12, timedelta(seconds=4), amount="1500")
        detection = PatternDetector().detect(make_txn(amount="1500"), make_snapshot(history))
        patterns = [f.pattern for f in detection.flags] + [w.pattern for w in detection.warnings]
        assert len(patterns) == len(set(patterns))

    def test_missing_actor_history_fails_open(self):
        snapshot = HistorySnapshot(as_of=NOW, actor_history=None)
        detection = PatternDetector().detect(make_txn(amount="1500"), snapshot)

        assert detection.degraded
        assert [f.pattern for f in detection.flags] == [FraudPattern.EXCESSIVE_AMOUNT]
        skipped = {w.pattern for w in detection.warnings}
        assert FraudPattern.RAPID_SUCCESSION in skipped
        assert FraudPattern.DUPLICATE_TRANSACTION in skipped
        assert all(w.evidence["reason"] == "history_unavailable" for w in detection.warnings)

    def test_raising_check_fails_open(self):
        broken = PatternCheck(
            pattern=FraudPattern.RAPID_SUCCESSION, category="velocity", func=_boom
        )
        detector = PatternDetector(checks=[broken, *ALL_CHECKS[:1]])
        detection = detector.detect(make_txn(), make_snapshot())

        assert detection.degraded
        assert len(detection.warnings) == 1
        warning = detection.warnings[0]
        assert warning.pattern == FraudPattern.RAPID_SUCCESSION
        assert warning.evidence == {"reason": "check_failed", "error": "check exploded"}

    def test_custom_config_is_used(self):
        config = FraudConfig()
        config.velocity.rapid_succession_min_count = 2
        history = make_history(1, timedelta(seconds=10), amount="5")
        detection = PatternDetector(config).detect(make_txn(), make_snapshot(history))
        assert FraudPattern.RAPID_SUCCESSION in {f.pattern for f in detection.flags}
