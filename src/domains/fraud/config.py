"""Fraud detection configuration with sensible defaults."""

import os
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class AmountThresholds:
    max_transaction_amount: Decimal = Decimal("1000")
    max_daily_amount: Decimal = Decimal("5000")
    max_vendor_daily_amount: Decimal = Decimal("10000")


@dataclass
class VelocityThresholds:
    rapid_succession_window_seconds: int = 60
    # Candidate included in the count
    rapid_succession_min_count: int = 3
    max_transactions_per_hour: int = 10


@dataclass
class PatternThresholds:
    duplicate_window_seconds: int = 300
    vendor_concentration_ratio: float = 0.8
    vendor_concentration_window_days: int = 30
    vendor_concentration_min_txns: int = 5
    quiet_hours_start: int = 0
    quiet_hours_end: int = 5
    timing_lookback_days: int = 7
    timing_min_txns: int = 5
    timing_max_active_hours: int = 2
    timing_concentration_ratio: float = 0.8
    # "flag" raises a medium flag, "warning" only records an advisory warning
    timing_signal: str = "flag"


@dataclass
class ReportSettings:
    auto_report_min_risk: str = "high"
    vendor_suspension_threshold: int = 5
    vendor_medium_risk_below: int = 3


@dataclass
class FraudConfig:
    amount: AmountThresholds = field(default_factory=AmountThresholds)
    velocity: VelocityThresholds = field(default_factory=VelocityThresholds)
    patterns: PatternThresholds = field(default_factory=PatternThresholds)
    reports: ReportSettings = field(default_factory=ReportSettings)

    @property
    def history_lookback_days(self) -> int:
        """Widest trailing window any check reads from the actor history."""
        return max(
            self.patterns.vendor_concentration_window_days,
            self.patterns.timing_lookback_days,
            1,
        )

    @classmethod
    def from_env(cls) -> "FraudConfig":
        """Load config with env var overrides. Env vars use FRAUD_ prefix."""
        config = cls()

        # Amount overrides
        if v := os.getenv("FRAUD_MAX_TRANSACTION_AMOUNT"):
            config.amount.max_transaction_amount = Decimal(v)
        if v := os.getenv("FRAUD_MAX_DAILY_AMOUNT"):
            config.amount.max_daily_amount = Decimal(v)
        if v := os.getenv("FRAUD_MAX_VENDOR_DAILY_AMOUNT"):
            config.amount.max_vendor_daily_amount = Decimal(v)

        # Velocity overrides
        if v := os.getenv("FRAUD_RAPID_SUCCESSION_WINDOW_SECONDS"):
            config.velocity.rapid_succession_window_seconds = int(v)
        if v := os.getenv("FRAUD_RAPID_SUCCESSION_MIN_COUNT"):
            config.velocity.rapid_succession_min_count = int(v)
        if v := os.getenv("FRAUD_MAX_TRANSACTIONS_PER_HOUR"):
            config.velocity.max_transactions_per_hour = int(v)

        # Pattern overrides
        if v := os.getenv("FRAUD_DUPLICATE_WINDOW_SECONDS"):
            config.patterns.duplicate_window_seconds = int(v)
        if v := os.getenv("FRAUD_VENDOR_CONCENTRATION_RATIO"):
            config.patterns.vendor_concentration_ratio = float(v)
        if v := os.getenv("FRAUD_TIMING_SIGNAL"):
            config.patterns.timing_signal = v

        # Report overrides
        if v := os.getenv("FRAUD_AUTO_REPORT_MIN_RISK"):
            config.reports.auto_report_min_risk = v

        return config


# Module-level default instance
default_config = FraudConfig()
