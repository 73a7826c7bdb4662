"""Pattern detector: runs every registered check against one snapshot."""

from dataclasses import dataclass, field

import structlog

from .config import FraudConfig, default_config
from .errors import HistoryUnavailable
from .ledger import HistorySnapshot
from .models import FraudFlag, FraudWarning, Transaction
from .rules import ALL_CHECKS, PatternCheck
from .rules.base import advisory

logger = structlog.get_logger()


@dataclass
class Detection:
    flags: list[FraudFlag] = field(default_factory=list)
    warnings: list[FraudWarning] = field(default_factory=list)
    degraded: bool = False


class PatternDetector:
    """Evaluates a candidate transaction against every registered check.

    Checks are independent: all of them run, outputs are unioned, and a check
    contributes at most one signal. A check whose history source is missing,
    or which raises, fails open as a warning and marks the detection degraded.
    """

    def __init__(
        self,
        config: FraudConfig | None = None,
        checks: list[PatternCheck] | None = None,
    ) -> None:
        self._config = config or default_config
        self._checks = list(checks) if checks is not None else list(ALL_CHECKS)
        logger.info("pattern_detector_initialized", check_count=len(self._checks))

    @property
    def config(self) -> FraudConfig:
        return self._config

    @property
    def checks(self) -> list[PatternCheck]:
        return list(self._checks)

    def detect(self, transaction: Transaction, snapshot: HistorySnapshot) -> Detection:
        detection = Detection()

        for check in self._checks:
            try:
                signal = check(transaction, snapshot, self._config)
            except HistoryUnavailable as exc:
                self._degrade(detection, check, transaction, snapshot, "history_unavailable", exc)
                continue
            except Exception as exc:
                logger.exception(
                    "check_evaluation_error",
                    pattern=check.pattern.value,
                    transaction_id=transaction.transaction_id,
                )
                self._degrade(detection, check, transaction, snapshot, "check_failed", exc)
                continue

            if signal is None:
                continue
            if isinstance(signal, FraudFlag):
                detection.flags.append(signal)
            else:
                detection.warnings.append(signal)

        return detection

    def _degrade(
        self,
        detection: Detection,
        check: PatternCheck,
        transaction: Transaction,
        snapshot: HistorySnapshot,
        reason: str,
        exc: Exception,
    ) -> None:
        detection.degraded = True
        detection.warnings.append(
            advisory(
                check.pattern,
                f"Check {check.pattern.value} skipped: {reason}",
                snapshot,
                evidence={"reason": reason, "error": str(exc)},
            )
        )
        logger.warning(
            "degraded_evaluation",
            pattern=check.pattern.value,
            reason=reason,
            transaction_id=transaction.transaction_id,
            actor_id=transaction.actor_id,
        )
