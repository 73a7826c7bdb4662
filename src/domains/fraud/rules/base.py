"""Check registry for fraud pattern detection.

Each check is a plain function ``(transaction, snapshot, config) -> signal``
registered under its ``FraudPattern``. Checks are pure: they read only their
arguments and return a ``FraudFlag``, a ``FraudWarning`` or ``None``.
"""

from collections.abc import Callable
from dataclasses import dataclass

from ..config import FraudConfig
from ..ledger import HistorySnapshot
from ..models import FraudFlag, FraudPattern, FraudWarning, Severity, Transaction

Signal = FraudFlag | FraudWarning
CheckFn = Callable[[Transaction, HistorySnapshot, FraudConfig], Signal | None]


@dataclass(frozen=True)
class PatternCheck:
    pattern: FraudPattern
    category: str  # "amount" | "velocity" | "patterns"
    func: CheckFn

    @property
    def description(self) -> str:
        return (self.func.__doc__ or "").strip().split("\n")[0]

    def __call__(
        self, transaction: Transaction, snapshot: HistorySnapshot, config: FraudConfig
    ) -> Signal | None:
        return self.func(transaction, snapshot, config)


_REGISTRY: dict[FraudPattern, PatternCheck] = {}


def pattern_check(pattern: FraudPattern, category: str) -> Callable[[CheckFn], CheckFn]:
    """Register a check function for ``pattern``. One check per pattern."""

    def decorator(func: CheckFn) -> CheckFn:
        if pattern in _REGISTRY:
            raise ValueError(f"Check already registered for pattern {pattern.value}")
        _REGISTRY[pattern] = PatternCheck(pattern=pattern, category=category, func=func)
        return func

    return decorator


def registered_checks() -> list[PatternCheck]:
    """All registered checks in registration order."""
    return list(_REGISTRY.values())


def triggered(
    pattern: FraudPattern,
    severity: Severity,
    message: str,
    snapshot: HistorySnapshot,
    evidence: dict | None = None,
) -> FraudFlag:
    """Convenience: build a flag stamped with the snapshot time."""
    return FraudFlag(
        pattern=pattern,
        severity=severity,
        message=message,
        evidence=evidence or {},
        detected_at=snapshot.as_of,
    )


def advisory(
    pattern: FraudPattern,
    message: str,
    snapshot: HistorySnapshot,
    evidence: dict | None = None,
) -> FraudWarning:
    """Convenience: build a warning stamped with the snapshot time."""
    return FraudWarning(
        pattern=pattern,
        message=message,
        evidence=evidence or {},
        detected_at=snapshot.as_of,
    )
