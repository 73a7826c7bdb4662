"""Transaction ledger accessor and history snapshots.

The ledger is the only I/O boundary the evaluation path touches. The
evaluator reads one ``HistorySnapshot`` per evaluation and every check works
off that snapshot, so no check can observe a window that changes mid-run.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Protocol

import structlog

from .config import FraudConfig
from .errors import HistoryUnavailable
from .models import EvaluationResult, Transaction

logger = structlog.get_logger()

DAILY_WINDOW = timedelta(hours=24)


class Ledger(Protocol):
    async def history(self, actor_id: str, since: datetime) -> list[Transaction]:
        """Actor transactions with ``timestamp >= since``, oldest first."""
        ...

    async def daily_total(self, actor_id: str, as_of: datetime) -> Decimal:
        """Sum of actor amounts in the 24h ending at ``as_of``."""
        ...

    async def received(self, counterparty_id: str, since: datetime) -> list[Transaction]:
        """Transactions paid to a counterparty with ``timestamp >= since``."""
        ...

    async def record(
        self, transaction: Transaction, evaluation: EvaluationResult | None = None
    ) -> None:
        """Admit a transaction (with its risk annotation) to the ledger."""
        ...


class InMemoryLedger:
    """Dict-backed ledger used by tests and single-process deployments."""

    def __init__(self, transactions: list[Transaction] | None = None) -> None:
        self._transactions: dict[str, Transaction] = {}
        self._annotations: dict[str, EvaluationResult] = {}
        for txn in transactions or []:
            self._transactions[txn.transaction_id] = txn

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._transactions

    def annotation(self, transaction_id: str) -> EvaluationResult | None:
        return self._annotations.get(transaction_id)

    async def history(self, actor_id: str, since: datetime) -> list[Transaction]:
        return sorted(
            (
                t
                for t in self._transactions.values()
                if t.actor_id == actor_id and t.timestamp >= since
            ),
            key=lambda t: t.timestamp,
        )

    async def daily_total(self, actor_id: str, as_of: datetime) -> Decimal:
        start = as_of - DAILY_WINDOW
        return sum(
            (
                t.amount
                for t in self._transactions.values()
                if t.actor_id == actor_id and start <= t.timestamp <= as_of
            ),
            Decimal("0"),
        )

    async def received(self, counterparty_id: str, since: datetime) -> list[Transaction]:
        return sorted(
            (
                t
                for t in self._transactions.values()
                if t.counterparty_id == counterparty_id and t.timestamp >= since
            ),
            key=lambda t: t.timestamp,
        )

    async def record(
        self, transaction: Transaction, evaluation: EvaluationResult | None = None
    ) -> None:
        self._transactions[transaction.transaction_id] = transaction
        if evaluation is not None:
            self._annotations[transaction.transaction_id] = evaluation


@dataclass(frozen=True)
class HistorySnapshot:
    """Point-in-time view of the history a candidate is checked against.

    A ``None`` source means the ledger could not serve it; checks that need
    that source degrade to a warning instead of running.
    """

    as_of: datetime
    actor_history: tuple[Transaction, ...] | None = ()
    counterparty_received: tuple[Transaction, ...] | None = ()
    actor_daily_total: Decimal | None = Decimal("0")

    def actor_window(self, window: timedelta) -> list[Transaction]:
        if self.actor_history is None:
            raise HistoryUnavailable("actor history unavailable")
        start = self.as_of - window
        return [t for t in self.actor_history if start <= t.timestamp <= self.as_of]

    def counterparty_window(self, window: timedelta) -> list[Transaction]:
        if self.counterparty_received is None:
            raise HistoryUnavailable("counterparty history unavailable")
        start = self.as_of - window
        return [t for t in self.counterparty_received if start <= t.timestamp <= self.as_of]

    def daily_total(self) -> Decimal:
        if self.actor_daily_total is None:
            raise HistoryUnavailable("actor daily total unavailable")
        return self.actor_daily_total


async def load_snapshot(
    ledger: Ledger, transaction: Transaction, config: FraudConfig
) -> HistorySnapshot:
    """Read every history source a candidate needs, once.

    Sources the ledger cannot serve are left as ``None``; the candidate itself
    is never part of the snapshot. The daily total is summed from the actor
    history when it loaded, and otherwise read from the ledger with an
    already-admitted candidate taken back out.
    """
    as_of = transaction.timestamp
    txn_id = transaction.transaction_id

    admitted = False

    actor_history: tuple[Transaction, ...] | None
    try:
        rows = await ledger.history(
            transaction.actor_id, as_of - timedelta(days=config.history_lookback_days)
        )
        admitted = any(t.transaction_id == txn_id for t in rows)
        actor_history = tuple(t for t in rows if t.transaction_id != txn_id)
    except HistoryUnavailable:
        logger.warning(
            "history_unavailable",
            source="actor_history",
            actor_id=transaction.actor_id,
            transaction_id=txn_id,
        )
        actor_history = None

    counterparty_received: tuple[Transaction, ...] | None
    try:
        rows = await ledger.received(transaction.counterparty_id, as_of - DAILY_WINDOW)
        admitted = admitted or any(t.transaction_id == txn_id for t in rows)
        counterparty_received = tuple(t for t in rows if t.transaction_id != txn_id)
    except HistoryUnavailable:
        logger.warning(
            "history_unavailable",
            source="counterparty_received",
            counterparty_id=transaction.counterparty_id,
            transaction_id=txn_id,
        )
        counterparty_received = None

    daily_total: Decimal | None
    if actor_history is not None:
        start = as_of - DAILY_WINDOW
        daily_total = sum(
            (t.amount for t in actor_history if start <= t.timestamp <= as_of), Decimal("0")
        )
    else:
        try:
            daily_total = await ledger.daily_total(transaction.actor_id, as_of)
        except HistoryUnavailable:
            logger.warning(
                "history_unavailable",
                source="actor_daily_total",
                actor_id=transaction.actor_id,
                transaction_id=txn_id,
            )
            daily_total = None
        else:
            if admitted:
                daily_total -= transaction.amount

    return HistorySnapshot(
        as_of=as_of,
        actor_history=actor_history,
        counterparty_received=counterparty_received,
        actor_daily_total=daily_total,
    )
