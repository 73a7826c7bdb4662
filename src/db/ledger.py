"""SQLAlchemy-backed transaction ledger."""

from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.db.models import LedgerTransaction
from src.domains.fraud.errors import HistoryUnavailable
from src.domains.fraud.ledger import DAILY_WINDOW
from src.domains.fraud.models import ActorType, EvaluationResult, Transaction

logger = structlog.get_logger()


def _to_transaction(row: LedgerTransaction) -> Transaction:
    return Transaction(
        transaction_id=row.transaction_id,
        actor_id=row.actor_id,
        actor_type=ActorType(row.actor_type),
        counterparty_id=row.counterparty_id,
        amount=Decimal(row.amount),
        category=row.category,
        timestamp=row.timestamp,
        tx_hash=row.tx_hash,
    )


class SqlLedger:
    """Ledger over the ``ledger_transactions`` table.

    Database failures surface as ``HistoryUnavailable`` so the evaluation
    degrades instead of failing. Recording an id that is already present is
    a no-op.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def history(self, actor_id: str, since: datetime) -> list[Transaction]:
        stmt = (
            select(LedgerTransaction)
            .where(
                LedgerTransaction.actor_id == actor_id,
                LedgerTransaction.timestamp >= since,
            )
            .order_by(LedgerTransaction.timestamp)
        )
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            logger.warning("ledger_read_failed", query="history", actor_id=actor_id)
            raise HistoryUnavailable(f"history for {actor_id} unavailable") from exc
        return [_to_transaction(r) for r in rows]

    async def daily_total(self, actor_id: str, as_of: datetime) -> Decimal:
        stmt = select(func.coalesce(func.sum(LedgerTransaction.amount), 0)).where(
            LedgerTransaction.actor_id == actor_id,
            LedgerTransaction.timestamp >= as_of - DAILY_WINDOW,
            LedgerTransaction.timestamp <= as_of,
        )
        try:
            async with self._session_factory() as session:
                total = (await session.execute(stmt)).scalar_one()
        except SQLAlchemyError as exc:
            logger.warning("ledger_read_failed", query="daily_total", actor_id=actor_id)
            raise HistoryUnavailable(f"daily total for {actor_id} unavailable") from exc
        return Decimal(total)

    async def received(self, counterparty_id: str, since: datetime) -> list[Transaction]:
        stmt = (
            select(LedgerTransaction)
            .where(
                LedgerTransaction.counterparty_id == counterparty_id,
                LedgerTransaction.timestamp >= since,
            )
            .order_by(LedgerTransaction.timestamp)
        )
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            logger.warning(
                "ledger_read_failed", query="received", counterparty_id=counterparty_id
            )
            raise HistoryUnavailable(f"received for {counterparty_id} unavailable") from exc
        return [_to_transaction(r) for r in rows]

    async def record(
        self, transaction: Transaction, evaluation: EvaluationResult | None = None
    ) -> None:
        row = LedgerTransaction(
            transaction_id=transaction.transaction_id,
            actor_id=transaction.actor_id,
            actor_type=transaction.actor_type.value,
            counterparty_id=transaction.counterparty_id,
            amount=transaction.amount,
            category=transaction.category,
            timestamp=transaction.timestamp,
            tx_hash=transaction.tx_hash,
        )
        if evaluation is not None:
            row.risk_level = evaluation.risk_level.value
            row.action = evaluation.recommendation.action.value
            row.flags = [f.model_dump(mode="json") for f in evaluation.flags]
            row.degraded = evaluation.degraded

        try:
            async with self._session_factory() as session:
                session.add(row)
                await session.commit()
        except IntegrityError:
            logger.info(
                "ledger_transaction_already_recorded", transaction_id=transaction.transaction_id
            )
            return
        except SQLAlchemyError as exc:
            logger.warning("ledger_write_failed", transaction_id=transaction.transaction_id)
            raise HistoryUnavailable(
                f"ledger write for {transaction.transaction_id} failed"
            ) from exc
        logger.debug("ledger_transaction_recorded", transaction_id=transaction.transaction_id)
