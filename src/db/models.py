"""SQLAlchemy ORM models for the relief fraud engine."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Numeric, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class LedgerTransaction(Base):
    """A transaction admitted to the ledger, with its risk annotation."""

    __tablename__ = "ledger_transactions"
    __table_args__ = (
        Index("ix_ledger_actor_ts", "actor_id", "timestamp"),
        Index("ix_ledger_counterparty_ts", "counterparty_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    transaction_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    actor_id: Mapped[str] = mapped_column(String)
    actor_type: Mapped[str] = mapped_column(String, default="beneficiary")
    counterparty_id: Mapped[str] = mapped_column(String)
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 6))
    category: Mapped[str] = mapped_column(String, default="general")
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    tx_hash: Mapped[str | None] = mapped_column(String, nullable=True)

    risk_level: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    action: Mapped[str | None] = mapped_column(String, nullable=True)
    flags: Mapped[list] = mapped_column(JSONB, default=list)
    degraded: Mapped[bool] = mapped_column(Boolean, default=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
