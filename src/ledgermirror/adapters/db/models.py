from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, TIMESTAMP, Float, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ledgermirror.models.transaction import TransactionRecord


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class StoredTransaction(Base):
    """Mirrored feed transaction. Rows are only ever inserted."""

    __tablename__ = "transactions"
    __table_args__ = (Index("ix_transactions_created_at", "created_at"),)

    id: Mapped[str] = mapped_column(String, primary_key=True)
    # Naive UTC; SQLite drops tzinfo
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String, nullable=False)
    buyer_id: Mapped[str | None] = mapped_column(String, nullable=True)
    seller_id: Mapped[str | None] = mapped_column(String, nullable=True)
    money: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    item_code: Mapped[str | None] = mapped_column(String, nullable=True)
    raw: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    @classmethod
    def from_record(cls, record: TransactionRecord) -> StoredTransaction:
        return cls(
            id=record.id,
            created_at=to_naive_utc(record.created_instant),
            transaction_type=record.transaction_type,
            buyer_id=record.buyer_id,
            seller_id=record.seller_id,
            money=record.money,
            quantity=record.quantity,
            item_code=record.item_code,
            raw=record.to_wire(),
        )

    def to_record(self) -> TransactionRecord:
        return TransactionRecord.from_wire(self.raw)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def from_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
