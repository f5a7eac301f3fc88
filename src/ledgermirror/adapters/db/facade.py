from __future__ import annotations

import asyncio
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledgermirror.adapters.db.models import (
    Base,
    StoredTransaction,
    from_naive_utc,
)
from ledgermirror.models.transaction import TransactionRecord


class PersistenceError(Exception):
    """Raised when the local store cannot be read or written."""


def _engine_kwargs(url: str) -> dict[str, Any]:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees an empty database
        kwargs["poolclass"] = StaticPool
    return kwargs


class DB:
    """Local transaction store backed by SQLAlchemy.

    Synchronous helpers hold the SQL. The async methods satisfy the
    TransactionStore protocol used by the sync controller and run the
    helpers in a worker thread.
    """

    def __init__(self, url: str) -> None:
        """Initialize database connection.

        Args:
            url: Database URL (e.g., "sqlite:///ledgermirror.db")
        """
        self._engine = create_engine(url, echo=False, **_engine_kwargs(url))
        self._session_factory = sessionmaker(bind=self._engine, class_=Session)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager for database sessions.

        Raises:
            PersistenceError: Wrapping any SQLAlchemy failure
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database operation failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        """Create all tables if they do not exist."""
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to create schema: {e}") from e

    # Synchronous API ---------------------------------------------------------

    def save_records(self, records: Sequence[TransactionRecord]) -> int:
        """Insert records in a single transaction.

        Ids already stored, or repeated within ``records``, are skipped.

        Args:
            records: Records to append

        Returns:
            Number of rows inserted
        """
        if not records:
            return 0

        with self.session() as session:  # type: Session
            ids = [record.id for record in records]
            existing = set(
                session.scalars(
                    select(StoredTransaction.id).where(StoredTransaction.id.in_(ids))
                )
            )
            inserted = 0
            for record in records:
                if record.id in existing:
                    continue
                session.add(StoredTransaction.from_record(record))
                existing.add(record.id)
                inserted += 1
            return inserted

    def highest_timestamp(self) -> datetime | None:
        """Return the creation time of the newest stored record."""
        with self.session() as session:  # type: Session
            value = session.scalar(select(func.max(StoredTransaction.created_at)))
            return from_naive_utc(value) if value is not None else None

    def oldest_timestamp(self) -> datetime | None:
        """Return the creation time of the oldest stored record."""
        with self.session() as session:  # type: Session
            value = session.scalar(select(func.min(StoredTransaction.created_at)))
            return from_naive_utc(value) if value is not None else None

    def total_count(self) -> int:
        with self.session() as session:  # type: Session
            return int(
                session.scalar(select(func.count()).select_from(StoredTransaction))
                or 0
            )

    def get_transactions_for_period(
        self,
        start_date: date,
        end_date: date,
    ) -> list[TransactionRecord]:
        """Fetch records created between two UTC calendar days, inclusive.

        Args:
            start_date: First day (from 00:00:00 UTC)
            end_date: Last day (through 23:59:59.999999 UTC)

        Returns:
            Records ordered by creation time ascending
        """
        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_date + timedelta(days=1), time.min)
        with self.session() as session:  # type: Session
            rows = session.scalars(
                select(StoredTransaction)
                .where(StoredTransaction.created_at >= start)
                .where(StoredTransaction.created_at < end)
                .order_by(StoredTransaction.created_at, StoredTransaction.id)
            ).all()
            return [row.to_record() for row in rows]

    # TransactionStore protocol -----------------------------------------------

    async def append_records(self, records: Sequence[TransactionRecord]) -> int:
        return await asyncio.to_thread(self.save_records, list(records))

    async def read_highest_timestamp(self) -> datetime | None:
        return await asyncio.to_thread(self.highest_timestamp)

    async def read_total_count(self) -> int:
        return await asyncio.to_thread(self.total_count)
