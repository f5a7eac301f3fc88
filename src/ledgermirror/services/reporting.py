"""Read-side helpers over the local store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ledgermirror.adapters.db.facade import DB
from ledgermirror.core.analytics import AnalysisReport, process_analysis_data

NEVER_SYNCED = "Never"
UTC_DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


@dataclass(frozen=True)
class DatabaseOverview:
    total_transactions: int
    last_update: str
    oldest_transaction: str | None = None


def get_database_overview(db: DB) -> DatabaseOverview:
    """Summarize the store for display.

    ``last_update`` is the newest record's time as ``YYYY-MM-DD HH:MM:SS UTC``,
    or ``"Never"`` when the store is empty.
    """
    newest = db.highest_timestamp()
    oldest = db.oldest_timestamp()
    return DatabaseOverview(
        total_transactions=db.total_count(),
        last_update=newest.strftime(UTC_DISPLAY_FORMAT) if newest else NEVER_SYNCED,
        oldest_transaction=oldest.strftime(UTC_DISPLAY_FORMAT) if oldest else None,
    )


def build_period_report(
    db: DB,
    user_id: str,
    start_date: date,
    end_date: date,
) -> AnalysisReport:
    """Aggregate the records stored for an inclusive range of UTC days."""
    if end_date < start_date:
        raise ValueError(f"end date {end_date} is before start date {start_date}")
    records = db.get_transactions_for_period(start_date, end_date)
    return process_analysis_data(records, user_id)
