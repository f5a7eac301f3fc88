from __future__ import annotations

import asyncio
import concurrent.futures
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import loguru
from loguru import logger

from ledgermirror.models.transaction import TRACKED_TYPES, TransactionRecord
from ledgermirror.tools.sync.protocols import (
    ProgressNotifier,
    TransactionFeed,
    TransactionStore,
)

PAGE_SIZE = 100


@dataclass(frozen=True)
class SyncSummary:
    """Outcome of one sync run."""

    new_count: int
    total_in_db: int


@dataclass
class FilteredPage:
    """Items of a page that are newer than the watermark."""

    batch: list[TransactionRecord]
    reached_known: bool


class SyncToolLogger:
    """Handles all logging for SyncTool with business logic separated."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def sync_start(self, user_id: str, watermark: datetime | None) -> None:
        """Log start of a sync run and the local stop point."""
        label = watermark.isoformat() if watermark else "empty store"
        self._logger.bind(user_id=user_id, watermark=label).info(
            "Starting sync for user {} (local stop point: {})", user_id, label
        )

    def page_fetched(self, page_num: int, item_count: int, cursor: Any) -> None:
        """Log a fetched feed page."""
        cursor_label = "initial" if cursor is None else cursor
        self._logger.bind(page=page_num, items=item_count, cursor=cursor_label).debug(
            "Fetched page {} with {} items (cursor: {})",
            page_num,
            item_count,
            cursor_label,
        )

    def batch_persisted(self, batch_size: int, session_total: int) -> None:
        """Log a persisted batch."""
        self._logger.bind(batch=batch_size, total=session_total).info(
            "Persisted {} new transactions ({} this session)",
            batch_size,
            session_total,
        )

    def watermark_reached(self, page_num: int, discarded: int) -> None:
        """Log that already-known records were reached."""
        self._logger.bind(page=page_num, discarded=discarded).info(
            "Reached already-synced transactions on page {}, skipping {} items",
            page_num,
            discarded,
        )

    def sync_complete(self, new_count: int, total_in_db: int) -> None:
        """Log end of a sync run."""
        self._logger.bind(new=new_count, total=total_in_db).info(
            "Sync complete: {} new transactions, {} stored",
            new_count,
            total_in_db,
        )

    def sync_failed(self, error: BaseException, session_total: int) -> None:
        """Log a fatal collaborator failure before it is re-raised."""
        self._logger.bind(error=type(error).__name__, persisted=session_total).error(
            "Sync aborted after persisting {} transactions: {}",
            session_total,
            error,
        )


def filter_new_items(
    items: list[TransactionRecord],
    watermark: datetime | None,
) -> FilteredPage:
    """
    Split a page at the first item that is not newer than the watermark.

    Items are expected newest first, so everything from the first known item
    onwards is already stored. With no watermark every item is new, including
    items dated at or before the Unix epoch.
    """
    if watermark is None:
        return FilteredPage(batch=list(items), reached_known=False)

    batch: list[TransactionRecord] = []
    for item in items:
        if item.created_instant <= watermark:
            return FilteredPage(batch=batch, reached_known=True)
        batch.append(item)
    return FilteredPage(batch=batch, reached_known=False)


class SyncTool:
    """
    Incrementally mirrors the remote transaction feed into the local store.

    Only records strictly newer than the newest stored record are appended.
    The watermark is read once per run, so records appended concurrently by
    another process do not move the stop point mid-run.
    """

    def __init__(
        self,
        feed: TransactionFeed,
        store: TransactionStore,
        *,
        page_size: int = PAGE_SIZE,
        tracked_types: tuple[str, ...] = TRACKED_TYPES,
    ) -> None:
        """
        Initialize the sync tool.

        Args:
            feed: Remote feed returning pages newest first
            store: Local append-only store
            page_size: Items requested per page
            tracked_types: Transaction types requested from the feed
        """
        self._feed = feed
        self._store = store
        self._page_size = page_size
        self._tracked_types = tracked_types
        self._logger = SyncToolLogger()

    async def run_full_sync(
        self,
        user_id: str,
        notifier: ProgressNotifier | None = None,
    ) -> SyncSummary:
        """
        Pull every unseen record for a user and append it to the store.

        Args:
            user_id: Identity whose feed is mirrored
            notifier: Optional receiver of the running count of new records

        Returns:
            SyncSummary with the number of new records and the stored total

        Raises:
            Any error from the feed or the store, unchanged. Pages appended
            before the failure stay persisted.
        """
        cursor: Any = None
        synced = 0
        page_num = 0

        try:
            watermark = await self._store.read_highest_timestamp()
            self._logger.sync_start(user_id, watermark)

            while True:
                page = await self._feed.fetch_page(
                    user_id,
                    types=self._tracked_types,
                    limit=self._page_size,
                    cursor=cursor,
                )
                page_num += 1
                self._logger.page_fetched(page_num, len(page.items), cursor)

                if not page.items:
                    break

                filtered = filter_new_items(page.items, watermark)

                if filtered.batch:
                    await self._store.append_records(filtered.batch)
                    synced += len(filtered.batch)
                    self._logger.batch_persisted(len(filtered.batch), synced)
                    if notifier is not None:
                        notifier.notify(synced)

                if filtered.reached_known:
                    self._logger.watermark_reached(
                        page_num, len(page.items) - len(filtered.batch)
                    )
                    break
                if page.next_cursor is None:
                    break
                cursor = page.next_cursor

            total_in_db = await self._store.read_total_count()
        except Exception as e:
            self._logger.sync_failed(e, synced)
            raise

        self._logger.sync_complete(synced, total_in_db)
        return SyncSummary(new_count=synced, total_in_db=total_in_db)

    def sync(
        self,
        user_id: str,
        notifier: ProgressNotifier | None = None,
    ) -> SyncSummary:
        """Blocking wrapper around run_full_sync."""
        try:
            # Check if there's already an event loop running
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.run_full_sync(user_id, notifier))

        # Loop already running: execute in a separate thread
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(
                asyncio.run, self.run_full_sync(user_id, notifier)
            )
            return future.result()
