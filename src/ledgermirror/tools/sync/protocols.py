"""Collaborator protocols consumed by the sync controller."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from ledgermirror.models.transaction import FeedPage, TransactionRecord


@runtime_checkable
class TransactionFeed(Protocol):
    """Remote, cursor-paginated transaction feed.

    Items within a page must be ordered by ``created_at`` descending. The sync
    controller stops at the first item it already knows and relies on this
    order to skip the rest of the page. A ``next_cursor`` of None ends the feed.
    """

    async def fetch_page(
        self,
        user_id: str,
        *,
        types: Sequence[str],
        limit: int,
        cursor: Any,
    ) -> FeedPage: ...


@runtime_checkable
class TransactionStore(Protocol):
    """Append-only local store of mirrored records."""

    async def append_records(self, records: Sequence[TransactionRecord]) -> int: ...

    async def read_highest_timestamp(self) -> datetime | None: ...

    async def read_total_count(self) -> int: ...


@runtime_checkable
class ProgressNotifier(Protocol):
    """Receives the running count of records persisted during a sync."""

    def notify(self, session_count: int) -> None: ...
