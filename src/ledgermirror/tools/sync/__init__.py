"""Sync tools package."""

from ledgermirror.tools.sync.protocols import (
    ProgressNotifier,
    TransactionFeed,
    TransactionStore,
)
from ledgermirror.tools.sync.sync_tool import (
    PAGE_SIZE,
    SyncSummary,
    SyncTool,
    filter_new_items,
)

__all__ = [
    # Sync tool
    "SyncTool",
    "SyncSummary",
    "PAGE_SIZE",
    "filter_new_items",
    # Collaborator protocols
    "TransactionFeed",
    "TransactionStore",
    "ProgressNotifier",
]
