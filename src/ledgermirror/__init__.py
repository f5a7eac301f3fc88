"""Incremental mirror of a paginated transaction feed, with grouped analytics."""

from ledgermirror.core.analytics import AnalysisReport, process_analysis_data
from ledgermirror.models.transaction import TRACKED_TYPES, TransactionRecord
from ledgermirror.tools.sync.sync_tool import SyncSummary, SyncTool

__all__ = [
    "AnalysisReport",
    "SyncSummary",
    "SyncTool",
    "TRACKED_TYPES",
    "TransactionRecord",
    "process_analysis_data",
]
