"""
app/domain package exports.
"""

from app.domain.business_record import BusinessRecord, new_record_id
from app.domain.crawl import (
    CrawlRunSummary,
    LocationHint,
    ProgressSnapshot,
    QueryTuple,
    RunState,
    RunStatus,
    TupleState,
)

__all__ = [
    "BusinessRecord",
    "CrawlRunSummary",
    "LocationHint",
    "ProgressSnapshot",
    "QueryTuple",
    "RunState",
    "RunStatus",
    "TupleState",
    "new_record_id",
]
