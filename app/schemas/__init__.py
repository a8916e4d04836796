"""
app/schemas package marker.
"""

from app.schemas.crawl import (
    CrawlRunSummaryResponse,
    CrawlStatusResponse,
    ProgressSnapshotResponse,
    RecordListResponse,
)

__all__ = [
    "CrawlRunSummaryResponse",
    "CrawlStatusResponse",
    "ProgressSnapshotResponse",
    "RecordListResponse",
]
