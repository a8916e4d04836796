"""
app/schemas/crawl.py

Response schemas for crawl controls and collected records.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.domain.business_record import BusinessRecord
from app.services.crawl_service import CrawlStatusView


class ProgressSnapshotResponse(BaseModel):
    current_city: str
    current_zone: str
    current_category: str
    total_found_so_far: int = Field(..., ge=0)


class CrawlRunSummaryResponse(BaseModel):
    state: str
    tuples_completed: int = Field(..., ge=0)
    adapter_calls: int = Field(..., ge=0)
    records_added: int = Field(..., ge=0)
    total_records: int = Field(..., ge=0)
    error: str | None = None


class CrawlStatusResponse(BaseModel):
    """
    API response model for the current crawl state.
    """

    state: str
    seconds_remaining: int | None = None
    message: str | None = None
    progress: ProgressSnapshotResponse | None = None
    total_records: int = Field(..., ge=0)
    total_tuples: int = Field(..., ge=0)
    last_run: CrawlRunSummaryResponse | None = None

    @classmethod
    def from_view(cls, view: CrawlStatusView) -> "CrawlStatusResponse":
        snapshot = view.snapshot
        last_run = view.last_run
        return cls(
            state=view.status.state,
            seconds_remaining=view.status.seconds_remaining,
            message=view.status.message,
            progress=(
                ProgressSnapshotResponse(
                    current_city=snapshot.current_city,
                    current_zone=snapshot.current_zone,
                    current_category=snapshot.current_category,
                    total_found_so_far=snapshot.total_found_so_far,
                )
                if snapshot is not None
                else None
            ),
            total_records=view.total_records,
            total_tuples=view.total_tuples,
            last_run=(
                CrawlRunSummaryResponse(
                    state=last_run.state,
                    tuples_completed=last_run.tuples_completed,
                    adapter_calls=last_run.adapter_calls,
                    records_added=last_run.records_added,
                    total_records=last_run.total_records,
                    error=last_run.error,
                )
                if last_run is not None
                else None
            ),
        )


class RecordListResponse(BaseModel):
    total_records: int = Field(..., ge=0)
    records: list[BusinessRecord] = Field(default_factory=list)
