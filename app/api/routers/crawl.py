"""
app/api/routers/crawl.py

Crawl control, record listing, CSV export and reset endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.crawl.errors import CrawlAlreadyRunningError, EmptyExportError, ResetNotConfirmedError
from app.schemas.crawl import CrawlStatusResponse, RecordListResponse
from app.services.crawl_service import CrawlService, get_crawl_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["crawl"])


@router.post("/crawl/start", response_model=CrawlStatusResponse, status_code=status.HTTP_202_ACCEPTED)
def start_crawl(
    crawl_service: CrawlService = Depends(get_crawl_service),
) -> CrawlStatusResponse:
    """
    Start a fresh traversal from the first city.
    """

    try:
        crawl_service.start()
    except CrawlAlreadyRunningError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return CrawlStatusResponse.from_view(crawl_service.status())


@router.post("/crawl/stop", response_model=CrawlStatusResponse, status_code=status.HTTP_202_ACCEPTED)
def stop_crawl(
    crawl_service: CrawlService = Depends(get_crawl_service),
) -> CrawlStatusResponse:
    """
    Request cancellation; the run stops at its next checkpoint.
    """

    crawl_service.stop()
    return CrawlStatusResponse.from_view(crawl_service.status())


@router.get("/crawl/status", response_model=CrawlStatusResponse)
def crawl_status(
    crawl_service: CrawlService = Depends(get_crawl_service),
) -> CrawlStatusResponse:
    return CrawlStatusResponse.from_view(crawl_service.status())


@router.get("/records", response_model=RecordListResponse)
def list_records(
    limit: int = Query(default=50, ge=1, le=1000, description="Newest records first."),
    crawl_service: CrawlService = Depends(get_crawl_service),
) -> RecordListResponse:
    view = crawl_service.status()
    return RecordListResponse(
        total_records=view.total_records,
        records=crawl_service.latest_records(limit),
    )


@router.get("/records/export", summary="Download all records as CSV")
def export_records(
    crawl_service: CrawlService = Depends(get_crawl_service),
) -> Response:
    try:
        export = crawl_service.export()
    except EmptyExportError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Record export failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Export failed; see server logs for details.",
        ) from exc

    logger.info("Record export rows=%d filename=%s", export.row_count, export.filename)
    return Response(
        content=export.content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{export.filename}"',
            "X-Row-Count": str(export.row_count),
        },
    )


@router.delete("/records", status_code=status.HTTP_204_NO_CONTENT)
def reset_records(
    confirm: bool = Query(default=False, description="Must be true to clear all records."),
    crawl_service: CrawlService = Depends(get_crawl_service),
) -> Response:
    """
    Clear the in-memory collection and its durable backup.
    """

    try:
        crawl_service.reset(confirm=confirm)
    except ResetNotConfirmedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except CrawlAlreadyRunningError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
