"""
app/services/crawl_service.py

User-facing crawl controls: start, stop, status, records, export and reset.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

from app.config import get_crawl_settings, get_record_storage_settings, get_source_settings
from app.crawl.accumulator import RecordCollection
from app.crawl.catalog import QueryCatalog
from app.crawl.controller import CrawlController
from app.crawl.errors import CrawlAlreadyRunningError, ResetNotConfirmedError
from app.crawl.logging_utils import log_event
from app.crawl.progress import LoggingProgressReporter
from app.crawl.storage import SQLAlchemyRecordBackup
from app.domain.business_record import BusinessRecord
from app.domain.crawl import CrawlRunSummary, ProgressSnapshot, RunStatus
from app.services.export_service import CSVExport, CSVExportService
from app.sources import build_source
from db.session import SessionLocal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrawlStatusView:
    """
    Point-in-time view of the controller for observers.
    """

    status: RunStatus
    snapshot: ProgressSnapshot | None
    total_records: int
    total_tuples: int
    last_run: CrawlRunSummary | None


class CrawlService:
    """
    Owns the record collection and the controller that feeds it.
    """

    def __init__(
        self,
        *,
        controller: CrawlController,
        collection: RecordCollection,
        exporter: CSVExportService,
    ) -> None:
        self._controller = controller
        self._collection = collection
        self._exporter = exporter

    @property
    def is_running(self) -> bool:
        return self._controller.is_running

    def load(self) -> int:
        """
        Restore the collection from the durable backup.
        """

        return self._collection.load()

    def start(self) -> None:
        """
        Begin a fresh traversal in the background.
        """

        self._controller.start_in_background()

    def run(self) -> CrawlRunSummary:
        """
        Run a full traversal in the calling thread.
        """

        return self._controller.start()

    def stop(self) -> None:
        self._controller.stop()

    def status(self) -> CrawlStatusView:
        return CrawlStatusView(
            status=self._controller.status,
            snapshot=self._controller.last_snapshot,
            total_records=self._collection.count,
            total_tuples=self._controller.catalog.size,
            last_run=self._controller.last_summary,
        )

    def latest_records(self, limit: int = 50) -> list[BusinessRecord]:
        return self._collection.latest(limit)

    def export(self) -> CSVExport:
        return self._exporter.export(self._collection.records)

    def reset(self, *, confirm: bool) -> None:
        """
        Clear memory and durable backup. Requires explicit confirmation.
        """

        if not confirm:
            raise ResetNotConfirmedError("Reset requires explicit confirmation.")
        if self._controller.is_running:
            raise CrawlAlreadyRunningError("Stop the running crawl before resetting records.")
        cleared = self._collection.count
        self._collection.reset()
        log_event(logger, logging.WARNING, "record_collection_reset", cleared_records=cleared)


def build_crawl_service(
    *,
    cities: Sequence[str] | None = None,
    categories: Sequence[str] | None = None,
) -> CrawlService:
    """
    Wire the service from environment settings; explicit lists override them.
    """

    source_settings = get_source_settings()
    crawl_settings = get_crawl_settings()
    storage_settings = get_record_storage_settings()

    collection = RecordCollection(
        backup=SQLAlchemyRecordBackup(
            session_factory=SessionLocal,
            slot_name=storage_settings.backup_slot,
        )
    )
    controller = CrawlController(
        source=build_source(source_settings),
        collection=collection,
        catalog=QueryCatalog.build(
            cities=cities or crawl_settings.cities,
            categories=categories or crawl_settings.categories,
        ),
        reporter=LoggingProgressReporter(),
        success_delay_seconds=crawl_settings.success_delay_seconds,
        quota_cooldown_seconds=crawl_settings.quota_cooldown_seconds,
        location_hint=crawl_settings.location_hint,
    )
    return CrawlService(
        controller=controller,
        collection=collection,
        exporter=CSVExportService(filename_prefix=storage_settings.export_filename_prefix),
    )


@lru_cache(maxsize=1)
def get_crawl_service() -> CrawlService:
    """
    Build and cache the process-wide crawl service.
    """

    return build_crawl_service()
