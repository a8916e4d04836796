"""
tests/test_crawl_service.py

Pytest tests for CrawlService and the crawl router.

The service is wired with the deterministic mock source, an in-memory
backup and a no-op sleep. Router tests mount the router on a bare FastAPI
app with the service dependency overridden, so no database or environment
is required.

Coverage
--------
- foreground run totals and status view
- newest-first record listing and CSV export
- reset confirmation and refusal while running
- restore from backup on load
- HTTP status mapping for start, export and reset
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator, Sequence

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers import crawl_router
from app.crawl.accumulator import RecordCollection
from app.crawl.catalog import QueryCatalog
from app.crawl.controller import CrawlController
from app.crawl.errors import CrawlAlreadyRunningError, EmptyExportError, ResetNotConfirmedError
from app.crawl.storage.base import RecordBackup
from app.domain.business_record import BusinessRecord
from app.domain.crawl import LocationHint, RunState
from app.services.crawl_service import CrawlService, get_crawl_service
from app.services.export_service import CSVExportService
from app.sources.base import BaseBusinessSource
from app.sources.mock_source import MockBusinessSource


class MemoryBackup(RecordBackup):
    def __init__(self) -> None:
        self.stored: list[BusinessRecord] = []

    def load(self) -> list[BusinessRecord]:
        return list(self.stored)

    def save(self, records: Sequence[BusinessRecord]) -> None:
        self.stored = list(records)

    def clear(self) -> None:
        self.stored = []


class BlockingSource(BaseBusinessSource):
    """
    Holds the first query open until released so a run stays active.
    """

    name = "blocking"

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch(
        self,
        city: str,
        zone: str,
        category: str,
        location_hint: LocationHint | None = None,
    ) -> list[BusinessRecord]:
        self.entered.set()
        self.release.wait(timeout=5)
        return []


def _service(
    source: BaseBusinessSource | None = None,
    *,
    backup: RecordBackup | None = None,
    cities: Sequence[str] = ("Ankara", "İzmir"),
) -> CrawlService:
    collection = RecordCollection(backup=backup)
    controller = CrawlController(
        source=source or MockBusinessSource(records_per_query=2),
        collection=collection,
        catalog=QueryCatalog.build(cities=cities, categories=("Dentist",)),
        success_delay_seconds=0,
        quota_cooldown_seconds=0,
        sleep=lambda seconds: None,
    )
    return CrawlService(
        controller=controller,
        collection=collection,
        exporter=CSVExportService(filename_prefix="business_records"),
    )


def _wait_until_idle(service: CrawlService) -> None:
    for _ in range(500):
        if not service.is_running:
            return
        time.sleep(0.01)
    raise AssertionError("crawl did not finish")


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TestCrawlService:
    def test_run_collects_every_tuple(self) -> None:
        service = _service()

        summary = service.run()
        view = service.status()

        assert summary.state == RunState.IDLE
        assert summary.records_added == 8
        assert view.total_records == 8
        assert view.total_tuples == 4
        assert view.snapshot is not None
        assert (view.snapshot.current_city, view.snapshot.current_zone) == ("İzmir", "Districts")
        assert view.last_run == summary

    def test_second_run_adds_nothing(self) -> None:
        service = _service()
        service.run()

        summary = service.run()

        assert summary.records_added == 0
        assert service.status().total_records == 8

    def test_latest_records_are_newest_first(self) -> None:
        service = _service()
        service.run()

        latest = service.latest_records(limit=2)

        assert [r.name for r in latest] == [
            "İzmir Dentist Districts #2",
            "İzmir Dentist Districts #1",
        ]

    def test_export_covers_whole_collection(self) -> None:
        service = _service()
        service.run()

        export = service.export()

        assert export.filename == "business_records_8_rows.csv"
        assert export.row_count == 8

    def test_export_before_any_run_is_rejected(self) -> None:
        with pytest.raises(EmptyExportError):
            _service().export()

    def test_reset_requires_confirmation(self) -> None:
        service = _service()
        service.run()

        with pytest.raises(ResetNotConfirmedError):
            service.reset(confirm=False)
        assert service.status().total_records == 8

    def test_reset_clears_collection_and_backup(self) -> None:
        backup = MemoryBackup()
        service = _service(backup=backup)
        service.run()

        service.reset(confirm=True)

        assert service.status().total_records == 0
        assert backup.stored == []

    def test_load_restores_previous_session(self) -> None:
        backup = MemoryBackup()
        _service(backup=backup).run()

        restarted = _service(backup=backup)

        assert restarted.load() == 8
        assert restarted.status().total_records == 8

    def test_reset_refused_while_running(self) -> None:
        source = BlockingSource()
        service = _service(source)
        service.start()
        assert source.entered.wait(timeout=5)

        try:
            with pytest.raises(CrawlAlreadyRunningError):
                service.reset(confirm=True)
            with pytest.raises(CrawlAlreadyRunningError):
                service.start()
        finally:
            service.stop()
            source.release.set()
            _wait_until_idle(service)

        assert service.status().status.state == RunState.STOPPED


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


@pytest.fixture()
def service() -> CrawlService:
    return _service()


@pytest.fixture()
def client(service: CrawlService) -> Iterator[TestClient]:
    application = FastAPI()
    application.include_router(crawl_router)
    application.dependency_overrides[get_crawl_service] = lambda: service
    with TestClient(application) as test_client:
        yield test_client


class TestCrawlRouter:
    def test_status_when_idle(self, client: TestClient) -> None:
        response = client.get("/crawl/status")

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "idle"
        assert body["total_records"] == 0
        assert body["total_tuples"] == 4
        assert body["progress"] is None

    def test_records_listing(self, client: TestClient, service: CrawlService) -> None:
        service.run()

        response = client.get("/records", params={"limit": 3})

        assert response.status_code == 200
        body = response.json()
        assert body["total_records"] == 8
        assert len(body["records"]) == 3

    def test_export_download(self, client: TestClient, service: CrawlService) -> None:
        service.run()

        response = client.get("/records/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="business_records_8_rows.csv"' in response.headers["content-disposition"]
        assert response.content.startswith(b"\xef\xbb\xbf")

    def test_export_empty_is_conflict(self, client: TestClient) -> None:
        assert client.get("/records/export").status_code == 409

    def test_reset_without_confirm_is_bad_request(self, client: TestClient, service: CrawlService) -> None:
        service.run()

        assert client.delete("/records").status_code == 400
        assert service.status().total_records == 8

    def test_reset_with_confirm(self, client: TestClient, service: CrawlService) -> None:
        service.run()

        response = client.delete("/records", params={"confirm": "true"})

        assert response.status_code == 204
        assert service.status().total_records == 0

    def test_start_twice_conflicts(self) -> None:
        source = BlockingSource()
        blocking_service = _service(source)
        application = FastAPI()
        application.include_router(crawl_router)
        application.dependency_overrides[get_crawl_service] = lambda: blocking_service

        with TestClient(application) as test_client:
            first = test_client.post("/crawl/start")
            assert source.entered.wait(timeout=5)
            second = test_client.post("/crawl/start")
            stop = test_client.post("/crawl/stop")
            source.release.set()
            _wait_until_idle(blocking_service)

        assert first.status_code == 202
        assert first.json()["state"] == "running"
        assert second.status_code == 409
        assert stop.status_code == 202
        assert blocking_service.status().status.state == RunState.STOPPED
