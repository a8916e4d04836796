"""
Sequential crawl controller.

Walks every (city, zone, category) tuple in catalog order, one query in
flight at a time. Quota failures cool down and retry the same tuple with no
retry ceiling; any other source failure halts the run. Cancellation is a
polled flag checked at each loop head, each retry iteration and each
cooldown tick; an in-flight query or sleep always completes first.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from app.crawl.accumulator import RecordCollection
from app.crawl.catalog import QueryCatalog
from app.crawl.errors import AdapterError, CrawlAlreadyRunningError, QuotaExceededError
from app.crawl.logging_utils import log_event
from app.crawl.progress import NullProgressReporter, ProgressReporter
from app.domain.crawl import (
    CrawlRunSummary,
    LocationHint,
    ProgressSnapshot,
    QueryTuple,
    RunState,
    RunStatus,
    TupleState,
)
from app.sources.base import BaseBusinessSource

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_DELAY_SECONDS = 3.0
DEFAULT_QUOTA_COOLDOWN_SECONDS = 60


@dataclass
class _RunCounters:
    tuples_completed: int = 0
    adapter_calls: int = 0
    records_added: int = 0
    error: str | None = None


class CrawlController:
    """
    Drives one traversal at a time over the query catalog.
    """

    def __init__(
        self,
        *,
        source: BaseBusinessSource,
        collection: RecordCollection,
        catalog: QueryCatalog,
        reporter: ProgressReporter | None = None,
        success_delay_seconds: float = DEFAULT_SUCCESS_DELAY_SECONDS,
        quota_cooldown_seconds: int = DEFAULT_QUOTA_COOLDOWN_SECONDS,
        location_hint: LocationHint | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._source = source
        self._collection = collection
        self._catalog = catalog
        self._reporter = reporter or NullProgressReporter()
        self._success_delay_seconds = max(0.0, success_delay_seconds)
        self._quota_cooldown_seconds = max(0, int(quota_cooldown_seconds))
        self._location_hint = location_hint
        self._sleep = sleep

        self._stop_requested = threading.Event()
        self._run_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._status = RunStatus.idle()
        self._last_snapshot: ProgressSnapshot | None = None
        self._last_summary: CrawlRunSummary | None = None

    @property
    def status(self) -> RunStatus:
        with self._state_lock:
            return self._status

    @property
    def last_snapshot(self) -> ProgressSnapshot | None:
        with self._state_lock:
            return self._last_snapshot

    @property
    def last_summary(self) -> CrawlRunSummary | None:
        with self._state_lock:
            return self._last_summary

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def catalog(self) -> QueryCatalog:
        return self._catalog

    def start(self) -> CrawlRunSummary:
        """
        Run a full traversal from the first city in the calling thread.
        """

        self._begin()
        try:
            return self._traverse()
        finally:
            self._run_lock.release()

    def start_in_background(self) -> threading.Thread:
        """
        Claim the run synchronously, then traverse on a daemon thread.
        """

        self._begin()
        thread = threading.Thread(target=self._traverse_and_release, name="crawl-controller", daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        """
        Request cooperative cancellation; honoured at the next checkpoint.
        """

        if not self.is_running:
            return
        self._stop_requested.set()
        log_event(logger, logging.INFO, "crawl_stop_requested")

    def _begin(self) -> None:
        if not self._run_lock.acquire(blocking=False):
            raise CrawlAlreadyRunningError("A crawl run is already in progress.")
        self._stop_requested.clear()
        with self._state_lock:
            self._last_snapshot = None
        self._set_status(RunStatus.running())

    def _traverse_and_release(self) -> None:
        try:
            self._traverse()
        finally:
            self._run_lock.release()

    def _traverse(self) -> CrawlRunSummary:
        counters = _RunCounters()
        log_event(
            logger,
            logging.INFO,
            "crawl_started",
            tuples=self._catalog.size,
            total_records=self._collection.count,
        )
        try:
            return self._walk(counters)
        except Exception as exc:
            counters.error = f"{type(exc).__name__}: {exc}"
            log_event(
                logger,
                logging.ERROR,
                "crawl_crashed",
                error=str(exc),
                error_type=type(exc).__name__,
                tuples_completed=counters.tuples_completed,
            )
            return self._finish(RunStatus.failed(counters.error), counters)

    def _walk(self, counters: _RunCounters) -> CrawlRunSummary:
        for city in self._catalog.cities:
            if self._cancel_requested():
                break
            for zone in self._catalog.zones:
                if self._cancel_requested():
                    break
                for category in self._catalog.categories:
                    if self._cancel_requested():
                        break
                    query = QueryTuple(city=city, zone=zone, category=category)
                    self._publish_snapshot(query)
                    outcome = self._run_tuple(query, counters)
                    if outcome == TupleState.FATAL_ERROR:
                        return self._finish(RunStatus.failed(counters.error or "Unknown source error."), counters)
                    if outcome == TupleState.SUCCEEDED:
                        counters.tuples_completed += 1

        if self._cancel_requested():
            return self._finish(RunStatus.stopped(), counters)
        return self._finish(RunStatus.idle(), counters)

    def _run_tuple(self, query: QueryTuple, counters: _RunCounters) -> str:
        state = TupleState.QUERYING
        while state in (TupleState.QUERYING, TupleState.COOLING_DOWN):
            if self._cancel_requested():
                state = TupleState.ABANDONED
            elif state == TupleState.COOLING_DOWN:
                self._cool_down()
                state = TupleState.QUERYING
            else:
                state = self._attempt(query, counters)
        return state

    def _attempt(self, query: QueryTuple, counters: _RunCounters) -> str:
        counters.adapter_calls += 1
        try:
            records = self._source.fetch(
                query.city,
                query.zone,
                query.category,
                self._location_hint,
            )
        except QuotaExceededError as exc:
            log_event(
                logger,
                logging.WARNING,
                "crawl_quota_exceeded",
                city=query.city,
                zone=query.zone,
                category=query.category,
                cooldown_seconds=self._quota_cooldown_seconds,
                error=str(exc),
            )
            return TupleState.COOLING_DOWN
        except AdapterError as exc:
            counters.error = str(exc)
            self._log_fatal(query, exc)
            return TupleState.FATAL_ERROR
        except Exception as exc:
            counters.error = f"{type(exc).__name__}: {exc}"
            self._log_fatal(query, exc)
            return TupleState.FATAL_ERROR

        added = self._collection.merge(records)
        counters.records_added += added
        total = self._collection.count
        self._reporter.on_total(total)
        log_event(
            logger,
            logging.INFO,
            "crawl_tuple_completed",
            city=query.city,
            zone=query.zone,
            category=query.category,
            fetched=len(records),
            added=added,
            total_records=total,
        )
        self._sleep(self._success_delay_seconds)
        return TupleState.SUCCEEDED

    def _cool_down(self) -> None:
        for remaining in range(self._quota_cooldown_seconds, 0, -1):
            if self._cancel_requested():
                break
            self._set_status(RunStatus.waiting_on_quota(remaining))
            self._sleep(1)
        self._set_status(RunStatus.running())

    def _publish_snapshot(self, query: QueryTuple) -> None:
        snapshot = ProgressSnapshot(
            current_city=query.city,
            current_zone=query.zone,
            current_category=query.category,
            total_found_so_far=self._collection.count,
        )
        with self._state_lock:
            self._last_snapshot = snapshot
        self._reporter.on_snapshot(snapshot)

    def _set_status(self, status: RunStatus) -> None:
        with self._state_lock:
            self._status = status
        self._reporter.on_status(status)

    def _cancel_requested(self) -> bool:
        return self._stop_requested.is_set()

    def _finish(self, status: RunStatus, counters: _RunCounters) -> CrawlRunSummary:
        summary = CrawlRunSummary(
            state=status.state,
            tuples_completed=counters.tuples_completed,
            adapter_calls=counters.adapter_calls,
            records_added=counters.records_added,
            total_records=self._collection.count,
            error=counters.error if status.state == RunState.FAILED else None,
        )
        with self._state_lock:
            self._last_summary = summary
        self._set_status(status)
        log_event(
            logger,
            logging.ERROR if status.state == RunState.FAILED else logging.INFO,
            "crawl_finished",
            state=summary.state,
            tuples_completed=summary.tuples_completed,
            adapter_calls=summary.adapter_calls,
            records_added=summary.records_added,
            total_records=summary.total_records,
            error=summary.error,
        )
        return summary

    @staticmethod
    def _log_fatal(query: QueryTuple, exc: Exception) -> None:
        log_event(
            logger,
            logging.ERROR,
            "crawl_source_failed",
            city=query.city,
            zone=query.zone,
            category=query.category,
            error=str(exc),
            error_type=type(exc).__name__,
        )
