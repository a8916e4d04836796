"""
tests/test_crawl_controller.py

Pytest unit tests for CrawlController.

All tests drive the controller synchronously with a scripted source and a
recording sleep, so no real time passes.

Coverage
--------
- catalog order over city, zone and category
- quota cooldown retries the same tuple with a per-second countdown
- non-quota failures halt the run
- cancellation during a countdown, between tuples and before start
- unconditional success delay
- single-flight guard
- snapshots once per tuple, totals after each merge
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from app.crawl.accumulator import RecordCollection
from app.crawl.catalog import QueryCatalog, iter_query_tuples
from app.crawl.controller import CrawlController
from app.crawl.errors import AdapterError, CrawlAlreadyRunningError, QuotaExceededError
from app.crawl.progress import ProgressReporter
from app.domain.business_record import BusinessRecord
from app.domain.crawl import LocationHint, ProgressSnapshot, QueryTuple, RunState, RunStatus
from app.sources.base import BaseBusinessSource

Outcome = list[BusinessRecord] | Exception


def _record(name: str, query: QueryTuple) -> BusinessRecord:
    return BusinessRecord(
        name=name,
        city=query.city,
        district=query.zone,
        category=query.category,
    )


class ScriptedSource(BaseBusinessSource):
    """
    Returns scripted outcomes per tuple in call order; unscripted calls return [].
    """

    name = "scripted"

    def __init__(self, script: dict[QueryTuple, list[Outcome]] | None = None) -> None:
        self._script = {key: list(value) for key, value in (script or {}).items()}
        self.calls: list[QueryTuple] = []
        self.hints: list[LocationHint | None] = []
        self.on_fetch: Callable[[QueryTuple], None] | None = None

    def fetch(
        self,
        city: str,
        zone: str,
        category: str,
        location_hint: LocationHint | None = None,
    ) -> list[BusinessRecord]:
        query = QueryTuple(city=city, zone=zone, category=category)
        self.calls.append(query)
        self.hints.append(location_hint)
        if self.on_fetch is not None:
            self.on_fetch(query)
        outcomes = self._script.get(query)
        outcome: Outcome = outcomes.pop(0) if outcomes else []
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


class RecordingReporter(ProgressReporter):
    def __init__(self) -> None:
        self.snapshots: list[ProgressSnapshot] = []
        self.totals: list[int] = []
        self.statuses: list[RunStatus] = []

    def on_snapshot(self, snapshot: ProgressSnapshot) -> None:
        self.snapshots.append(snapshot)

    def on_total(self, total: int) -> None:
        self.totals.append(total)

    def on_status(self, status: RunStatus) -> None:
        self.statuses.append(status)


class ExplodingTotalsReporter(RecordingReporter):
    def on_total(self, total: int) -> None:
        raise RuntimeError("dashboard offline")


def _controller(
    source: ScriptedSource,
    *,
    cities: Sequence[str] = ("A",),
    categories: Sequence[str] = ("X",),
    reporter: ProgressReporter | None = None,
    sleep: Callable[[float], None] | None = None,
    cooldown: int = 3,
    collection: RecordCollection | None = None,
    location_hint: LocationHint | None = None,
) -> CrawlController:
    return CrawlController(
        source=source,
        collection=collection or RecordCollection(),
        catalog=QueryCatalog.build(cities=cities, categories=categories),
        reporter=reporter,
        success_delay_seconds=3.0,
        quota_cooldown_seconds=cooldown,
        location_hint=location_hint,
        sleep=sleep or (lambda seconds: None),
    )


A_CENTER = QueryTuple("A", "Center", "X")
A_DISTRICTS = QueryTuple("A", "Districts", "X")


# ---------------------------------------------------------------------------
# Traversal order
# ---------------------------------------------------------------------------


class TestTraversalOrder:
    def test_visits_every_tuple_city_major(self) -> None:
        source = ScriptedSource()
        controller = _controller(source, cities=("A", "B"))

        summary = controller.start()

        assert source.calls == [
            QueryTuple("A", "Center", "X"),
            QueryTuple("A", "Districts", "X"),
            QueryTuple("B", "Center", "X"),
            QueryTuple("B", "Districts", "X"),
        ]
        assert controller.status == RunStatus.idle()
        assert summary.state == RunState.IDLE
        assert summary.tuples_completed == 4
        assert summary.adapter_calls == 4

    def test_catalog_iteration_matches_controller_order(self) -> None:
        source = ScriptedSource()
        catalog_cities = ("A", "B")
        categories = ("X", "Y")
        controller = _controller(source, cities=catalog_cities, categories=categories)

        controller.start()

        expected = list(iter_query_tuples(catalog_cities, ("Center", "Districts"), categories))
        assert source.calls == expected
        assert len(expected) == controller.catalog.size

    def test_location_hint_is_forwarded(self) -> None:
        hint = LocationHint(lat=39.93, lng=32.85)
        source = ScriptedSource()

        _controller(source, location_hint=hint).start()

        assert source.hints == [hint, hint]


# ---------------------------------------------------------------------------
# Quota cooldown
# ---------------------------------------------------------------------------


class TestQuotaCooldown:
    def test_retries_same_tuple_until_success(self) -> None:
        source = ScriptedSource(
            {A_CENTER: [QuotaExceededError(), QuotaExceededError(), [_record("Smile", A_CENTER)]]}
        )
        sleeps: list[float] = []
        controller = _controller(source, sleep=sleeps.append)

        summary = controller.start()

        assert source.calls == [A_CENTER, A_CENTER, A_CENTER, A_DISTRICTS]
        assert summary.adapter_calls == 4
        assert summary.tuples_completed == 2
        assert summary.records_added == 1
        assert sleeps == [1, 1, 1, 1, 1, 1, 3.0, 3.0]

    def test_countdown_publishes_each_second(self) -> None:
        source = ScriptedSource({A_CENTER: [QuotaExceededError()]})
        reporter = RecordingReporter()
        controller = _controller(source, reporter=reporter, cooldown=3)

        controller.start()

        waiting = [s.seconds_remaining for s in reporter.statuses if s.state == RunState.WAITING_ON_QUOTA]
        assert waiting == [3, 2, 1]
        assert reporter.statuses[-1] == RunStatus.idle()

    def test_quota_retries_do_not_republish_snapshot(self) -> None:
        source = ScriptedSource({A_CENTER: [QuotaExceededError(), QuotaExceededError()]})
        reporter = RecordingReporter()

        _controller(source, reporter=reporter).start()

        assert [(s.current_city, s.current_zone) for s in reporter.snapshots] == [
            ("A", "Center"),
            ("A", "Districts"),
        ]


# ---------------------------------------------------------------------------
# Fatal errors
# ---------------------------------------------------------------------------


class TestFatalErrors:
    def test_adapter_error_halts_run(self) -> None:
        source = ScriptedSource({A_DISTRICTS: [AdapterError("backend unavailable")]})
        controller = _controller(source, cities=("A", "B"))

        summary = controller.start()

        assert source.calls == [A_CENTER, A_DISTRICTS]
        assert controller.status.state == RunState.FAILED
        assert controller.status.message == "backend unavailable"
        assert summary.error == "backend unavailable"
        assert summary.tuples_completed == 1

    def test_unexpected_exception_is_fatal(self) -> None:
        source = ScriptedSource({A_CENTER: [KeyError("grounding")]})
        controller = _controller(source)

        summary = controller.start()

        assert source.calls == [A_CENTER]
        assert summary.state == RunState.FAILED
        assert summary.error is not None and summary.error.startswith("KeyError")

    def test_fatal_error_skips_success_delay(self) -> None:
        sleeps: list[float] = []
        source = ScriptedSource({A_CENTER: [AdapterError("boom")]})

        _controller(source, sleep=sleeps.append).start()

        assert sleeps == []

    def test_raising_reporter_fails_the_run(self) -> None:
        source = ScriptedSource({A_CENTER: [[_record("Smile", A_CENTER)]]})
        controller = _controller(source, reporter=ExplodingTotalsReporter())

        summary = controller.start()

        assert source.calls == [A_CENTER]
        assert summary.state == RunState.FAILED
        assert summary.error == "RuntimeError: dashboard offline"
        assert controller.status == RunStatus.failed("RuntimeError: dashboard offline")
        assert not controller.is_running

    def test_raising_reporter_in_background_leaves_failed_status(self) -> None:
        controller = _controller(ScriptedSource(), reporter=ExplodingTotalsReporter())

        thread = controller.start_in_background()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert not controller.is_running
        assert controller.status.state == RunState.FAILED
        assert controller.last_summary is not None
        assert controller.last_summary.error == "RuntimeError: dashboard offline"

    def test_raising_sleep_fails_the_run(self) -> None:
        def sleep(seconds: float) -> None:
            raise OSError("clock unavailable")

        summary = _controller(ScriptedSource(), sleep=sleep).start()

        assert summary.state == RunState.FAILED
        assert summary.error == "OSError: clock unavailable"
        assert summary.adapter_calls == 1

    def test_collection_survives_failure(self) -> None:
        collection = RecordCollection()
        source = ScriptedSource(
            {
                A_CENTER: [[_record("Smile", A_CENTER)]],
                A_DISTRICTS: [AdapterError("boom")],
            }
        )

        _controller(source, collection=collection).start()

        assert [r.name for r in collection.records] == ["Smile"]


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    def test_stop_during_countdown_abandons_tuple(self) -> None:
        source = ScriptedSource({A_CENTER: [QuotaExceededError()]})
        sleeps: list[float] = []
        holder: dict[str, CrawlController] = {}

        def sleep(seconds: float) -> None:
            sleeps.append(seconds)
            holder["controller"].stop()

        controller = _controller(source, sleep=sleep, cooldown=60)
        holder["controller"] = controller

        summary = controller.start()

        assert source.calls == [A_CENTER]
        assert sleeps == [1]
        assert controller.status == RunStatus.stopped()
        assert summary.state == RunState.STOPPED
        assert summary.tuples_completed == 0

    def test_stop_during_query_finishes_tuple_then_halts(self) -> None:
        source = ScriptedSource({A_CENTER: [[_record("Smile", A_CENTER)]]})
        collection = RecordCollection()
        controller = _controller(source, cities=("A", "B"), collection=collection)
        source.on_fetch = lambda query: controller.stop()

        summary = controller.start()

        assert source.calls == [A_CENTER]
        assert collection.count == 1
        assert summary.state == RunState.STOPPED
        assert summary.tuples_completed == 1

    def test_stop_when_idle_is_ignored(self) -> None:
        source = ScriptedSource()
        controller = _controller(source)

        controller.stop()
        summary = controller.start()

        assert summary.state == RunState.IDLE
        assert len(source.calls) == 2

    def test_restart_after_stop_begins_from_first_city(self) -> None:
        source = ScriptedSource()
        controller = _controller(source, cities=("A", "B"))
        source.on_fetch = lambda query: controller.stop()
        controller.start()

        source.on_fetch = None
        source.calls.clear()
        summary = controller.start()

        assert source.calls[0] == A_CENTER
        assert summary.state == RunState.IDLE
        assert summary.tuples_completed == 4


# ---------------------------------------------------------------------------
# Delays, totals and single flight
# ---------------------------------------------------------------------------


class TestRunBookkeeping:
    def test_success_delay_applies_even_with_no_results(self) -> None:
        sleeps: list[float] = []

        _controller(ScriptedSource(), cities=("A", "B"), sleep=sleeps.append).start()

        assert sleeps == [3.0, 3.0, 3.0, 3.0]

    def test_totals_reflect_dedup_across_tuples(self) -> None:
        reporter = RecordingReporter()
        source = ScriptedSource(
            {
                A_CENTER: [[_record("Smile", A_CENTER), _record("Pearl", A_CENTER)]],
                A_DISTRICTS: [[_record("SMILE", A_DISTRICTS), _record("Ivory", A_DISTRICTS)]],
            }
        )

        summary = _controller(source, reporter=reporter).start()

        assert reporter.totals == [2, 3]
        assert [s.total_found_so_far for s in reporter.snapshots] == [0, 2]
        assert summary.records_added == 3
        assert summary.total_records == 3

    def test_second_start_while_running_is_rejected(self) -> None:
        source = ScriptedSource()
        controller = _controller(source)
        rejected: list[Exception] = []

        def try_restart(query: QueryTuple) -> None:
            try:
                controller.start()
            except CrawlAlreadyRunningError as exc:
                rejected.append(exc)

        source.on_fetch = try_restart
        controller.start()

        assert len(rejected) == 2
        assert not controller.is_running

    def test_background_run_completes(self) -> None:
        source = ScriptedSource()
        controller = _controller(source, cities=("A", "B"))

        thread = controller.start_in_background()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert controller.last_summary is not None
        assert controller.last_summary.tuples_completed == 4
        assert controller.status == RunStatus.idle()


@pytest.mark.parametrize("cities", [(), ("  ",)])
def test_catalog_requires_cities(cities: tuple[str, ...]) -> None:
    with pytest.raises(ValueError):
        QueryCatalog.build(cities=cities, categories=("X",))
