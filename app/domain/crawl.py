"""
app/domain/crawl.py

Value types shared by the crawl controller, its reporter and the API layer.
"""

from __future__ import annotations

from dataclasses import dataclass


class RunState:
    IDLE = "idle"
    RUNNING = "running"
    WAITING_ON_QUOTA = "waiting_on_quota"
    STOPPED = "stopped"
    FAILED = "failed"


class TupleState:
    """
    Per-tuple retry state machine.

    querying -> succeeded | fatal_error | cooling_down | abandoned
    cooling_down -> querying | abandoned
    """

    QUERYING = "querying"
    COOLING_DOWN = "cooling_down"
    SUCCEEDED = "succeeded"
    FATAL_ERROR = "fatal_error"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class LocationHint:
    lat: float
    lng: float


@dataclass(frozen=True)
class QueryTuple:
    """
    One (city, zone, category) combination to be queried.
    """

    city: str
    zone: str
    category: str


@dataclass(frozen=True)
class ProgressSnapshot:
    """
    Published before each tuple's first query attempt.
    """

    current_city: str
    current_zone: str
    current_category: str
    total_found_so_far: int


@dataclass(frozen=True)
class RunStatus:
    """
    Observable controller state.

    ``seconds_remaining`` is set only while waiting on quota and
    ``message`` only when the run failed.
    """

    state: str
    seconds_remaining: int | None = None
    message: str | None = None

    @classmethod
    def idle(cls) -> "RunStatus":
        return cls(state=RunState.IDLE)

    @classmethod
    def running(cls) -> "RunStatus":
        return cls(state=RunState.RUNNING)

    @classmethod
    def waiting_on_quota(cls, seconds_remaining: int) -> "RunStatus":
        return cls(state=RunState.WAITING_ON_QUOTA, seconds_remaining=seconds_remaining)

    @classmethod
    def stopped(cls) -> "RunStatus":
        return cls(state=RunState.STOPPED)

    @classmethod
    def failed(cls, message: str) -> "RunStatus":
        return cls(state=RunState.FAILED, message=message)

    @property
    def is_active(self) -> bool:
        return self.state in {RunState.RUNNING, RunState.WAITING_ON_QUOTA}


@dataclass(frozen=True)
class CrawlRunSummary:
    """
    Outcome of one traversal.
    """

    state: str
    tuples_completed: int
    adapter_calls: int
    records_added: int
    total_records: int
    error: str | None = None
