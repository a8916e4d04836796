"""
Progress reporter contract for crawl observers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from app.crawl.logging_utils import log_event
from app.domain.crawl import ProgressSnapshot, RunStatus

logger = logging.getLogger(__name__)


class ProgressReporter(ABC):
    """
    Passive sink the controller pushes state into. Last write wins.
    """

    @abstractmethod
    def on_snapshot(self, snapshot: ProgressSnapshot) -> None:
        """
        Called once before each tuple's first query attempt.
        """

    @abstractmethod
    def on_total(self, total: int) -> None:
        """
        Called with the running total after each successful merge.
        """

    @abstractmethod
    def on_status(self, status: RunStatus) -> None:
        """
        Called on every run state change, including each cooldown tick.
        """


class NullProgressReporter(ProgressReporter):
    def on_snapshot(self, snapshot: ProgressSnapshot) -> None:
        return None

    def on_total(self, total: int) -> None:
        return None

    def on_status(self, status: RunStatus) -> None:
        return None


class LoggingProgressReporter(ProgressReporter):
    """
    Writes progress as structured log lines. Cooldown ticks are logged at DEBUG.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    def on_snapshot(self, snapshot: ProgressSnapshot) -> None:
        log_event(
            self._logger,
            logging.INFO,
            "crawl_progress",
            city=snapshot.current_city,
            zone=snapshot.current_zone,
            category=snapshot.current_category,
            total_found=snapshot.total_found_so_far,
        )

    def on_total(self, total: int) -> None:
        log_event(self._logger, logging.DEBUG, "crawl_total_updated", total_found=total)

    def on_status(self, status: RunStatus) -> None:
        level = logging.DEBUG if status.seconds_remaining is not None else logging.INFO
        log_event(
            self._logger,
            level,
            "crawl_status",
            state=status.state,
            seconds_remaining=status.seconds_remaining,
            message=status.message,
        )
