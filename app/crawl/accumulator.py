"""
Deduplicating accumulator for business records.

``merge`` is the pure dedup rule. ``RecordCollection`` owns the running
collection, publishes every change as a single assignment and mirrors it to
the durable backup.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from app.crawl.logging_utils import log_event
from app.crawl.storage.base import RecordBackup
from app.domain.business_record import BusinessRecord

logger = logging.getLogger(__name__)


def merge(
    existing: Sequence[BusinessRecord],
    incoming: Sequence[BusinessRecord],
) -> list[BusinessRecord]:
    """
    Append incoming records whose lower-cased name is absent from ``existing``.

    Only names already present in ``existing`` are filtered; duplicates
    inside ``incoming`` itself are kept, matching a set built once from the
    existing collection.
    """

    existing_names = {record.dedup_key for record in existing}
    survivors = [record for record in incoming if record.dedup_key not in existing_names]
    return [*existing, *survivors]


def _first_by_name(records: Sequence[BusinessRecord]) -> list[BusinessRecord]:
    seen: set[str] = set()
    kept: list[BusinessRecord] = []
    for record in records:
        if record.dedup_key in seen:
            continue
        seen.add(record.dedup_key)
        kept.append(record)
    return kept


class RecordCollection:
    """
    Owned, deduplicated record collection with a single mutation entry point.
    """

    def __init__(self, *, backup: RecordBackup | None = None) -> None:
        self._backup = backup
        self._records: tuple[BusinessRecord, ...] = ()
        self._lock = threading.Lock()

    @property
    def records(self) -> tuple[BusinessRecord, ...]:
        return self._records

    @property
    def count(self) -> int:
        return len(self._records)

    def latest(self, limit: int) -> list[BusinessRecord]:
        """
        Most recently added records, newest first.
        """

        if limit <= 0:
            return []
        return list(reversed(self._records[-limit:]))

    def merge(self, incoming: Sequence[BusinessRecord]) -> int:
        """
        Merge a fetched batch and return the number of records added.
        """

        with self._lock:
            merged = merge(self._records, incoming)
            added = len(merged) - len(self._records)
            if added == 0:
                return 0
            self._records = tuple(merged)
            snapshot = self._records
        self._mirror(snapshot)
        return added

    def load(self) -> int:
        """
        Replace the in-memory collection with the backup contents.
        """

        if self._backup is None:
            return 0
        loaded = self._backup.load()
        with self._lock:
            self._records = tuple(_first_by_name(loaded))
        log_event(logger, logging.INFO, "record_collection_loaded", total_records=len(self._records))
        return len(self._records)

    def reset(self) -> None:
        """
        Drop every record from memory and from the durable backup.
        """

        with self._lock:
            self._records = ()
        if self._backup is None:
            return
        try:
            self._backup.clear()
        except Exception as exc:
            log_event(logger, logging.WARNING, "record_backup_clear_failed", error=str(exc))

    def _mirror(self, snapshot: tuple[BusinessRecord, ...]) -> None:
        if self._backup is None:
            return
        try:
            self._backup.save(snapshot)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "record_backup_save_failed",
                total_records=len(snapshot),
                error=str(exc),
            )
