"""
SQLAlchemy-backed record backup stored as one JSON slot row.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crawl.errors import PersistenceError
from app.crawl.logging_utils import log_event
from app.crawl.storage.base import RecordBackup
from app.domain.business_record import BusinessRecord
from db.repositories.storage_slot_repository import StorageSlotRepository

logger = logging.getLogger(__name__)

_RECORD_LIST = TypeAdapter(list[BusinessRecord])


class SQLAlchemyRecordBackup(RecordBackup):
    """
    Persist the record collection in the ``storage_slots`` table.
    """

    def __init__(self, *, session_factory: Callable[[], Session], slot_name: str) -> None:
        self._session_factory = session_factory
        self._slot_name = slot_name

    @property
    def slot_name(self) -> str:
        return self._slot_name

    def load(self) -> list[BusinessRecord]:
        try:
            with self._session_factory() as session:
                payload = StorageSlotRepository(session).get_payload(self._slot_name)
        except SQLAlchemyError as exc:
            log_event(logger, logging.WARNING, "record_backup_unreadable", slot=self._slot_name, error=str(exc))
            return []

        if payload is None:
            return []
        try:
            return _RECORD_LIST.validate_python(json.loads(payload))
        except (json.JSONDecodeError, ValidationError) as exc:
            log_event(logger, logging.WARNING, "record_backup_corrupt", slot=self._slot_name, error=str(exc))
            return []

    def save(self, records: Sequence[BusinessRecord]) -> None:
        payload = _RECORD_LIST.dump_json(list(records)).decode("utf-8")
        with self._session_factory() as session:
            try:
                StorageSlotRepository(session).put_payload(self._slot_name, payload)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError(f"Unable to write slot '{self._slot_name}'.") from exc

    def clear(self) -> None:
        with self._session_factory() as session:
            try:
                StorageSlotRepository(session).delete(self._slot_name)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError(f"Unable to clear slot '{self._slot_name}'.") from exc
