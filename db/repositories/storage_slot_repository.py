"""
Repository for named storage slot reads and writes.
"""

from __future__ import annotations

from sqlalchemy import delete
from sqlalchemy.orm import Session

from db.models.storage_slot import StorageSlot


class StorageSlotRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_payload(self, name: str) -> str | None:
        slot = self._session.get(StorageSlot, name)
        return slot.payload if slot is not None else None

    def put_payload(self, name: str, payload: str) -> StorageSlot:
        slot = self._session.get(StorageSlot, name)
        if slot is None:
            slot = StorageSlot(name=name, payload=payload)
            self._session.add(slot)
        else:
            slot.payload = payload
        self._session.flush()
        return slot

    def delete(self, name: str) -> int:
        result = self._session.execute(delete(StorageSlot).where(StorageSlot.name == name))
        return int(result.rowcount or 0)
