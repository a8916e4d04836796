"""
Durable backup interface for the record collection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from app.domain.business_record import BusinessRecord


class RecordBackup(ABC):
    """
    One named durable slot holding the current collection.
    """

    @abstractmethod
    def load(self) -> list[BusinessRecord]:
        """
        Return the stored collection; missing or corrupt data loads as empty.
        """

    @abstractmethod
    def save(self, records: Sequence[BusinessRecord]) -> None:
        """
        Overwrite the slot with ``records``.
        """

    @abstractmethod
    def clear(self) -> None:
        """
        Remove the slot.
        """
