"""
db/models/storage_slot.py

Named durable slot holding one JSON-encoded payload.
"""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class StorageSlot(Base, TimestampMixin):
    __tablename__ = "storage_slots"

    name: Mapped[str] = mapped_column(
        String(120),
        primary_key=True,
        comment="Slot identifier, e.g. business_records_backup",
    )
    payload: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="JSON-encoded slot contents",
    )
