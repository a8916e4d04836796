"""
app/domain/business_record.py

Business listing record collected from the maps-grounded search backend.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field


def new_record_id() -> str:
    """Return an opaque unique record token."""

    return f"rec-{uuid.uuid4().hex}"


class BusinessRecord(BaseModel):
    """
    One business listing.

    Identity for deduplication is the case-insensitive ``name``; ``id`` is
    only an opaque token.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id, min_length=1)
    name: str = Field(min_length=1)
    address: str = ""
    phone: str = Field(default="", description="Up to two numbers joined by ', '")
    city: str
    district: str
    category: str
    source_url: str = "#"

    @property
    def dedup_key(self) -> str:
        return self.name.lower()

    @property
    def phones(self) -> list[str]:
        return [part.strip() for part in self.phone.split(",") if part.strip()]
