"""Deterministic business source for local runs and CI."""

from __future__ import annotations

import hashlib

from app.domain.business_record import BusinessRecord
from app.domain.crawl import LocationHint
from app.sources.base import BaseBusinessSource


class MockBusinessSource(BaseBusinessSource):
    """Returns a fixed number of synthetic records per query.

    Names are derived from the query so repeated queries return the same
    names and are deduplicated by the accumulator.
    """

    name = "mock"

    def __init__(self, records_per_query: int = 2) -> None:
        self._records_per_query = max(0, records_per_query)

    def fetch(
        self,
        city: str,
        zone: str,
        category: str,
        location_hint: LocationHint | None = None,
    ) -> list[BusinessRecord]:
        records: list[BusinessRecord] = []
        for index in range(1, self._records_per_query + 1):
            digest = hashlib.sha256(f"{city}|{zone}|{category}|{index}".encode("utf-8")).hexdigest()
            records.append(
                BusinessRecord(
                    name=f"{city} {category} {zone} #{index}",
                    address=f"{index} Main Street, {city}",
                    phone=f"0212 {digest[:3].translate(_HEX_TO_DIGIT)} 00 {index:02d}",
                    city=city,
                    district=zone,
                    category=category,
                    source_url=f"https://maps.example.com/place/{digest[:16]}",
                )
            )
        return records


_HEX_TO_DIGIT = str.maketrans("abcdef", "012345")
