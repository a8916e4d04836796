"""
Data source contract for business listing queries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.business_record import BusinessRecord
from app.domain.crawl import LocationHint


class BaseBusinessSource(ABC):
    """Abstract base for all business listing sources."""

    name: str = "base"

    @abstractmethod
    def fetch(
        self,
        city: str,
        zone: str,
        category: str,
        location_hint: LocationHint | None = None,
    ) -> list[BusinessRecord]:
        """Return candidate records for one (city, zone, category) query.

        Args:
            city: City to search in.
            zone: Zone within the city, e.g. "Center" or "Districts".
            category: Business category to enumerate.
            location_hint: Optional caller position used to bias results.

        Raises:
            QuotaExceededError: The backend's rate or usage quota is exhausted.
            AdapterError: Any other failure; fatal for the run.
        """
