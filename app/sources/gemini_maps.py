"""Gemini source grounded with the Google Maps tool.

One query per (city, zone, category) tuple; every grounding chunk that
carries a ``maps`` place becomes one ``BusinessRecord``.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Optional

from app.crawl.errors import AdapterError, QuotaExceededError
from app.crawl.logging_utils import log_event
from app.domain.business_record import BusinessRecord
from app.domain.crawl import LocationHint
from app.sources.base import BaseBusinessSource
from app.sources.prompt_builder import SearchPromptBuilder

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"(?:\+90|0)?\s?[2-5][0-9]{2}\s?[0-9]{3}\s?[0-9]{2}\s?[0-9]{2}")
MAX_PHONES = 2
UNKNOWN_NAME = "Unknown business"

_QUOTA_MARKERS = ("quota", "resource_exhausted", "resource exhausted")


def is_quota_error(exc: BaseException) -> bool:
    """Return True when an SDK error signals an exhausted rate or usage quota."""
    if getattr(exc, "code", None) == 429:
        return True
    text = f"{getattr(exc, 'status', '') or ''} {exc}".lower()
    return any(marker in text for marker in _QUOTA_MARKERS)


def extract_phones(text: str, limit: int = MAX_PHONES) -> list[str]:
    """Return up to ``limit`` unique phone numbers found in ``text``, in order."""
    phones: list[str] = []
    for match in PHONE_PATTERN.finditer(text):
        phone = " ".join(match.group(0).split())
        if phone not in phones:
            phones.append(phone)
        if len(phones) >= limit:
            break
    return phones


def phone_windows(text: str, names: list[str]) -> dict[str, str]:
    """Split response text into per-business segments.

    Each name found in the text owns the span from its first mention up to
    the next mentioned name. Longer names are placed first and a shorter
    name never matches inside text already claimed by another, so "Smile"
    does not anchor on "Smile Dental Clinic". Names never mentioned get no
    segment.
    """
    lowered = text.lower()
    claimed: list[tuple[int, int]] = []
    positions: list[tuple[int, str]] = []
    for name in sorted(dict.fromkeys(n for n in names if n), key=len, reverse=True):
        needle = name.lower()
        index = lowered.find(needle)
        while index >= 0 and any(index < end and index + len(needle) > begin for begin, end in claimed):
            index = lowered.find(needle, index + 1)
        if index >= 0:
            claimed.append((index, index + len(needle)))
            positions.append((index, name))
    positions.sort()

    windows: dict[str, str] = {}
    for offset, (start, name) in enumerate(positions):
        end = positions[offset + 1][0] if offset + 1 < len(positions) else len(text)
        windows.setdefault(name, text[start:end])
    return windows


class GeminiMapsSource(BaseBusinessSource):
    """Business source backed by the google-genai SDK with Maps grounding."""

    name = "gemini"

    def __init__(
        self,
        model: str = "gemini-2.5-flash",
        api_key: Optional[str] = None,
        client: Any = None,
        prompt_builder: SearchPromptBuilder | None = None,
    ) -> None:
        """Initialise the Gemini source.

        Args:
            model: Gemini model identifier.
            api_key: API key. Falls back to GEMINI_API_KEY, then GOOGLE_API_KEY.
            client: Pre-built ``genai.Client``; skips SDK client creation.
            prompt_builder: Override for the query text builder.
        """
        if client is None:
            try:
                from google import genai
            except ImportError as exc:
                raise ImportError(
                    "google-genai package is required for GeminiMapsSource. "
                    "Install it with: pip install google-genai"
                ) from exc

            resolved_key = api_key or os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY", "")
            client = genai.Client(api_key=resolved_key)

        self._client = client
        self._model = model
        self._prompt_builder = prompt_builder or SearchPromptBuilder()

    def fetch(
        self,
        city: str,
        zone: str,
        category: str,
        location_hint: LocationHint | None = None,
    ) -> list[BusinessRecord]:
        prompt = self._prompt_builder.build(city, zone, category)
        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=prompt,
                config=self._build_config(location_hint),
            )
        except Exception as exc:
            if is_quota_error(exc):
                raise QuotaExceededError(f"Gemini quota exceeded: {exc}") from exc
            log_event(
                logger,
                logging.ERROR,
                "gemini_request_failed",
                city=city,
                zone=zone,
                category=category,
                error=str(exc),
            )
            raise AdapterError(f"Gemini request failed for {city}/{zone}/{category}: {exc}") from exc

        records = self.parse_response(response, city=city, zone=zone, category=category)
        log_event(
            logger,
            logging.DEBUG,
            "gemini_response_parsed",
            city=city,
            zone=zone,
            category=category,
            records=len(records),
        )
        return records

    @staticmethod
    def _build_config(location_hint: LocationHint | None) -> dict[str, Any]:
        config: dict[str, Any] = {"tools": [{"google_maps": {}}]}
        if location_hint is not None:
            config["tool_config"] = {
                "retrieval_config": {
                    "lat_lng": {
                        "latitude": location_hint.lat,
                        "longitude": location_hint.lng,
                    }
                }
            }
        return config

    @staticmethod
    def parse_response(response: Any, *, city: str, zone: str, category: str) -> list[BusinessRecord]:
        """Turn Maps grounding chunks into records.

        Args:
            response: A ``GenerateContentResponse`` or an object of the same shape.
            city: City the query was issued for.
            zone: Zone the query was issued for; stored as the record district.
            category: Category the query was issued for.

        Returns:
            One record per grounding chunk carrying a maps place.
        """
        text = getattr(response, "text", None) or ""
        candidates = getattr(response, "candidates", None) or []
        metadata = getattr(candidates[0], "grounding_metadata", None) if candidates else None
        chunks = getattr(metadata, "grounding_chunks", None) or []

        places = [chunk.maps for chunk in chunks if getattr(chunk, "maps", None) is not None]
        names = [(getattr(place, "title", None) or "").strip() for place in places]
        windows = phone_windows(text, [name for name in names if name])

        records: list[BusinessRecord] = []
        for place, name in zip(places, names):
            phones = extract_phones(windows.get(name, ""))
            records.append(
                BusinessRecord(
                    name=name or UNKNOWN_NAME,
                    address=(getattr(place, "address", None) or "").strip() or f"{city} {zone}",
                    phone=", ".join(phones),
                    city=city,
                    district=zone,
                    category=category,
                    source_url=getattr(place, "uri", None) or "#",
                )
            )
        return records
