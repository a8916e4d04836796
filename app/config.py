"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.crawl.catalog import DEFAULT_CATEGORIES, DEFAULT_CITIES
from app.domain.crawl import LocationHint
from db.config import load_env_files

_ALLOWED_ADAPTERS = {"gemini", "mock"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_optional_float_env(name: str) -> float | None:
    _load_env_once()
    raw_value = (os.getenv(name) or "").strip()
    if not raw_value:
        return None
    try:
        return float(raw_value)
    except ValueError:
        return None


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list; blank or missing values use the default.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    items = tuple(item.strip() for item in raw_value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class SourceSettings:
    """
    Business listing source selection and credentials.
    """

    adapter: str = "gemini"
    api_key: str | None = None
    model: str = "gemini-2.5-flash"
    mock_records_per_query: int = 2


@dataclass(frozen=True)
class CrawlSettings:
    """
    Traversal lists and pacing for the crawl controller.
    """

    cities: tuple[str, ...] = DEFAULT_CITIES
    categories: tuple[str, ...] = DEFAULT_CATEGORIES
    success_delay_seconds: float = 3.0
    quota_cooldown_seconds: int = 60
    location_lat: float | None = None
    location_lng: float | None = None

    @property
    def location_hint(self) -> LocationHint | None:
        if self.location_lat is None or self.location_lng is None:
            return None
        return LocationHint(lat=self.location_lat, lng=self.location_lng)


@dataclass(frozen=True)
class RecordStorageSettings:
    """
    Durable backup slot and export naming.
    """

    backup_slot: str = "business_records_backup"
    export_filename_prefix: str = "business_records"


@lru_cache(maxsize=1)
def get_source_settings() -> SourceSettings:
    """
    Return cached source settings from environment variables.
    """

    adapter = _get_str_env("LLM_ADAPTER", "gemini").lower()
    if adapter not in _ALLOWED_ADAPTERS:
        raise RuntimeError(
            f"LLM_ADAPTER '{adapter}' is not valid. Allowed values: {sorted(_ALLOWED_ADAPTERS)}."
        )
    return SourceSettings(
        adapter=adapter,
        api_key=_get_optional_str_env("GEMINI_API_KEY") or _get_optional_str_env("GOOGLE_API_KEY"),
        model=_get_str_env("GEMINI_MODEL", "gemini-2.5-flash"),
        mock_records_per_query=max(0, _get_int_env("MOCK_RECORDS_PER_QUERY", 2)),
    )


@lru_cache(maxsize=1)
def get_crawl_settings() -> CrawlSettings:
    """
    Return cached crawl settings from environment variables.
    """

    return CrawlSettings(
        cities=_get_list_env("CRAWL_CITIES", DEFAULT_CITIES),
        categories=_get_list_env("CRAWL_CATEGORIES", DEFAULT_CATEGORIES),
        success_delay_seconds=max(0.0, _get_float_env("CRAWL_SUCCESS_DELAY_SECONDS", 3.0)),
        quota_cooldown_seconds=max(0, _get_int_env("CRAWL_QUOTA_COOLDOWN_SECONDS", 60)),
        location_lat=_get_optional_float_env("CRAWL_LOCATION_LAT"),
        location_lng=_get_optional_float_env("CRAWL_LOCATION_LNG"),
    )


@lru_cache(maxsize=1)
def get_record_storage_settings() -> RecordStorageSettings:
    """
    Return cached backup and export settings.
    """

    return RecordStorageSettings(
        backup_slot=_get_str_env("RECORD_BACKUP_SLOT", "business_records_backup"),
        export_filename_prefix=_get_str_env("EXPORT_FILENAME_PREFIX", "business_records"),
    )
