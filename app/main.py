from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - LLM_ADAPTER must be 'gemini' or 'mock'.
    - The Gemini API key check is skipped only when LLM_ADAPTER=mock.
    - Location hint coordinates must be given together and be numeric.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Source adapter -------------------------------------------------
    adapter = os.getenv("LLM_ADAPTER", "gemini").strip().lower()
    if adapter not in {"gemini", "mock"}:
        errors.append(
            f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: ['gemini', 'mock']."
        )
    elif adapter == "gemini":
        gemini_key = os.getenv("GEMINI_API_KEY", "").strip()
        google_key = os.getenv("GOOGLE_API_KEY", "").strip()
        if not gemini_key and not google_key:
            errors.append(
                "Gemini API key is not set. Provide GEMINI_API_KEY or GOOGLE_API_KEY, "
                "or set LLM_ADAPTER=mock."
            )

    # --- Location hint --------------------------------------------------
    lat = os.getenv("CRAWL_LOCATION_LAT", "").strip()
    lng = os.getenv("CRAWL_LOCATION_LNG", "").strip()
    if bool(lat) != bool(lng):
        errors.append("CRAWL_LOCATION_LAT and CRAWL_LOCATION_LNG must be set together.")
    for name, value in (("CRAWL_LOCATION_LAT", lat), ("CRAWL_LOCATION_LNG", lng)):
        if not value:
            continue
        try:
            float(value)
        except ValueError:
            errors.append(f"{name}='{value}' is not a number.")

    if errors:
        raise RuntimeError(
            "Startup validation failed - missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 - registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch - %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate the backup DB, restore saved records on boot; stop any crawl on exit."""
    log = logging.getLogger(__name__)
    _check_db()
    log.info("Database connectivity confirmed")
    _check_schema()
    log.info("Database schema validated")

    from app.services.crawl_service import get_crawl_service

    crawl_service = get_crawl_service()
    restored = crawl_service.load()
    log.info("Restored %d record(s) from backup", restored)
    try:
        yield
    finally:
        crawl_service.stop()
        log.info("Crawl stop requested on shutdown")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Business Records Crawler API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import crawl_router

    application.include_router(crawl_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
