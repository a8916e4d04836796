"""
Run the business records crawl from CLI.

Ctrl+C requests a cooperative stop; the run ends at its next checkpoint.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
from pathlib import Path

from app.services.crawl_service import build_crawl_service


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Crawl business listings city by city.")
    parser.add_argument(
        "--city",
        dest="cities",
        action="append",
        default=None,
        help="City to crawl; repeat for several. Defaults to CRAWL_CITIES or the built-in list.",
    )
    parser.add_argument(
        "--category",
        dest="categories",
        action="append",
        default=None,
        help="Category to crawl; repeat for several. Defaults to CRAWL_CATEGORIES.",
    )
    parser.add_argument(
        "--export",
        dest="export_dir",
        default=None,
        help="Directory to write the CSV export into once the run ends.",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear stored records before crawling.",
    )
    args = parser.parse_args()

    _configure_logging()
    service = build_crawl_service(cities=args.cities, categories=args.categories)
    restored = service.load()
    if args.reset:
        service.reset(confirm=True)
        restored = 0

    def _request_stop(signum: int, frame: object) -> None:
        service.stop()
        # A second Ctrl+C aborts immediately.
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, _request_stop)
    summary = service.run()

    payload = {
        "state": summary.state,
        "restored_records": restored,
        "tuples_completed": summary.tuples_completed,
        "adapter_calls": summary.adapter_calls,
        "records_added": summary.records_added,
        "total_records": summary.total_records,
        "error": summary.error,
    }
    if args.export_dir and summary.total_records > 0:
        export = service.export()
        out_dir = Path(args.export_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / export.filename
        out_path.write_bytes(export.content)
        payload["export_path"] = str(out_path)

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 1 if summary.error else 0


if __name__ == "__main__":
    raise SystemExit(main())
