"""
Container health check for the crawler API.

Exits non-zero when the API is unreachable or the last crawl run failed and
HEALTHCHECK_FAIL_ON_CRAWL_ERROR is enabled.
"""

from __future__ import annotations

import json
import os
from urllib.error import URLError
from urllib.request import urlopen


def _get(url: str) -> tuple[int, bytes]:
    with urlopen(url, timeout=2) as response:
        return response.status, response.read()


def main() -> int:
    port = os.getenv("PORT", "8000")
    base_url = f"http://127.0.0.1:{port}"
    fail_on_crawl_error = os.getenv("HEALTHCHECK_FAIL_ON_CRAWL_ERROR", "false").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    try:
        status, _ = _get(f"{base_url}/health")
        if not 200 <= status < 400:
            return 1
        if not fail_on_crawl_error:
            return 0
        _, body = _get(f"{base_url}/crawl/status")
        return 1 if json.loads(body).get("state") == "failed" else 0
    except (URLError, TimeoutError, ValueError):
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
