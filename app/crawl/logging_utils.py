"""
JSON log lines for crawl, source and backup events.

Each line carries an ``event`` name such as ``crawl_progress`` or
``record_backup_save_failed`` plus its fields, sorted for stable output.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit ``event`` and ``fields`` as one JSON line; skipped when ``level`` is disabled.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, ensure_ascii=False, sort_keys=True))
