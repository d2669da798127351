"""
Structured logging helpers for feed and record store events.

Each event is one JSON object per line so transitions, stale discards and
store failures can be grepped or shipped without a formatter.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def error_fields(exc: BaseException) -> dict[str, str]:
    """Describe *exc* and its direct cause as flat log fields."""
    fields = {"error": str(exc), "error_type": type(exc).__name__}
    cause = exc.__cause__
    if cause is not None:
        fields["cause"] = str(cause)
        fields["cause_type"] = type(cause).__name__
    return fields


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    Nothing is serialised when *level* is disabled for *logger*.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
