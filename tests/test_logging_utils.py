from __future__ import annotations

import json
import logging

import pytest

from app.domain.errors import QueryError
from app.logging_utils import error_fields, log_event


def test_log_event_emits_json(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.structured")
    with caplog.at_level(logging.INFO, logger="tests.structured"):
        log_event(logger, logging.INFO, "feed_reset", generation=3, reason="filters")

    assert json.loads(caplog.records[0].getMessage()) == {
        "event": "feed_reset",
        "generation": 3,
        "reason": "filters",
    }


def test_log_event_skips_disabled_levels(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.structured.quiet")
    with caplog.at_level(logging.WARNING, logger="tests.structured.quiet"):
        log_event(logger, logging.DEBUG, "feed_page_loaded", rows=200)

    assert caplog.records == []


def test_error_fields_include_cause() -> None:
    error = QueryError("Failed to load page 0")
    error.__cause__ = ConnectionError("refused")

    assert error_fields(error) == {
        "error": "Failed to load page 0",
        "error_type": "QueryError",
        "cause": "refused",
        "cause_type": "ConnectionError",
    }
