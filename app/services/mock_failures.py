"""
app/services/mock_failures.py

Synthetic stream failure rows used to seed the in-memory record store.
"""

from __future__ import annotations

import json
import random
import string
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from app.domain.stream_failure import KNOWN_FAILURE_STATUSES, StreamFailureEntity

_REGIONS = ("us-east-1", "eu-west-1", "ap-south-1")
_RANDOM_TOKEN = "{random}"

_PAYLOAD_TEMPLATES: tuple[dict[str, Any], ...] = (
    {
        "errorCode": "CONN_TIMEOUT",
        "message": "Connection timeout while establishing stream",
        "deviceId": "device-{random}",
        "attempts": 3,
        "lastError": "Socket timeout after 30 seconds",
    },
    {
        "errorCode": "AUTH_FAILED",
        "message": "Authentication failed for stream connection",
        "userId": "user-{random}",
        "authMethod": "oauth2",
        "reason": "Invalid token",
    },
    {
        "errorCode": "RATE_LIMIT",
        "message": "Rate limit exceeded for organization",
        "requestsPerMinute": 1500,
        "limit": 1000,
    },
)


def format_failure_id(index: int) -> str:
    return f"failure-{index:06d}"


def _random_token(rng: random.Random) -> str:
    return "".join(rng.choices(string.ascii_lowercase + string.digits, k=9))


def _build_payload(
    rng: random.Random,
    *,
    index: int,
    created_date: datetime,
    now: datetime,
) -> dict[str, Any]:
    template = dict(rng.choice(_PAYLOAD_TEMPLATES))
    if template["errorCode"] == "RATE_LIMIT":
        template["resetTime"] = now.isoformat()
    payload = {
        **template,
        "timestamp": created_date.isoformat(),
        "correlationId": f"corr-{int(now.timestamp() * 1000)}-{index}",
        "metadata": {
            "version": "1.0",
            "source": "iot-gateway",
            "region": rng.choice(_REGIONS),
        },
    }
    # placeholders are filled after serialisation so nested values are covered
    serialized = json.dumps(payload)
    while _RANDOM_TOKEN in serialized:
        serialized = serialized.replace(_RANDOM_TOKEN, _random_token(rng), 1)
    return json.loads(serialized)


def generate_mock_failures(
    count: int,
    offset: int = 0,
    *,
    org_ids: Sequence[str],
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[StreamFailureEntity]:
    """
    Generate *count* failures with ids starting at *offset*.

    Created dates fall within the 30 days before *now*; roughly 70% of
    failures carry an end date up to 7 days after creation.
    """

    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    failures: list[StreamFailureEntity] = []

    for i in range(count):
        index = offset + i
        created_date = now - timedelta(seconds=rng.random() * 30 * 24 * 60 * 60)
        end_date = None
        if rng.random() > 0.3:
            end_date = created_date + timedelta(seconds=rng.random() * 7 * 24 * 60 * 60)

        failures.append(
            StreamFailureEntity(
                id=format_failure_id(index),
                org_id=rng.choice(tuple(org_ids)),
                failure_status=rng.choice(KNOWN_FAILURE_STATUSES),
                created_date=created_date.isoformat(),
                end_date=end_date.isoformat() if end_date else None,
                failure_payload=_build_payload(rng, index=index, created_date=created_date, now=now),
            )
        )

    return failures
