"""
app/mappers/stream_failure_mapper.py

Conversion between store rows, drafts, and the canonical entity shape.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Mapping

from app.domain.stream_failure import FailureDraft, NewFailureRecord, StreamFailureEntity


def _iso(value: Any) -> str | None:
    """Return an ISO 8601 string for datetimes, pass strings through."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return str(value)


def normalize_payload(value: Any) -> dict[str, Any]:
    """
    Coerce a stored payload into a JSON object; anything else becomes ``{}``.
    """

    if isinstance(value, dict):
        return value
    return {}


def normalize_row(row: Mapping[str, Any]) -> StreamFailureEntity:
    """
    Build the canonical entity from one record store row.
    """

    return StreamFailureEntity(
        id=str(row["id"]),
        org_id=str(row.get("org_id") or ""),
        failure_status=str(row.get("failure_status") or ""),
        created_date=_iso(row.get("created_date")) or "",
        end_date=_iso(row.get("end_date")),
        failure_payload=normalize_payload(row.get("failure_payload")),
    )


def entity_to_row(entity: StreamFailureEntity) -> dict[str, Any]:
    return {
        "id": entity.id,
        "org_id": entity.org_id,
        "failure_status": entity.failure_status,
        "created_date": entity.created_date,
        "end_date": entity.end_date,
        "failure_payload": entity.failure_payload,
    }


def parse_draft_payload(text: str | None) -> dict[str, Any]:
    """
    Parse user-entered payload text.

    Blank text yields ``{}``. Text that is not JSON, or JSON that is not an
    object, is kept verbatim under ``message``.
    """

    raw = text or ""
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"message": raw}
    if not isinstance(parsed, dict):
        return {"message": raw}
    return parsed


def draft_to_record(draft: FailureDraft, *, now: datetime | None = None) -> NewFailureRecord:
    return NewFailureRecord(
        org_id=draft.org_id.strip(),
        failure_status=draft.failure_status.strip(),
        created_date=now or datetime.now(timezone.utc),
        end_date=None,
        failure_payload=parse_draft_payload(draft.payload_text),
    )
