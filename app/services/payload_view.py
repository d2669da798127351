"""
app/services/payload_view.py

Detail view of one failure: formatted metadata plus the pretty-printed
payload, and a copy action routed through the clipboard port.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from app.domain.stream_failure import StreamFailureEntity, parse_instant
from app.services.ports import Clipboard, Notifier
from app.services.status_presentation import StatusPresentation, status_presentation

NOT_COMPLETED = "Not completed"
_DATE_FORMAT = "%b %d, %Y %H:%M"


@dataclass(frozen=True)
class PayloadDetail:
    id: str
    org_id: str
    failure_status: str
    status: StatusPresentation
    created_display: str
    end_display: str
    payload: dict[str, Any]
    payload_json: str


def render_payload(entity: StreamFailureEntity) -> str:
    return json.dumps(entity.failure_payload, indent=2, default=str, ensure_ascii=False)


def format_timestamp(value: str | None, *, missing: str = "-") -> str:
    """
    Human-readable timestamp; unparseable input is shown as-is.
    """

    if not value:
        return missing
    parsed = parse_instant(value)
    if parsed is None:
        return value
    return parsed.strftime(_DATE_FORMAT)


def build_payload_detail(entity: StreamFailureEntity) -> PayloadDetail:
    return PayloadDetail(
        id=entity.id,
        org_id=entity.org_id,
        failure_status=entity.failure_status,
        status=status_presentation(entity.failure_status),
        created_display=format_timestamp(entity.created_date),
        end_display=format_timestamp(entity.end_date, missing=NOT_COMPLETED),
        payload=entity.failure_payload,
        payload_json=render_payload(entity),
    )


def copy_payload(
    entity: StreamFailureEntity,
    *,
    clipboard: Clipboard,
    notifier: Notifier,
) -> str:
    """
    Copy the pretty-printed payload and confirm through *notifier*.
    """

    text = render_payload(entity)
    clipboard.write_text(text)
    notifier.notify("Copied to clipboard", "Payload has been copied to your clipboard.")
    return text
