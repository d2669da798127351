"""
app/services/status_presentation.py

Single status -> display attribute lookup shared by every renderer.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.stream_failure import FailureStatus


@dataclass(frozen=True)
class StatusPresentation:
    label: str
    color: str
    badge_class: str


_FALLBACK_COLOR = "gray"

_STATUS_COLORS: dict[str, str] = {
    FailureStatus.PENDING: "yellow",
    FailureStatus.PROCESSING: "blue",
    FailureStatus.FAILED: "red",
    FailureStatus.RESOLVED: "green",
    FailureStatus.ESCALATED: "purple",
}


def _badge_class(color: str) -> str:
    return f"bg-{color}-100 text-{color}-800"


def status_presentation(status: str | None) -> StatusPresentation:
    """
    Return display attributes for *status*.

    Unknown or empty statuses render with the neutral fallback rather than
    being rejected.
    """

    label = (status or "").strip() or "UNKNOWN"
    color = _STATUS_COLORS.get(label, _FALLBACK_COLOR)
    return StatusPresentation(label=label, color=color, badge_class=_badge_class(color))
