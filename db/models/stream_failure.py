"""
db/models/stream_failure.py

Stream failure record persisted by the SQL record store.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


def new_failure_id() -> str:
    return f"failure-{uuid.uuid4().hex[:16]}"


class StreamFailure(Base, TimestampMixin):
    __tablename__ = "stream_failures"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=new_failure_id,
    )
    org_id: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
    )
    failure_status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="PENDING, PROCESSING, FAILED, RESOLVED, ESCALATED (open set)",
    )
    created_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set once when the failure is resolved",
    )
    failure_payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Opaque device/stream payload",
    )

    __table_args__ = (
        Index("ix_stream_failures_org_id", "org_id"),
        Index("ix_stream_failures_failure_status", "failure_status"),
        Index("ix_stream_failures_created_date", "created_date"),
        Index("ix_stream_failures_end_date", "end_date"),
    )
