"""
db/base.py

Declarative base and the audit timestamp mixin for SQLAlchemy models.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Project-wide declarative base.

    JSON object columns map to PostgreSQL JSONB unless a model says otherwise.
    """

    type_annotation_map: dict[type, Any] = {
        dict[str, Any]: JSONB,
    }


class TimestampMixin:
    """
    Store-assigned audit timestamps.

    Both are set by the database on insert; updated_at moves forward on
    every UPDATE issued through the ORM.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
