"""create stream_failures table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "stream_failures",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("org_id", sa.String(length=120), nullable=False),
        sa.Column("failure_status", sa.String(length=32), nullable=False),
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failure_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stream_failures_org_id", "stream_failures", ["org_id"], unique=False)
    op.create_index("ix_stream_failures_failure_status", "stream_failures", ["failure_status"], unique=False)
    op.create_index("ix_stream_failures_created_date", "stream_failures", ["created_date"], unique=False)
    op.create_index("ix_stream_failures_end_date", "stream_failures", ["end_date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_stream_failures_end_date", table_name="stream_failures")
    op.drop_index("ix_stream_failures_created_date", table_name="stream_failures")
    op.drop_index("ix_stream_failures_failure_status", table_name="stream_failures")
    op.drop_index("ix_stream_failures_org_id", table_name="stream_failures")
    op.drop_table("stream_failures")
