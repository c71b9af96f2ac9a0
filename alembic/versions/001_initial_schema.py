"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if "metric_events" in set(inspector.get_table_names()):
        return

    op.create_table(
        "metric_events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("service_name", sa.String(100), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False, server_default="low"),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("response_time_ms", sa.Float, nullable=False),
        sa.Column("status_code", sa.Integer, nullable=False),
        sa.Column("request_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("cpu_usage_pct", sa.Float, nullable=True),
        sa.Column("mem_usage_pct", sa.Float, nullable=True),
        sa.CheckConstraint("request_count >= 1", name="ck_metric_events_request_count"),
    )
    op.create_index("ix_metric_events_service_name", "metric_events", ["service_name"])
    op.create_index("ix_metric_events_timestamp", "metric_events", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_metric_events_timestamp", table_name="metric_events")
    op.drop_index("ix_metric_events_service_name", table_name="metric_events")
    op.drop_table("metric_events")
