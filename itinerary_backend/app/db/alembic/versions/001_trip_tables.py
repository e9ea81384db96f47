"""trip tables: trips, days, sources, items, versions, action logs

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ID = sa.String(191)
JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

# Child tables carry no owner column; policies join through trips.user_id
_CHILD_TABLES = (
    "itinerary_days",
    "trip_sources",
    "itinerary_items",
    "itinerary_versions",
    "trip_action_logs",
)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Create trip tables, constraints and indexes (plus RLS on PostgreSQL)."""
    op.create_table(
        "trips",
        sa.Column("id", ID, primary_key=True),
        sa.Column("user_id", ID, nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("trip_state", sa.String(32), nullable=False, server_default="DISCOVERY"),
        sa.Column("preferences", JSON, nullable=False),
        sa.Column("origin", sa.String(256)),
        sa.Column("destination", sa.String(256)),
        sa.Column("start_date", sa.String(256)),
        sa.Column("end_date", sa.String(256)),
        sa.Column("budget_min_cents", sa.Integer),
        sa.Column("budget_max_cents", sa.Integer),
        sa.Column("currency", sa.String(3)),
        sa.Column("last_version", sa.Integer, nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "budget_min_cents IS NULL OR budget_max_cents IS NULL "
            "OR budget_max_cents >= budget_min_cents",
            name="trips_budget_order_check",
        ),
    )
    op.create_index("trips_user_id_idx", "trips", ["user_id"])
    op.create_index("trips_user_state_idx", "trips", ["user_id", "trip_state"])

    op.create_table(
        "itinerary_days",
        sa.Column("id", ID, primary_key=True),
        sa.Column("trip_id", ID, sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_index", sa.Integer, nullable=False),
        sa.Column("date", sa.String(256)),
        _timestamp("created_at"),
        sa.UniqueConstraint("trip_id", "day_index", name="itinerary_days_trip_day_unique_idx"),
        sa.CheckConstraint("day_index > 0", name="itinerary_days_positive_idx"),
    )

    op.create_table(
        "trip_sources",
        sa.Column("id", ID, primary_key=True),
        sa.Column("trip_id", ID, sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column("title", sa.Text),
        sa.Column("publisher", sa.String(256)),
        sa.Column("snippet", sa.Text),
        _timestamp("created_at"),
    )
    op.create_index("trip_sources_trip_id_idx", "trip_sources", ["trip_id"])

    op.create_table(
        "itinerary_items",
        sa.Column("id", ID, primary_key=True),
        sa.Column("trip_id", ID, sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "day_id", ID, sa.ForeignKey("itinerary_days.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("item_type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("location", sa.Text),
        sa.Column("duration_min", sa.Integer),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("source_id", ID, sa.ForeignKey("trip_sources.id", ondelete="SET NULL")),
        sa.Column("metadata", JSON, nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("day_id", "position", name="itinerary_items_day_position_unique_idx"),
        sa.CheckConstraint("position > 0", name="itinerary_items_positive_position"),
        sa.CheckConstraint(
            "duration_min IS NULL OR duration_min > 0", name="itinerary_items_positive_duration"
        ),
    )
    op.create_index("itinerary_items_trip_id_idx", "itinerary_items", ["trip_id"])

    op.create_table(
        "itinerary_versions",
        sa.Column("id", ID, primary_key=True),
        sa.Column("trip_id", ID, sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version_number", sa.Integer, nullable=False),
        sa.Column("base_version", sa.Integer, nullable=False),
        sa.Column("client_operation_id", ID, nullable=False),
        sa.Column("summary", sa.Text),
        sa.Column("snapshot", JSON, nullable=False),
        sa.Column("created_by", ID, nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint(
            "trip_id", "version_number", name="itinerary_versions_trip_version_unique_idx"
        ),
        sa.UniqueConstraint(
            "trip_id", "client_operation_id", name="itinerary_versions_trip_operation_unique_idx"
        ),
    )

    op.create_table(
        "trip_action_logs",
        sa.Column("id", ID, primary_key=True),
        sa.Column("trip_id", ID, sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version_id", ID, sa.ForeignKey("itinerary_versions.id", ondelete="SET NULL")),
        sa.Column("client_operation_id", ID, nullable=False),
        sa.Column("action_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("action_type", sa.String(64), nullable=False),
        sa.Column("payload", JSON, nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="applied"),
        sa.Column("error_text", sa.Text),
        sa.Column("created_by", ID, nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("trip_action_logs_trip_id_idx", "trip_action_logs", ["trip_id", "created_at"])
    op.create_index(
        "trip_action_logs_trip_op_idx", "trip_action_logs", ["trip_id", "client_operation_id"]
    )
    op.create_index("trip_action_logs_version_idx", "trip_action_logs", ["version_id"])

    if op.get_bind().dialect.name == "postgresql":
        op.execute("ALTER TABLE trips ENABLE ROW LEVEL SECURITY")
        op.execute(
            "CREATE POLICY users_manage_own_trips ON trips FOR ALL "
            "USING (user_id = current_setting('app.current_user_id', true)) "
            "WITH CHECK (user_id = current_setting('app.current_user_id', true))"
        )
        for table in _CHILD_TABLES:
            op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
            op.execute(
                f"CREATE POLICY users_manage_own_{table} ON {table} FOR ALL "
                f"USING (EXISTS (SELECT 1 FROM trips WHERE trips.id = {table}.trip_id "
                "AND trips.user_id = current_setting('app.current_user_id', true)))"
            )


def downgrade() -> None:
    """Drop trip tables."""
    op.drop_index("trip_action_logs_version_idx", table_name="trip_action_logs")
    op.drop_index("trip_action_logs_trip_op_idx", table_name="trip_action_logs")
    op.drop_index("trip_action_logs_trip_id_idx", table_name="trip_action_logs")
    op.drop_table("trip_action_logs")
    op.drop_table("itinerary_versions")
    op.drop_index("itinerary_items_trip_id_idx", table_name="itinerary_items")
    op.drop_table("itinerary_items")
    op.drop_index("trip_sources_trip_id_idx", table_name="trip_sources")
    op.drop_table("trip_sources")
    op.drop_table("itinerary_days")
    op.drop_index("trips_user_state_idx", table_name="trips")
    op.drop_index("trips_user_id_idx", table_name="trips")
    op.drop_table("trips")
