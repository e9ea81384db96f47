"""SQLAlchemy ORM models for trips, their materialized itinerary and history."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from itinerary_backend.app.db.ids import generate_id

ID_LENGTH = 191
VARCHAR_LENGTH = 256

# Plain JSON everywhere, JSONB on PostgreSQL
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Trip(Base):
    """Trip table - one planning document owned by one user."""

    __tablename__ = "trips"
    __table_args__ = (
        Index("trips_user_id_idx", "user_id"),
        Index("trips_user_state_idx", "user_id", "trip_state"),
        CheckConstraint(
            "budget_min_cents IS NULL OR budget_max_cents IS NULL "
            "OR budget_max_cents >= budget_min_cents",
            name="trips_budget_order_check",
        ),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    title: Mapped[str] = mapped_column(String(VARCHAR_LENGTH), nullable=False)
    trip_state: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default="DISCOVERY"
    )
    preferences: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    # Denormalized from preferences for querying
    origin: Mapped[str | None] = mapped_column(String(VARCHAR_LENGTH), nullable=True)
    destination: Mapped[str | None] = mapped_column(String(VARCHAR_LENGTH), nullable=True)
    start_date: Mapped[str | None] = mapped_column(String(VARCHAR_LENGTH), nullable=True)
    end_date: Mapped[str | None] = mapped_column(String(VARCHAR_LENGTH), nullable=True)
    budget_min_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    budget_max_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    last_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    days: Mapped[list["ItineraryDay"]] = relationship(
        "ItineraryDay", back_populates="trip", cascade="all, delete-orphan"
    )
    versions: Mapped[list["ItineraryVersion"]] = relationship(
        "ItineraryVersion", back_populates="trip", cascade="all, delete-orphan"
    )


class ItineraryDay(Base):
    """Materialized day rows - current view, rewritten on every batch."""

    __tablename__ = "itinerary_days"
    __table_args__ = (
        UniqueConstraint("trip_id", "day_index", name="itinerary_days_trip_day_unique_idx"),
        CheckConstraint("day_index > 0", name="itinerary_days_positive_idx"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    trip_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    day_index: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[str | None] = mapped_column(String(VARCHAR_LENGTH), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    trip: Mapped["Trip"] = relationship("Trip", back_populates="days")


class TripSource(Base):
    """Citation rows referenced by items."""

    __tablename__ = "trip_sources"
    __table_args__ = (Index("trip_sources_trip_id_idx", "trip_id"),)

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    trip_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    publisher: Mapped[str | None] = mapped_column(String(VARCHAR_LENGTH), nullable=True)
    snippet: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ItineraryItem(Base):
    """Materialized item rows - current view, rewritten on every batch."""

    __tablename__ = "itinerary_items"
    __table_args__ = (
        Index("itinerary_items_trip_id_idx", "trip_id"),
        UniqueConstraint("day_id", "position", name="itinerary_items_day_position_unique_idx"),
        CheckConstraint("position > 0", name="itinerary_items_positive_position"),
        CheckConstraint(
            "duration_min IS NULL OR duration_min > 0",
            name="itinerary_items_positive_duration",
        ),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    trip_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    day_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("itinerary_days.id", ondelete="CASCADE"), nullable=False
    )
    item_type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(VARCHAR_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    source_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), ForeignKey("trip_sources.id", ondelete="SET NULL"), nullable=True
    )
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ItineraryVersion(Base):
    """Immutable, append-only version history with full snapshots."""

    __tablename__ = "itinerary_versions"
    __table_args__ = (
        UniqueConstraint(
            "trip_id", "version_number", name="itinerary_versions_trip_version_unique_idx"
        ),
        UniqueConstraint(
            "trip_id",
            "client_operation_id",
            name="itinerary_versions_trip_operation_unique_idx",
        ),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    trip_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    base_version: Mapped[int] = mapped_column(Integer, nullable=False)
    client_operation_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    created_by: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    trip: Mapped["Trip"] = relationship("Trip", back_populates="versions")


class TripActionLog(Base):
    """Immutable audit record, one row per applied action."""

    __tablename__ = "trip_action_logs"
    __table_args__ = (
        Index("trip_action_logs_trip_id_idx", "trip_id", "created_at"),
        Index("trip_action_logs_trip_op_idx", "trip_id", "client_operation_id"),
        Index("trip_action_logs_version_idx", "version_id"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    trip_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    version_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), ForeignKey("itinerary_versions.id", ondelete="SET NULL"), nullable=True
    )
    client_operation_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    action_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="applied")
    error_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
