"""SQLAlchemy ORM models for dispatch persistence."""

from datetime import datetime

from sqlalchemy import Boolean, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .utils import utc_now


class Base(DeclarativeBase):
    pass


class RiderLocation(Base):
    """Presence registry: one row per rider, never deleted."""

    __tablename__ = "rider_locations"

    rider_id: Mapped[str] = mapped_column(String, primary_key=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # False until the first GPS fix replaces the placeholder coordinates
    location_reported: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_updated: Mapped[datetime] = mapped_column(default=lambda: utc_now())

    __table_args__ = (
        Index("idx_rider_location_duty", "is_online", "is_available"),
        Index("idx_rider_location_updated", "last_updated"),
    )


class RideRequest(Base):
    __tablename__ = "ride_requests"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    passenger_id: Mapped[str] = mapped_column(String, nullable=False)
    pickup_label: Mapped[str] = mapped_column(String, nullable=False, default="")
    pickup_lat: Mapped[float] = mapped_column(Float, nullable=False)
    pickup_lng: Mapped[float] = mapped_column(Float, nullable=False)
    dropoff_label: Mapped[str] = mapped_column(String, nullable=False, default="")
    dropoff_lat: Mapped[float] = mapped_column(Float, nullable=False)
    dropoff_lng: Mapped[float] = mapped_column(Float, nullable=False)
    vehicle_type: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    assigned_rider_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cancelled_rider_id: Mapped[str | None] = mapped_column(String, nullable=True)
    estimated_fare: Mapped[float] = mapped_column(Float, nullable=False)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    cancelled_by: Mapped[str | None] = mapped_column(String, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    arrived_at: Mapped[datetime | None] = mapped_column(nullable=True)
    picked_up_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(default=lambda: utc_now())

    __table_args__ = (
        Index("idx_ride_request_status_vehicle", "status", "vehicle_type"),
        Index("idx_ride_request_passenger", "passenger_id"),
        Index("idx_ride_request_rider", "assigned_rider_id"),
        Index("idx_ride_request_cancelled_rider", "cancelled_rider_id"),
    )


class RideRequestResponse(Base):
    """Response ledger: at most one row per (request, rider)."""

    __tablename__ = "ride_request_responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[str] = mapped_column(String, nullable=False)
    rider_id: Mapped[str] = mapped_column(String, nullable=False)
    response: Mapped[str] = mapped_column(String, nullable=False)
    response_time_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: utc_now())
    updated_at: Mapped[datetime] = mapped_column(default=lambda: utc_now())

    __table_args__ = (
        UniqueConstraint("request_id", "rider_id", name="uq_response_request_rider"),
        Index("idx_response_rider", "rider_id"),
    )


class Vehicle(Base):
    __tablename__ = "vehicles"

    rider_id: Mapped[str] = mapped_column(String, primary_key=True)
    vehicle_type: Mapped[str] = mapped_column(String, nullable=False)
    model: Mapped[str | None] = mapped_column(String, nullable=True)
    plate_number: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )

    __table_args__ = (Index("idx_vehicle_type", "vehicle_type"),)


class DispatchMetadata(Base):
    __tablename__ = "dispatch_metadata"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )
