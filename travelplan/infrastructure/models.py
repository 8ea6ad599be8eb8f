"""
SQLAlchemy ORM models for database tables.
These are separate from domain models to maintain clean architecture.
"""
from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    Date,
    Float,
    Text,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from travelplan.infrastructure.database import Base
from travelplan.infrastructure.db_types import GUID, ValueEnum
from travelplan.domain.models import AccommodationStatus, TravelItemType, TransportType


class TripModel(Base):
    """A user's trip spanning an inclusive calendar date range."""
    __tablename__ = "trips"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    hero_image_url = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    days = relationship(
        "TripDayModel",
        back_populates="trip",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TripDayModel.day_index",
    )


class TripDayModel(Base):
    """One calendar date of a trip. day_index is 1-based and dense."""
    __tablename__ = "trip_days"

    __table_args__ = (
        UniqueConstraint("trip_id", "day_index", name="uq_trip_days_trip_day_index"),
        UniqueConstraint("trip_id", "date", name="uq_trip_days_trip_date"),
    )

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    trip_id = Column(GUID(), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    day_index = Column(Integer, nullable=False)
    image_url = Column(String, nullable=True)
    note = Column(String(280), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    trip = relationship("TripModel", back_populates="days")
    accommodation = relationship(
        "AccommodationModel",
        back_populates="trip_day",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    plan_items = relationship(
        "DayPlanItemModel",
        back_populates="trip_day",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    travel_segments = relationship(
        "TravelSegmentModel",
        back_populates="trip_day",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AccommodationModel(Base):
    """The stay for a trip day (at most one per day)."""
    __tablename__ = "accommodations"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    trip_day_id = Column(
        GUID(), ForeignKey("trip_days.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    name = Column(String, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(ValueEnum(AccommodationStatus), nullable=False, default=AccommodationStatus.PLANNED)
    cost_cents = Column(Integer, nullable=True)
    link = Column(String(2000), nullable=True)
    check_in_time = Column(String(5), nullable=True)  # HH:mm
    check_out_time = Column(String(5), nullable=True)  # HH:mm

    # Location is all-or-nothing: lat and lng are both set or both null
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)
    location_label = Column(String(200), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    trip_day = relationship("TripDayModel", back_populates="accommodation")


class DayPlanItemModel(Base):
    """An entry of a day's plan; ordered by from_time, then created_at, then id."""
    __tablename__ = "day_plan_items"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    trip_day_id = Column(GUID(), ForeignKey("trip_days.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=True)
    content_json = Column(Text, nullable=False)
    from_time = Column(String(5), nullable=True)  # HH:mm
    to_time = Column(String(5), nullable=True)  # HH:mm
    cost_cents = Column(Integer, nullable=True)
    link_url = Column(String(2000), nullable=True)

    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)
    location_label = Column(String(200), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    trip_day = relationship("TripDayModel", back_populates="plan_items")


class TravelSegmentModel(Base):
    """Movement between two adjacent anchors of a trip day."""
    __tablename__ = "travel_segments"

    # A pair of anchors can only be connected once per day
    __table_args__ = (
        UniqueConstraint(
            "trip_day_id", "from_item_type", "from_item_id", "to_item_type", "to_item_id",
            name="uq_travel_segments_day_from_to",
        ),
    )

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    trip_day_id = Column(GUID(), ForeignKey("trip_days.id", ondelete="CASCADE"), nullable=False, index=True)

    # Polymorphic anchor references (accommodation or day plan item), not foreign keys
    from_item_type = Column(ValueEnum(TravelItemType), nullable=False)
    from_item_id = Column(GUID(), nullable=False, index=True)
    to_item_type = Column(ValueEnum(TravelItemType), nullable=False)
    to_item_id = Column(GUID(), nullable=False, index=True)

    transport_type = Column(ValueEnum(TransportType), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    distance_km = Column(Float, nullable=True)
    link_url = Column(String(2000), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    trip_day = relationship("TripDayModel", back_populates="travel_segments")
