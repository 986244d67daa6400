"""
Database models -- SQLAlchemy ORM definitions.
Tables: trips, places, expenses, checklist_items.
Compatible with both PostgreSQL and SQLite.
"""

from datetime import datetime, timezone
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column("createdAt", DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column("updatedAt", DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class Trip(TimestampMixin, Base):
    """A travel plan spanning start_date..end_date (inclusive)."""
    __tablename__ = "trips"

    id = Column(Text, primary_key=True, default=_uuid)
    title = Column(Text, nullable=False, index=True)
    description = Column(Text)
    start_date = Column("startDate", Date, nullable=False)
    end_date = Column("endDate", Date, nullable=False)

    places = relationship("Place", back_populates="trip")
    expenses = relationship("Expense", back_populates="trip")
    checklist_items = relationship("ChecklistItem", back_populates="trip")

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class Place(TimestampMixin, Base):
    """
    A scheduled stop. ``order`` is 1-based and unique within (trip, day);
    this is maintained by the reorder logic, not by a constraint.
    ``operating_hours`` holds a JSON-encoded weekday -> hours mapping.
    """
    __tablename__ = "places"

    id = Column(Text, primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False, default="")
    time = Column(Text, nullable=False, default="")
    duration = Column(Text, nullable=False, default="1시간")
    day = Column(Integer, nullable=False)
    order = Column("order", Integer, nullable=False, default=1)
    category = Column(Text, nullable=False, default="restaurant")
    external_place_id = Column("placeId", Text)
    operating_hours = Column("operatingHours", Text)
    notes = Column(Text)
    trip_id = Column("tripId", Text, ForeignKey("trips.id"), nullable=False, index=True)

    trip = relationship("Trip", back_populates="places")


Index("ix_places_trip_day_order", Place.trip_id, Place.day, Place.order)


class Expense(TimestampMixin, Base):
    """
    A cost entry, always stored in KRW. ``place_id`` attaches it to a place;
    there is no foreign key so deleting a place leaves its expenses in place.
    """
    __tablename__ = "expenses"

    id = Column(Text, primary_key=True, default=_uuid)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Text, nullable=False, index=True)
    date = Column(Date, nullable=False)
    currency = Column(Text, nullable=False, default="KRW")
    place_id = Column("placeId", Text, index=True)
    trip_id = Column("tripId", Text, ForeignKey("trips.id"), nullable=False, index=True)

    trip = relationship("Trip", back_populates="expenses")


class ChecklistItem(TimestampMixin, Base):
    """Packing checklist entry."""
    __tablename__ = "checklist_items"

    id = Column(Text, primary_key=True, default=_uuid)
    title = Column(Text, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    category = Column(Text, nullable=False, default="기타")
    trip_id = Column("tripId", Text, ForeignKey("trips.id"), nullable=False, index=True)

    trip = relationship("Trip", back_populates="checklist_items")
