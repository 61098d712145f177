from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from constants import (
    DEFAULT_CAN_VIEW,
    DEFAULT_CAN_EDIT,
    PERMISSION_SOURCE_EXPLICIT,
    ROLE_ATTENDEE,
    STATUS_ATTENDING,
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # stored lower-cased
    hashed_password = Column(String)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class TravelCompanion(Base):
    """A contact a user has added, one row per e-mail address system-wide."""
    __tablename__ = "travel_companions"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    name = Column(String, nullable=False)  # display name
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # null until linked to an account
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])
    linked_account = relationship("User", foreign_keys=[user_id])
    permissions = relationship(
        "CompanionPermission", back_populates="companion", cascade="all, delete-orphan"
    )


class CompanionPermission(Base):
    """What `granted_by` allows the other side of a companion record to do with their trips."""
    __tablename__ = "companion_permissions"
    __table_args__ = (
        UniqueConstraint("companion_id", "granted_by", name="uq_companion_permission"),
    )

    id = Column(Integer, primary_key=True, index=True)
    companion_id = Column(Integer, ForeignKey("travel_companions.id"), nullable=False, index=True)
    granted_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    can_view = Column(Boolean, nullable=False, default=DEFAULT_CAN_VIEW)
    can_edit = Column(Boolean, nullable=False, default=DEFAULT_CAN_EDIT)
    can_manage_companions = Column(Boolean, nullable=False, default=False)  # unused
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    companion = relationship("TravelCompanion", back_populates="permissions")


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # owner
    name = Column(String, nullable=False)
    departure_date = Column(String, nullable=True)  # ISO date string
    return_date = Column(String, nullable=True)  # ISO date string
    purpose = Column(String, nullable=True)
    is_confirmed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class TripAttendee(Base):
    __tablename__ = "trip_attendees"
    __table_args__ = (
        UniqueConstraint("trip_id", "email", name="uq_trip_attendee"),
    )

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    email = Column(String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_ATTENDEE)


class TripCompanion(Base):
    __tablename__ = "trip_companions"
    __table_args__ = (
        UniqueConstraint("trip_id", "companion_id", name="uq_trip_companion"),
    )

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    companion_id = Column(Integer, ForeignKey("travel_companions.id"), nullable=False, index=True)
    can_edit = Column(Boolean, nullable=False, default=False)
    can_add_items = Column(Boolean, nullable=False, default=False)
    added_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    permission_source = Column(String, nullable=False, default=PERMISSION_SOURCE_EXPLICIT)
    created_at = Column(DateTime, default=datetime.utcnow)

    companion = relationship("TravelCompanion")


class ItemCompanion(Base):
    __tablename__ = "item_companions"
    __table_args__ = (
        UniqueConstraint("item_type", "item_id", "companion_id", name="uq_item_companion"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_type = Column(String, nullable=False, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    companion_id = Column(Integer, ForeignKey("travel_companions.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=STATUS_ATTENDING)
    added_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    inherited_from_trip = Column(Boolean, nullable=False, default=False)  # cascade undo marker
    can_view = Column(Boolean, nullable=False, default=True)
    can_edit = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    companion = relationship("TravelCompanion")


# Trip items. Every kind shares user_id (creator) and a nullable trip_id;
# a null trip_id makes the item standalone.

class Flight(Base):
    __tablename__ = "flights"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    trip_id = Column(Integer, nullable=True, index=True)
    airline = Column(String, nullable=True)
    flight_number = Column(String, nullable=True)
    origin = Column(String, nullable=True)
    destination = Column(String, nullable=True)
    departure_datetime = Column(String, nullable=True)
    arrival_datetime = Column(String, nullable=True)


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    trip_id = Column(Integer, nullable=True, index=True)
    hotel_name = Column(String, nullable=True)
    address = Column(String, nullable=True)
    check_in_datetime = Column(String, nullable=True)
    check_out_datetime = Column(String, nullable=True)
    confirmation_number = Column(String, nullable=True)


class Transportation(Base):
    __tablename__ = "transportation"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    trip_id = Column(Integer, nullable=True, index=True)
    method = Column(String, nullable=True)
    origin = Column(String, nullable=True)
    destination = Column(String, nullable=True)
    departure_datetime = Column(String, nullable=True)
    arrival_datetime = Column(String, nullable=True)


class CarRental(Base):
    __tablename__ = "car_rentals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    trip_id = Column(Integer, nullable=True, index=True)
    company = Column(String, nullable=True)
    pickup_location = Column(String, nullable=True)
    dropoff_location = Column(String, nullable=True)
    pickup_datetime = Column(String, nullable=True)
    dropoff_datetime = Column(String, nullable=True)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    trip_id = Column(Integer, nullable=True, index=True)
    name = Column(String, nullable=True)
    location = Column(String, nullable=True)
    start_datetime = Column(String, nullable=True)
    end_datetime = Column(String, nullable=True)
    description = Column(String, nullable=True)
