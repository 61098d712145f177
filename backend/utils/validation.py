"""Lookup helpers for users, trips and companion records."""

from sqlalchemy.orm import Session

import models
from errors import ForbiddenError, NotFoundError


def get_user_by_email(db: Session, email: str):
    """Get a user by their email address (case-insensitive)."""
    if not email:
        return None
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def get_trip_or_404(db: Session, trip_id: int):
    """Get a trip by ID or raise 404 if not found."""
    trip = db.query(models.Trip).filter(models.Trip.id == trip_id).first()
    if not trip:
        raise NotFoundError("Trip not found")
    return trip


def get_companion_or_404(db: Session, companion_id: int):
    """Get a companion record by ID or raise 404 if not found."""
    companion = db.query(models.TravelCompanion).filter(
        models.TravelCompanion.id == companion_id
    ).first()
    if not companion:
        raise NotFoundError("Companion not found")
    return companion


def verify_trip_ownership(db: Session, trip_id: int, user_id: int):
    """Verify that a user owns a trip, raise 403 if not."""
    trip = get_trip_or_404(db, trip_id)
    if trip.user_id != user_id:
        raise ForbiddenError("Only the trip owner can perform this action")
    return trip
