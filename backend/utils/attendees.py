"""Trip attendee bookkeeping: the people on a trip and their role."""

import logging

from sqlalchemy import case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models
from constants import ASSIGNABLE_ROLES, ROLE_OWNER
from errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from utils.display import get_companion_display_name, get_user_display_name
from utils.validation import get_user_by_email

logger = logging.getLogger(__name__)


def add_owner_attendee(db: Session, trip: models.Trip, owner: models.User) -> models.TripAttendee:
    """Record the trip owner as its first attendee. Called when a trip is created."""
    attendee = models.TripAttendee(
        trip_id=trip.id,
        user_id=owner.id,
        email=owner.email,
        first_name=owner.first_name,
        last_name=owner.last_name,
        name=get_user_display_name(owner),
        role=ROLE_OWNER,
    )
    db.add(attendee)
    db.commit()
    db.refresh(attendee)
    return attendee


def add_attendee(
    db: Session,
    trip: models.Trip,
    email: str,
    first_name: str | None = None,
    last_name: str | None = None,
    name: str | None = None,
    role: str = "attendee",
) -> models.TripAttendee:
    if role not in ASSIGNABLE_ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(ASSIGNABLE_ROLES)}")

    email = email.strip().lower()
    existing = db.query(models.TripAttendee).filter(
        models.TripAttendee.trip_id == trip.id,
        models.TripAttendee.email == email,
    ).first()
    if existing:
        logger.warning("%s is already attending trip %s", email, trip.id)
        raise ConflictError(f"{email} is already on this trip")

    user = get_user_by_email(db, email)
    attendee = models.TripAttendee(
        trip_id=trip.id,
        user_id=user.id if user else None,
        email=email,
        first_name=first_name,
        last_name=last_name,
        name=get_companion_display_name(first_name, last_name, name, email),
        role=role,
    )
    db.add(attendee)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"{email} is already on this trip")
    db.refresh(attendee)

    logger.info("Added attendee %s to trip %s as %s", attendee.id, trip.id, role)
    return attendee


def get_attendee_or_404(db: Session, trip_id: int, attendee_id: int) -> models.TripAttendee:
    attendee = db.query(models.TripAttendee).filter(
        models.TripAttendee.id == attendee_id,
        models.TripAttendee.trip_id == trip_id,
    ).first()
    if not attendee:
        raise NotFoundError("Attendee not found")
    return attendee


def remove_attendee(db: Session, attendee: models.TripAttendee) -> None:
    if attendee.role == ROLE_OWNER:
        raise ForbiddenError("The trip owner cannot be removed")

    trip_id, attendee_id = attendee.trip_id, attendee.id
    db.delete(attendee)
    db.commit()
    logger.info("Removed attendee %s from trip %s", attendee_id, trip_id)


def update_attendee_role(db: Session, attendee: models.TripAttendee, role: str) -> models.TripAttendee:
    if attendee.role == ROLE_OWNER:
        raise ForbiddenError("The trip owner's role cannot be changed")
    if role not in ASSIGNABLE_ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(ASSIGNABLE_ROLES)}")

    attendee.role = role
    db.commit()
    db.refresh(attendee)
    logger.info("Attendee %s of trip %s is now %s", attendee.id, attendee.trip_id, role)
    return attendee


def list_attendees(db: Session, trip_id: int) -> list[models.TripAttendee]:
    return db.query(models.TripAttendee).filter(
        models.TripAttendee.trip_id == trip_id
    ).order_by(
        case((models.TripAttendee.role == ROLE_OWNER, 0), else_=1),
        models.TripAttendee.id,
    ).all()
