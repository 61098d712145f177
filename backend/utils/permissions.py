"""Permission resolution for trips, trip items and delegated full access.

None of these functions raise for "access denied". They answer with
``False``/``None`` and leave the HTTP status to the caller.
"""

from typing import Optional

from sqlalchemy import and_, case, or_
from sqlalchemy.orm import Session

import models
from constants import ACCESS_MANAGE, ACCESS_VIEW, ROLE_OWNER


def resolve_item_permissions(db: Session, item, user_id: int) -> dict[str, bool]:
    """Return ``{"can_edit": ..., "can_delete": ...}`` for ``user_id`` on ``item``.

    The item creator and the owner of the item's trip always get full access.
    Anyone else needs a TripCompanion row on the item's trip whose companion
    record is linked to their account; edit and delete share that row's
    ``can_edit`` flag. Standalone items are owner-only.
    """
    if item.user_id == user_id:
        return {"can_edit": True, "can_delete": True}

    if item.trip_id is None:
        return {"can_edit": False, "can_delete": False}

    trip = db.query(models.Trip).filter(models.Trip.id == item.trip_id).first()
    if trip is None:
        return {"can_edit": False, "can_delete": False}
    if trip.user_id == user_id:
        return {"can_edit": True, "can_delete": True}

    link = (
        db.query(models.TripCompanion)
        .join(models.TravelCompanion, models.TripCompanion.companion_id == models.TravelCompanion.id)
        .filter(
            models.TripCompanion.trip_id == item.trip_id,
            models.TravelCompanion.user_id == user_id,
        )
        .order_by(models.TripCompanion.can_edit.desc())
        .first()
    )
    if link is None:
        return {"can_edit": False, "can_delete": False}

    return {"can_edit": bool(link.can_edit), "can_delete": bool(link.can_edit)}


def resolve_trip_role(db: Session, user_id: int, trip_id: int) -> Optional[str]:
    """'owner', the caller's attendee role, or None when they have no role on the trip."""
    trip = db.query(models.Trip).filter(models.Trip.id == trip_id).first()
    if trip is None:
        return None
    if trip.user_id == user_id:
        return ROLE_OWNER

    attendee = db.query(models.TripAttendee).filter(
        models.TripAttendee.trip_id == trip_id,
        models.TripAttendee.user_id == user_id,
    ).first()
    return attendee.role if attendee else None


def get_full_access_grant(db: Session, user_id: int, owner_id: int) -> Optional[models.CompanionPermission]:
    """The owner's CompanionPermission row that governs delegated access for ``user_id``.

    The grant sits on the companion record linking the two users. The record
    may be the one the owner created for the user or the one the user created
    for the owner; the former wins when both exist.
    """
    companion = models.TravelCompanion
    return (
        db.query(models.CompanionPermission)
        .join(companion, models.CompanionPermission.companion_id == companion.id)
        .filter(
            models.CompanionPermission.granted_by == owner_id,
            or_(
                and_(companion.created_by == owner_id, companion.user_id == user_id),
                and_(companion.created_by == user_id, companion.user_id == owner_id),
            ),
        )
        .order_by(case((companion.created_by == owner_id, 0), else_=1))
        .first()
    )


def resolve_full_access(db: Session, user_id: int, owner_id: int, access_type: str) -> bool:
    """Whether ``owner_id`` has delegated view/manage of all their trips to ``user_id``."""
    if user_id == owner_id:
        return True
    if access_type not in (ACCESS_VIEW, ACCESS_MANAGE):
        return False

    grant = get_full_access_grant(db, user_id, owner_id)
    if grant is None:
        return False

    if access_type == ACCESS_VIEW:
        return bool(grant.can_view or grant.can_edit)
    return bool(grant.can_edit)
