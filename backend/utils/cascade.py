"""Propagation of trip-level companions down to the trip's items.

Adding a companion to a trip links them to every item already on the trip,
and new items pick up the trip's current companions. Links created this way
are marked ``inherited_from_trip`` so removing the companion from the trip
deletes exactly those links and leaves explicit item-level shares alone.

Fan-out is best-effort: the trip link or item write is the primary operation
and is committed first; a failure while creating inherited links is logged and
rolled back without failing the request.
"""

import logging
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import models
from constants import ACCESS_MANAGE, PERMISSION_SOURCE_EXPLICIT, PERMISSION_SOURCE_MANAGE_TRAVEL, PERMISSION_SOURCES
from errors import ConflictError, NotFoundError, ValidationError
from utils.items import ITEM_MODELS, items_in_trip
from utils.permissions import resolve_full_access

logger = logging.getLogger(__name__)


def _item_filter(pairs: list[tuple[str, int]]):
    """SQL condition matching ItemCompanion rows for any of the given items."""
    by_type: dict[str, list[int]] = {}
    for item_type, item_id in pairs:
        by_type.setdefault(item_type, []).append(item_id)
    return or_(*[
        and_(models.ItemCompanion.item_type == item_type, models.ItemCompanion.item_id.in_(ids))
        for item_type, ids in by_type.items()
    ])


def _insert_inherited_links(
    db: Session,
    links: list[tuple[str, int, int, bool]],
    acting_user_id: int,
) -> int:
    """Insert inherited ItemCompanion rows, skipping pairs that already exist.

    ``links`` holds ``(item_type, item_id, companion_id, can_edit)`` tuples.
    """
    created = 0
    for item_type, item_id, companion_id, can_edit in links:
        exists = db.query(models.ItemCompanion.id).filter(
            models.ItemCompanion.item_type == item_type,
            models.ItemCompanion.item_id == item_id,
            models.ItemCompanion.companion_id == companion_id,
        ).first()
        if exists:
            continue
        db.add(models.ItemCompanion(
            item_type=item_type,
            item_id=item_id,
            companion_id=companion_id,
            added_by=acting_user_id,
            inherited_from_trip=True,
            can_view=True,
            can_edit=can_edit,
        ))
        db.flush()
        created += 1
    db.commit()
    return created


def add_companion_to_trip(
    db: Session,
    trip_id: int,
    companion_id: int,
    acting_user_id: int,
    can_edit: bool = False,
    can_add_items: bool = False,
    permission_source: str = PERMISSION_SOURCE_EXPLICIT,
) -> models.TripCompanion:
    """Put a companion on a trip and link them to the trip's existing items.

    A companion whose account holds the trip owner's manage grant joins as
    ``manage_travel`` with edit and add-items rights, whatever was asked for.
    """
    if permission_source not in PERMISSION_SOURCES:
        raise ValidationError(f"permission_source must be one of: {', '.join(PERMISSION_SOURCES)}")

    trip = db.query(models.Trip).filter(models.Trip.id == trip_id).first()
    companion = db.query(models.TravelCompanion).filter(models.TravelCompanion.id == companion_id).first()
    if trip is None or companion is None:
        raise NotFoundError("Trip or companion not found")
    if (
        companion.user_id is not None
        and companion.user_id != trip.user_id
        and resolve_full_access(db, companion.user_id, trip.user_id, ACCESS_MANAGE)
    ):
        permission_source = PERMISSION_SOURCE_MANAGE_TRAVEL
        can_edit = True
        can_add_items = True

    existing = db.query(models.TripCompanion).filter(
        models.TripCompanion.trip_id == trip_id,
        models.TripCompanion.companion_id == companion_id,
    ).first()
    if existing:
        logger.warning("Companion %s is already on trip %s", companion_id, trip_id)
        raise ConflictError("Companion is already on this trip")

    link = models.TripCompanion(
        trip_id=trip_id,
        companion_id=companion_id,
        can_edit=can_edit,
        can_add_items=can_add_items,
        added_by=acting_user_id,
        permission_source=permission_source,
    )
    db.add(link)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Companion %s is already on trip %s", companion_id, trip_id)
        raise ConflictError("Companion is already on this trip")
    db.refresh(link)
    logger.info("User %s added companion %s to trip %s", acting_user_id, companion_id, trip_id)

    try:
        links = [
            (item_type, item_id, companion_id, can_edit)
            for item_type, item_id in items_in_trip(db, trip_id)
        ]
        created = _insert_inherited_links(db, links, acting_user_id)
        logger.debug("Linked companion %s to %d item(s) of trip %s", companion_id, created, trip_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to link companion %s to the items of trip %s", companion_id, trip_id)

    db.refresh(link)
    return link


def remove_companion_from_trip(db: Session, trip_id: int, companion_id: int) -> bool:
    """Remove a companion from a trip and from the items they inherited from it."""
    link = db.query(models.TripCompanion).filter(
        models.TripCompanion.trip_id == trip_id,
        models.TripCompanion.companion_id == companion_id,
    ).first()
    if link is None:
        return False

    pairs = items_in_trip(db, trip_id)
    removed = 0
    if pairs:
        removed = db.query(models.ItemCompanion).filter(
            models.ItemCompanion.companion_id == companion_id,
            models.ItemCompanion.inherited_from_trip.is_(True),
            _item_filter(pairs),
        ).delete(synchronize_session=False)

    db.delete(link)
    db.commit()

    logger.info("Removed companion %s from trip %s (%d inherited item link(s))", companion_id, trip_id, removed)
    return True


def auto_add_trip_companions(
    db: Session,
    item_type: str,
    item_id: int,
    trip_id: Optional[int],
    acting_user_id: int,
) -> int:
    """Give a newly created or moved item the trip's current companions.

    Safe to call repeatedly. Returns the number of links created; failures
    are logged and reported as 0.
    """
    if trip_id is None:
        return 0

    try:
        trip_links = db.query(models.TripCompanion).filter(
            models.TripCompanion.trip_id == trip_id
        ).all()
        links = [
            (item_type, item_id, trip_link.companion_id, trip_link.can_edit)
            for trip_link in trip_links
        ]
        created = _insert_inherited_links(db, links, acting_user_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to add trip %s companions to %s %s", trip_id, item_type, item_id)
        return 0

    logger.debug("Added %d trip companion(s) to %s %s", created, item_type, item_id)
    return created


def update_trip_companion_permissions(
    db: Session,
    trip_id: int,
    companion_id: int,
    can_edit: Optional[bool] = None,
    can_add_items: Optional[bool] = None,
) -> models.TripCompanion:
    """Change a trip companion's grants and mirror ``can_edit`` onto inherited item links."""
    link = db.query(models.TripCompanion).filter(
        models.TripCompanion.trip_id == trip_id,
        models.TripCompanion.companion_id == companion_id,
    ).first()
    if link is None:
        raise NotFoundError("Companion is not on this trip")

    if can_add_items is not None:
        link.can_add_items = can_add_items
    if can_edit is not None:
        link.can_edit = can_edit
        pairs = items_in_trip(db, trip_id)
        if pairs:
            db.query(models.ItemCompanion).filter(
                models.ItemCompanion.companion_id == companion_id,
                models.ItemCompanion.inherited_from_trip.is_(True),
                _item_filter(pairs),
            ).update({"can_edit": can_edit}, synchronize_session=False)

    db.commit()
    db.refresh(link)

    logger.info(
        "Updated companion %s on trip %s: edit=%s add_items=%s",
        companion_id, trip_id, link.can_edit, link.can_add_items,
    )
    return link


def move_item_to_trip(db: Session, item_type: str, item, new_trip_id: Optional[int], acting_user_id: int):
    """Re-point an item at another trip (or none) and swap its inherited companions."""
    if item.trip_id == new_trip_id:
        return item

    old_trip_id = item.trip_id
    db.query(models.ItemCompanion).filter(
        models.ItemCompanion.item_type == item_type,
        models.ItemCompanion.item_id == item.id,
        models.ItemCompanion.inherited_from_trip.is_(True),
    ).delete(synchronize_session=False)
    item.trip_id = new_trip_id
    db.commit()
    db.refresh(item)

    logger.info("Moved %s %s from trip %s to trip %s", item_type, item.id, old_trip_id, new_trip_id)
    auto_add_trip_companions(db, item_type, item.id, new_trip_id, acting_user_id)
    return item


def delete_trip(db: Session, trip: models.Trip) -> None:
    """Delete a trip with its companions, attendees, items and their companion links."""
    trip_id = trip.id
    pairs = items_in_trip(db, trip_id)
    if pairs:
        db.query(models.ItemCompanion).filter(_item_filter(pairs)).delete(synchronize_session=False)
    for model in ITEM_MODELS.values():
        db.query(model).filter(model.trip_id == trip_id).delete(synchronize_session=False)
    db.query(models.TripCompanion).filter(
        models.TripCompanion.trip_id == trip_id
    ).delete(synchronize_session=False)
    db.query(models.TripAttendee).filter(
        models.TripAttendee.trip_id == trip_id
    ).delete(synchronize_session=False)
    db.delete(trip)
    db.commit()

    logger.info("Deleted trip %s with %d item(s)", trip_id, len(pairs))
