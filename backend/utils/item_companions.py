"""Loading and editing the companions attached to trips and trip items."""

import logging
from typing import Optional

from sqlalchemy.orm import Session, joinedload

import models
from constants import PERMISSION_SOURCE_OWNER
from errors import NotFoundError
from utils.display import get_user_display_name

logger = logging.getLogger(__name__)


def _owner_entry(owner: models.User, **extra) -> dict:
    entry = {
        "id": None,
        "email": owner.email,
        "name": get_user_display_name(owner),
        "user_id": owner.id,
        "inherited_from_trip": False,
        "can_edit": True,
        "can_add_items": True,
        "permission_source": PERMISSION_SOURCE_OWNER,
        "status": None,
        "is_owner": True,
    }
    entry.update(extra)
    return entry


def load_trip_companions(db: Session, trip: models.Trip) -> list[dict]:
    """The trip's companions, with the owner first.

    Trips whose owner has no TripCompanion row of their own get a synthesized
    owner entry with ``id`` None.
    """
    links = (
        db.query(models.TripCompanion)
        .options(joinedload(models.TripCompanion.companion))
        .filter(models.TripCompanion.trip_id == trip.id)
        .order_by(models.TripCompanion.id)
        .all()
    )

    entries = []
    owner_entry = None
    for link in links:
        companion = link.companion
        entry = {
            "id": companion.id,
            "email": companion.email,
            "name": companion.name,
            "user_id": companion.user_id,
            "inherited_from_trip": False,
            "can_edit": bool(link.can_edit),
            "can_add_items": bool(link.can_add_items),
            "permission_source": link.permission_source,
            "status": None,
            "is_owner": companion.user_id == trip.user_id,
        }
        if entry["is_owner"] and owner_entry is None:
            owner_entry = entry
        else:
            entries.append(entry)

    if owner_entry is None:
        owner = db.query(models.User).filter(models.User.id == trip.user_id).first()
        if owner is not None:
            owner_entry = _owner_entry(owner)

    return ([owner_entry] if owner_entry else []) + entries


def _load_item_companion_entries(db: Session, item_type: str, item_id: int) -> list[dict]:
    rows = (
        db.query(models.ItemCompanion)
        .options(joinedload(models.ItemCompanion.companion))
        .filter(
            models.ItemCompanion.item_type == item_type,
            models.ItemCompanion.item_id == item_id,
        )
        .order_by(models.ItemCompanion.id)
        .all()
    )
    return [
        {
            "id": row.companion.id,
            "email": row.companion.email,
            "name": row.companion.name,
            "user_id": row.companion.user_id,
            "inherited_from_trip": bool(row.inherited_from_trip),
            "can_edit": bool(row.can_edit),
            "can_add_items": False,
            "permission_source": None,
            "status": row.status,
            "is_owner": False,
        }
        for row in rows
    ]


def load_item_companions_data(db: Session, item, item_type: str) -> dict:
    """Companions assigned to an item, and trip companions not yet on it.

    Returns ``{"item_companions", "trip_companions", "trip_owner_id"}``. A
    person present in the item list (matched by user id or companion id) is
    left out of the trip list.
    """
    item_companions = _load_item_companion_entries(db, item_type, item.id)

    if item.trip_id is None and item.user_id is not None:
        if not any(entry["user_id"] == item.user_id for entry in item_companions):
            owner = db.query(models.User).filter(models.User.id == item.user_id).first()
            if owner is not None:
                item_companions.insert(0, _owner_entry(owner))

    trip_companions = []
    trip_owner_id = None
    if item.trip_id is not None:
        trip = db.query(models.Trip).filter(models.Trip.id == item.trip_id).first()
        if trip is not None:
            trip_owner_id = trip.user_id
            trip_companions = load_trip_companions(db, trip)

    item_user_ids = {entry["user_id"] for entry in item_companions if entry["user_id"] is not None}
    item_companion_ids = {entry["id"] for entry in item_companions if entry["id"] is not None}
    trip_companions = [
        entry for entry in trip_companions
        if entry["user_id"] not in item_user_ids and entry["id"] not in item_companion_ids
    ]

    return {
        "item_companions": item_companions,
        "trip_companions": trip_companions,
        "trip_owner_id": trip_owner_id,
    }


def update_item_companions(
    db: Session,
    item_type: str,
    item,
    companion_ids: list[Optional[int]],
    acting_user_id: int,
) -> list[dict]:
    """Replace the set of companions explicitly attached to an item.

    Links that stay keep their provenance; new ones are explicit shares.
    ``None`` ids come from synthesized owner entries and are ignored.
    """
    wanted = {companion_id for companion_id in companion_ids if companion_id is not None}

    if wanted:
        found = {
            row.id for row in db.query(models.TravelCompanion.id).filter(
                models.TravelCompanion.id.in_(wanted)
            ).all()
        }
        missing = wanted - found
        if missing:
            raise NotFoundError(f"Companion(s) not found: {', '.join(str(i) for i in sorted(missing))}")

    current = db.query(models.ItemCompanion).filter(
        models.ItemCompanion.item_type == item_type,
        models.ItemCompanion.item_id == item.id,
    ).all()
    current_ids = {row.companion_id for row in current}

    for row in current:
        if row.companion_id not in wanted:
            db.delete(row)
    for companion_id in sorted(wanted - current_ids):
        db.add(models.ItemCompanion(
            item_type=item_type,
            item_id=item.id,
            companion_id=companion_id,
            added_by=acting_user_id,
            inherited_from_trip=False,
        ))
    db.commit()

    logger.info(
        "User %s set companions of %s %s to %s",
        acting_user_id, item_type, item.id, sorted(wanted),
    )
    return _load_item_companion_entries(db, item_type, item.id)
