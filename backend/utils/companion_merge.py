"""Merged, one-row-per-person view of a user's companion relationships.

A relationship between two users can be represented by the record I created
for them, the record they created for me, or both. Each record carries a grant
from its creator and possibly one from the linked user. The merged entry
reports four independent flags:

    can_share_trips     I let them view my trips
    they_manage_trips   I let them edit my trips
    they_share_trips    they let me view their trips
    can_manage_trips    they let me edit their trips

Entries are keyed by the counterpart's lower-cased e-mail. When I created a
record for the counterpart, its id is the entry id.
"""

import logging

from sqlalchemy.orm import Session, joinedload

import models
from constants import DEFAULT_CAN_EDIT, DEFAULT_CAN_VIEW
from utils.display import get_companion_display_name

logger = logging.getLogger(__name__)


def _grant_from(companion: models.TravelCompanion, user_id):
    if user_id is None:
        return None
    for grant in companion.permissions:
        if grant.granted_by == user_id:
            return grant
    return None


def merge_companion_views(db: Session, user_id: int) -> list[dict]:
    """Build one entry per counterpart from the records on both sides.

    The first pass walks records I created (skipping one linked to my own
    account). My grant gives ``can_share_trips``/``they_manage_trips`` and
    defaults to view-only when missing. The linked user's grant on the same
    record gives ``they_share_trips``/``can_manage_trips``; without one those
    read as False.

    The second pass walks records others created for me, keyed by the
    creator's e-mail. For a counterpart already seen it marks
    ``they_invited`` and fills the "they grant me" flags from the creator's
    grant, unless the first pass took them from the counterpart's grant on my
    record. A counterpart seen only here gets a synthesized entry where
    missing grants default to view-only.

    Sorted by display name, case-insensitive.
    """
    merged: dict[str, dict] = {}
    # Keys whose "they grant me" flags came from the counterpart's own grant
    # on my record. The second pass must not overwrite those.
    derived: set[str] = set()

    created_by_me = (
        db.query(models.TravelCompanion)
        .options(joinedload(models.TravelCompanion.permissions))
        .filter(models.TravelCompanion.created_by == user_id)
        .all()
    )
    for companion in created_by_me:
        if companion.user_id == user_id:
            continue

        key = companion.email.lower()
        mine = _grant_from(companion, user_id)
        theirs = _grant_from(companion, companion.user_id)
        if theirs is not None:
            derived.add(key)

        merged[key] = {
            "id": companion.id,
            "companion_id": companion.id,
            "email": companion.email,
            "name": companion.name,
            "first_name": companion.first_name,
            "last_name": companion.last_name,
            "phone": companion.phone,
            "user_id": companion.user_id,
            "can_share_trips": mine.can_view if mine else DEFAULT_CAN_VIEW,
            "they_manage_trips": mine.can_edit if mine else DEFAULT_CAN_EDIT,
            "they_share_trips": bool(theirs.can_view) if theirs else False,
            "can_manage_trips": bool(theirs.can_edit) if theirs else False,
            "you_invited": True,
            "they_invited": False,
            "has_linked_user": companion.user_id is not None,
            "their_companion_id": None,
        }

    created_for_me = (
        db.query(models.TravelCompanion)
        .options(
            joinedload(models.TravelCompanion.permissions),
            joinedload(models.TravelCompanion.creator),
        )
        .filter(
            models.TravelCompanion.user_id == user_id,
            models.TravelCompanion.created_by != user_id,
        )
        .all()
    )
    for companion in created_for_me:
        creator = companion.creator
        key = creator.email.lower()
        theirs = _grant_from(companion, companion.created_by)
        mine = _grant_from(companion, user_id)

        entry = merged.get(key)
        if entry is not None:
            entry["they_invited"] = True
            entry["their_companion_id"] = companion.id
            if key not in derived:
                entry["they_share_trips"] = theirs.can_view if theirs else DEFAULT_CAN_VIEW
                entry["can_manage_trips"] = theirs.can_edit if theirs else DEFAULT_CAN_EDIT
            continue

        merged[key] = {
            "id": companion.id,
            "companion_id": companion.id,
            "email": creator.email,
            "name": get_companion_display_name(creator.first_name, creator.last_name, email=creator.email),
            "first_name": creator.first_name,
            "last_name": creator.last_name,
            "phone": None,
            "user_id": creator.id,
            "can_share_trips": mine.can_view if mine else DEFAULT_CAN_VIEW,
            "they_manage_trips": mine.can_edit if mine else DEFAULT_CAN_EDIT,
            "they_share_trips": theirs.can_view if theirs else DEFAULT_CAN_VIEW,
            "can_manage_trips": theirs.can_edit if theirs else DEFAULT_CAN_EDIT,
            "you_invited": False,
            "they_invited": True,
            "has_linked_user": True,
            "their_companion_id": companion.id,
        }

    logger.debug("Merged %d companion relationship(s) for user %s", len(merged), user_id)
    return sorted(merged.values(), key=lambda entry: entry["name"].lower())
