"""Companion record store.

A companion record is a contact one user added, identified system-wide by its
e-mail address. When the address belongs to a registered user the record is
linked through ``user_id``. Each side of the relationship keeps its own
permission grant on the same record, keyed by ``granted_by``.
"""

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models
import schemas
from constants import DEFAULT_CAN_EDIT, DEFAULT_CAN_VIEW, MIN_SEARCH_LENGTH, SEARCH_LIMIT
from errors import ConflictError, ForbiddenError, ValidationError
from utils.display import get_companion_display_name
from utils.validation import get_user_by_email

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_companion_by_email(db: Session, email: str):
    return db.query(models.TravelCompanion).filter(
        models.TravelCompanion.email == _normalize_email(email)
    ).first()


def get_grant(db: Session, companion_id: int, granted_by: int):
    return db.query(models.CompanionPermission).filter(
        models.CompanionPermission.companion_id == companion_id,
        models.CompanionPermission.granted_by == granted_by,
    ).first()


def create_companion(db: Session, creator: models.User, data: schemas.CompanionCreate) -> models.TravelCompanion:
    email = _normalize_email(data.email)
    if email == creator.email:
        raise ValidationError("You cannot add yourself as a companion")

    if get_companion_by_email(db, email):
        logger.warning("Companion e-mail %s already in use (user %s)", email, creator.id)
        raise ConflictError(f"A companion with email {email} already exists")

    linked_user = get_user_by_email(db, email)
    companion = models.TravelCompanion(
        first_name=data.first_name,
        last_name=data.last_name,
        name=get_companion_display_name(data.first_name, data.last_name, data.name, email),
        email=email,
        phone=data.phone,
        user_id=linked_user.id if linked_user else None,
        created_by=creator.id,
    )
    companion.permissions.append(models.CompanionPermission(
        granted_by=creator.id,
        can_view=data.can_share_trips,
        can_edit=data.can_manage_trips,
    ))
    db.add(companion)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Companion e-mail %s already in use (user %s)", email, creator.id)
        raise ConflictError(f"A companion with email {email} already exists")
    db.refresh(companion)

    logger.info("User %s created companion %s (linked user: %s)", creator.id, companion.id, companion.user_id)
    return companion


def update_companion(
    db: Session,
    companion: models.TravelCompanion,
    user_id: int,
    data: schemas.CompanionUpdate,
) -> models.TravelCompanion:
    """Apply the creator's edits. The display name is rebuilt only when a name part or the e-mail changes."""
    if companion.created_by != user_id:
        raise ForbiddenError("Only the user who added this companion can edit it")

    updates = data.model_dump(exclude_unset=True)
    renamed = bool({"name", "first_name", "last_name"} & updates.keys())

    if updates.get("email"):
        new_email = _normalize_email(updates.pop("email"))
        if new_email != companion.email:
            existing = get_companion_by_email(db, new_email)
            if existing and existing.id != companion.id:
                logger.warning("Companion e-mail %s already in use (user %s)", new_email, user_id)
                raise ConflictError(f"A companion with email {new_email} already exists")
            companion.email = new_email
            renamed = True
            linked_user = get_user_by_email(db, new_email)
            companion.user_id = linked_user.id if linked_user else None
    else:
        updates.pop("email", None)

    for field in ("first_name", "last_name", "phone"):
        if field in updates:
            setattr(companion, field, updates[field])

    if renamed:
        companion.name = get_companion_display_name(
            companion.first_name, companion.last_name, updates.get("name"), companion.email
        )

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"A companion with email {companion.email} already exists")
    db.refresh(companion)

    logger.info("User %s updated companion %s", user_id, companion.id)
    return companion


def delete_companion(db: Session, companion: models.TravelCompanion, user_id: int) -> None:
    """Delete a companion record that is not on any trip."""
    if companion.created_by != user_id:
        raise ForbiddenError("Only the user who added this companion can delete it")

    on_trips = db.query(models.TripCompanion).filter(
        models.TripCompanion.companion_id == companion.id
    ).count()
    if on_trips:
        logger.warning("Refusing to delete companion %s: still on %d trip(s)", companion.id, on_trips)
        raise ConflictError("Companion is still added to one or more trips")

    db.query(models.ItemCompanion).filter(
        models.ItemCompanion.companion_id == companion.id
    ).delete(synchronize_session=False)
    db.delete(companion)
    db.commit()

    logger.info("User %s deleted companion %s", user_id, companion.id)


def unlink_companion(db: Session, companion: models.TravelCompanion, user_id: int) -> models.TravelCompanion:
    """Detach the record from its user account, keeping the contact itself."""
    if user_id not in (companion.created_by, companion.user_id):
        raise ForbiddenError()

    companion.user_id = None
    db.commit()
    db.refresh(companion)

    logger.info("User %s unlinked companion %s", user_id, companion.id)
    return companion


def set_companion_permissions(
    db: Session,
    companion: models.TravelCompanion,
    user_id: int,
    can_view: Optional[bool] = None,
    can_edit: Optional[bool] = None,
) -> models.CompanionPermission:
    """Create or update the caller's grant on a companion record.

    Both parties of the relationship may hold a grant: the creator of the
    record, and the user the record is linked to.
    """
    if user_id not in (companion.created_by, companion.user_id):
        raise ForbiddenError()

    grant = get_grant(db, companion.id, user_id)
    if grant is None:
        grant = models.CompanionPermission(
            companion_id=companion.id,
            granted_by=user_id,
            can_view=DEFAULT_CAN_VIEW,
            can_edit=DEFAULT_CAN_EDIT,
        )
        db.add(grant)

    if can_view is not None:
        grant.can_view = can_view
    if can_edit is not None:
        grant.can_edit = can_edit

    try:
        db.commit()
    except IntegrityError:
        # Another request created the grant first
        db.rollback()
        grant = get_grant(db, companion.id, user_id)
        if can_view is not None:
            grant.can_view = can_view
        if can_edit is not None:
            grant.can_edit = can_edit
        db.commit()
    db.refresh(grant)

    logger.info(
        "User %s set permissions on companion %s: view=%s edit=%s",
        user_id, companion.id, grant.can_view, grant.can_edit,
    )
    return grant


def link_companions_to_user(db: Session, user: models.User) -> int:
    """Attach unlinked companion records carrying this user's e-mail to the account."""
    count = db.query(models.TravelCompanion).filter(
        models.TravelCompanion.email == _normalize_email(user.email),
        models.TravelCompanion.user_id.is_(None),
    ).update({"user_id": user.id}, synchronize_session=False)
    db.commit()

    if count:
        logger.info("Linked %d companion record(s) to new user %s", count, user.id)
    return count


def list_companions(db: Session, user_id: int) -> list[models.TravelCompanion]:
    return db.query(models.TravelCompanion).filter(
        models.TravelCompanion.created_by == user_id
    ).order_by(models.TravelCompanion.name).all()


def search_companions(db: Session, user_id: int, query: str) -> list[models.TravelCompanion]:
    term = (query or "").strip()
    if len(term) < MIN_SEARCH_LENGTH:
        return []

    pattern = f"%{term}%"
    return db.query(models.TravelCompanion).filter(
        models.TravelCompanion.created_by == user_id,
        or_(
            models.TravelCompanion.name.ilike(pattern),
            models.TravelCompanion.email.ilike(pattern),
            models.TravelCompanion.first_name.ilike(pattern),
            models.TravelCompanion.last_name.ilike(pattern),
        ),
    ).order_by(models.TravelCompanion.name).limit(SEARCH_LIMIT).all()
