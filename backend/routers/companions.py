"""Companions router: the caller's travel companions and the grants between them."""

from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_user
from utils.companion_merge import merge_companion_views
from utils.companions import (
    create_companion,
    delete_companion,
    search_companions,
    set_companion_permissions,
    unlink_companion,
    update_companion,
)
from utils.validation import get_companion_or_404


router = APIRouter(prefix="/companions", tags=["companions"])


@router.get("", response_model=list[schemas.MergedCompanion])
def read_companions(
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    return merge_companion_views(db, current_user.id)


@router.get("/search", response_model=list[schemas.Companion])
def search(
    current_user: Annotated[models.User, Depends(get_current_user)],
    q: str = Query(""),
    db: Session = Depends(get_db)
):
    return search_companions(db, current_user.id, q)


@router.post("", response_model=schemas.Companion, status_code=status.HTTP_201_CREATED)
def add_companion(
    companion: schemas.CompanionCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    return create_companion(db, current_user, companion)


@router.put("/{companion_id}", response_model=schemas.Companion)
def edit_companion(
    companion_id: int,
    companion_update: schemas.CompanionUpdate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    companion = get_companion_or_404(db, companion_id)
    return update_companion(db, companion, current_user.id, companion_update)


@router.delete("/{companion_id}")
def remove_companion(
    companion_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    companion = get_companion_or_404(db, companion_id)
    delete_companion(db, companion, current_user.id)
    return {"message": "Companion deleted successfully"}


@router.put("/{companion_id}/permissions")
def update_permissions(
    companion_id: int,
    permissions: schemas.CompanionPermissionsUpdate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    companion = get_companion_or_404(db, companion_id)
    grant = set_companion_permissions(
        db,
        companion,
        current_user.id,
        can_view=permissions.can_share_trips,
        can_edit=permissions.can_manage_trips,
    )
    return {
        "companion_id": companion.id,
        "can_share_trips": grant.can_view,
        "can_manage_trips": grant.can_edit,
    }


@router.post("/{companion_id}/unlink", response_model=schemas.Companion)
def unlink(
    companion_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    companion = get_companion_or_404(db, companion_id)
    return unlink_companion(db, companion, current_user.id)
