"""Trip companions router: who is on a trip and what they may do there."""

from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_authorization_service, get_current_user
from errors import ForbiddenError, NotFoundError
from utils.authorization import AuthorizationService
from utils.cascade import (
    add_companion_to_trip,
    remove_companion_from_trip,
    update_trip_companion_permissions,
)
from utils.item_companions import load_trip_companions
from utils.validation import get_companion_or_404, get_trip_or_404


router = APIRouter(prefix="/trips/{trip_id}/companions", tags=["trip companions"])


def _require_trip_editor(db: Session, auth_service: AuthorizationService, trip_id: int, user_id: int):
    trip = get_trip_or_404(db, trip_id)
    if not auth_service.can_edit_trip(user_id, trip_id):
        raise ForbiddenError()
    return trip


@router.get("", response_model=list[schemas.CompanionEntry])
def read_trip_companions(
    trip_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    trip = get_trip_or_404(db, trip_id)
    if not auth_service.can_view_trip(current_user.id, trip_id):
        raise ForbiddenError()
    return load_trip_companions(db, trip)


@router.post("", response_model=schemas.TripCompanion, status_code=status.HTTP_201_CREATED)
def add_trip_companion(
    trip_id: int,
    request: schemas.TripCompanionCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    _require_trip_editor(db, auth_service, trip_id, current_user.id)
    get_companion_or_404(db, request.companion_id)

    return add_companion_to_trip(
        db,
        trip_id,
        request.companion_id,
        current_user.id,
        can_edit=request.can_edit,
        can_add_items=request.can_add_items,
    )


@router.put("/{companion_id}", response_model=schemas.TripCompanion)
def update_trip_companion(
    trip_id: int,
    companion_id: int,
    request: schemas.TripCompanionUpdate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    _require_trip_editor(db, auth_service, trip_id, current_user.id)
    return update_trip_companion_permissions(
        db, trip_id, companion_id, can_edit=request.can_edit, can_add_items=request.can_add_items
    )


@router.delete("/{companion_id}")
def remove_trip_companion(
    trip_id: int,
    companion_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    _require_trip_editor(db, auth_service, trip_id, current_user.id)
    if not remove_companion_from_trip(db, trip_id, companion_id):
        raise NotFoundError("Companion is not on this trip")
    return {"message": "Companion removed from trip"}
