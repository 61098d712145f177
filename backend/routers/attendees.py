"""Attendees router: people on a trip and their roles."""

from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import models
import schemas
from constants import ASSIGNABLE_ROLES
from database import get_db
from dependencies import get_authorization_service, get_current_user
from errors import ForbiddenError, ValidationError
from utils.attendees import (
    add_attendee,
    get_attendee_or_404,
    list_attendees,
    remove_attendee,
    update_attendee_role,
)
from utils.authorization import AuthorizationService
from utils.validation import get_trip_or_404


router = APIRouter(prefix="/trips/{trip_id}/attendees", tags=["attendees"])


@router.get("", response_model=list[schemas.Attendee])
def read_attendees(
    trip_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    get_trip_or_404(db, trip_id)
    if not auth_service.can_view_trip(current_user.id, trip_id):
        raise ForbiddenError()
    return list_attendees(db, trip_id)


@router.post("", response_model=schemas.Attendee, status_code=status.HTTP_201_CREATED)
def create_attendee(
    trip_id: int,
    attendee: schemas.AttendeeCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    trip = get_trip_or_404(db, trip_id)
    if not auth_service.can_edit_trip(current_user.id, trip_id):
        raise ForbiddenError()
    return add_attendee(
        db,
        trip,
        attendee.email,
        first_name=attendee.first_name,
        last_name=attendee.last_name,
        name=attendee.name,
        role=attendee.role,
    )


@router.put("/{attendee_id}", response_model=schemas.Attendee)
def change_attendee_role(
    trip_id: int,
    attendee_id: int,
    request: schemas.AttendeeRoleUpdate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    get_trip_or_404(db, trip_id)
    attendee = get_attendee_or_404(db, trip_id, attendee_id)
    if request.role not in ASSIGNABLE_ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(ASSIGNABLE_ROLES)}")
    if not auth_service.can_update_attendee_role(current_user.id, trip_id, attendee_id, request.role):
        raise ForbiddenError()
    return update_attendee_role(db, attendee, request.role)


@router.delete("/{attendee_id}")
def delete_attendee(
    trip_id: int,
    attendee_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    get_trip_or_404(db, trip_id)
    attendee = get_attendee_or_404(db, trip_id, attendee_id)
    if not auth_service.can_remove_attendee(current_user.id, trip_id, attendee_id):
        raise ForbiddenError()
    remove_attendee(db, attendee)
    return {"message": "Attendee removed"}
