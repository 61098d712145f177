"""Trips router: create, list, read and delete trips."""

from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_authorization_service, get_current_user
from errors import ForbiddenError
from utils.attendees import add_owner_attendee
from utils.authorization import AuthorizationService
from utils.cascade import delete_trip as delete_trip_cascade
from utils.item_companions import load_trip_companions
from utils.permissions import resolve_trip_role
from utils.validation import get_trip_or_404, verify_trip_ownership


router = APIRouter(prefix="/trips", tags=["trips"])


@router.post("", response_model=schemas.Trip)
def create_trip(
    trip: schemas.TripCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    db_trip = models.Trip(
        user_id=current_user.id,
        name=trip.name,
        departure_date=trip.departure_date,
        return_date=trip.return_date,
        purpose=trip.purpose,
        is_confirmed=trip.is_confirmed,
    )
    db.add(db_trip)
    db.commit()
    db.refresh(db_trip)

    add_owner_attendee(db, db_trip, current_user)

    return db_trip


@router.get("", response_model=list[schemas.Trip])
def read_trips(
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    trip_ids = auth_service.get_accessible_trips(current_user.id)
    if not trip_ids:
        return []
    return db.query(models.Trip).filter(
        models.Trip.id.in_(trip_ids)
    ).order_by(models.Trip.departure_date, models.Trip.id).all()


@router.get("/{trip_id}", response_model=schemas.TripDetail)
def get_trip(
    trip_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    trip = get_trip_or_404(db, trip_id)
    if not auth_service.can_view_trip(current_user.id, trip_id):
        raise ForbiddenError()

    return {
        "id": trip.id,
        "user_id": trip.user_id,
        "name": trip.name,
        "departure_date": trip.departure_date,
        "return_date": trip.return_date,
        "purpose": trip.purpose,
        "is_confirmed": trip.is_confirmed,
        "role": resolve_trip_role(db, current_user.id, trip_id),
        "can_edit": auth_service.can_edit_trip(current_user.id, trip_id),
        "companions": load_trip_companions(db, trip),
    }


@router.delete("/{trip_id}")
def delete_trip(
    trip_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    trip = verify_trip_ownership(db, trip_id, current_user.id)
    delete_trip_cascade(db, trip)
    return {"message": "Trip deleted successfully"}
