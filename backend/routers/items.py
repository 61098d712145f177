"""Items router: flights, hotels, transportation, car rentals and events."""

from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_authorization_service, get_current_user
from errors import ForbiddenError
from utils.authorization import AuthorizationService
from utils.cascade import auto_add_trip_companions, move_item_to_trip
from utils.item_companions import load_item_companions_data, update_item_companions
from utils.items import delete_item, get_item_model, get_item_or_404, serialize_item, validate_item_fields
from utils.permissions import resolve_item_permissions
from utils.validation import get_trip_or_404


router = APIRouter(prefix="/items", tags=["items"])


def _item_detail(db: Session, item_type: str, item, user_id: int) -> dict:
    detail = serialize_item(item_type, item)
    detail.update(resolve_item_permissions(db, item, user_id))
    detail.update(load_item_companions_data(db, item, item_type))
    return detail


def _require_trip_editor(db: Session, auth_service: AuthorizationService, trip_id: int, user_id: int):
    get_trip_or_404(db, trip_id)
    if not auth_service.can_edit_trip(user_id, trip_id):
        raise ForbiddenError("You cannot add items to this trip")


def _require_item_editor(db: Session, auth_service: AuthorizationService, item, user_id: int):
    if item.trip_id is not None:
        allowed = auth_service.can_edit_item_in_trip(user_id, item.trip_id, item)
    else:
        allowed = resolve_item_permissions(db, item, user_id)["can_edit"]
    if not allowed:
        raise ForbiddenError()


@router.post("/{item_type}", response_model=schemas.ItemDetail, status_code=status.HTTP_201_CREATED)
def create_item(
    item_type: str,
    request: schemas.ItemCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    model = get_item_model(item_type)
    fields = validate_item_fields(item_type, request.fields)
    if request.trip_id is not None:
        _require_trip_editor(db, auth_service, request.trip_id, current_user.id)

    item = model(user_id=current_user.id, trip_id=request.trip_id, **fields)
    db.add(item)
    db.commit()
    db.refresh(item)

    auto_add_trip_companions(db, item_type, item.id, item.trip_id, current_user.id)

    return _item_detail(db, item_type, item, current_user.id)


@router.get("/{item_type}/{item_id}", response_model=schemas.ItemDetail)
def read_item(
    item_type: str,
    item_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    item = get_item_or_404(db, item_type, item_id)
    if not auth_service.can_view_item(current_user.id, item_type, item):
        raise ForbiddenError()
    return _item_detail(db, item_type, item, current_user.id)


@router.put("/{item_type}/{item_id}", response_model=schemas.ItemDetail)
def update_item(
    item_type: str,
    item_id: int,
    request: schemas.ItemUpdate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    item = get_item_or_404(db, item_type, item_id)
    _require_item_editor(db, auth_service, item, current_user.id)

    fields = validate_item_fields(item_type, request.fields)
    moving = "trip_id" in request.model_fields_set and request.trip_id != item.trip_id
    if moving and request.trip_id is not None:
        _require_trip_editor(db, auth_service, request.trip_id, current_user.id)

    for name, value in fields.items():
        setattr(item, name, value)
    db.commit()
    db.refresh(item)

    if moving:
        item = move_item_to_trip(db, item_type, item, request.trip_id, current_user.id)

    return _item_detail(db, item_type, item, current_user.id)


@router.delete("/{item_type}/{item_id}")
def remove_item(
    item_type: str,
    item_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    item = get_item_or_404(db, item_type, item_id)
    _require_item_editor(db, auth_service, item, current_user.id)
    delete_item(db, item_type, item)
    return {"message": "Item deleted successfully"}


@router.put("/{item_type}/{item_id}/companions", response_model=schemas.ItemDetail)
def set_item_companions(
    item_type: str,
    item_id: int,
    request: schemas.ItemCompanionsUpdate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    auth_service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    db: Session = Depends(get_db)
):
    item = get_item_or_404(db, item_type, item_id)
    _require_item_editor(db, auth_service, item, current_user.id)
    update_item_companions(db, item_type, item, request.companion_ids, current_user.id)
    return _item_detail(db, item_type, item, current_user.id)
