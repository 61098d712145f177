"""Registry of trip item kinds and the helpers shared by all of them.

Flights, hotels, ground transportation, car rentals and events share the same
ownership columns (``user_id`` and a nullable ``trip_id``), so companion and
permission code works on ``(item_type, item)`` pairs instead of per-kind
functions. The per-kind differences live in the two tables below.
"""

from typing import Any

from sqlalchemy.orm import Session

import models
from constants import (
    ITEM_TYPE_CAR_RENTAL,
    ITEM_TYPE_EVENT,
    ITEM_TYPE_FLIGHT,
    ITEM_TYPE_HOTEL,
    ITEM_TYPE_TRANSPORTATION,
    ITEM_TYPES,
)
from errors import NotFoundError, ValidationError


ITEM_MODELS = {
    ITEM_TYPE_FLIGHT: models.Flight,
    ITEM_TYPE_HOTEL: models.Hotel,
    ITEM_TYPE_TRANSPORTATION: models.Transportation,
    ITEM_TYPE_CAR_RENTAL: models.CarRental,
    ITEM_TYPE_EVENT: models.Event,
}

# Columns a client may set on each kind of item
ITEM_FIELDS = {
    ITEM_TYPE_FLIGHT: (
        "airline", "flight_number", "origin", "destination",
        "departure_datetime", "arrival_datetime",
    ),
    ITEM_TYPE_HOTEL: (
        "hotel_name", "address", "check_in_datetime", "check_out_datetime",
        "confirmation_number",
    ),
    ITEM_TYPE_TRANSPORTATION: (
        "method", "origin", "destination", "departure_datetime", "arrival_datetime",
    ),
    ITEM_TYPE_CAR_RENTAL: (
        "company", "pickup_location", "dropoff_location", "pickup_datetime",
        "dropoff_datetime",
    ),
    ITEM_TYPE_EVENT: (
        "name", "location", "start_datetime", "end_datetime", "description",
    ),
}


def get_item_model(item_type: str):
    """Return the model class for an item type, raise 400 for unknown types."""
    model = ITEM_MODELS.get(item_type)
    if model is None:
        raise ValidationError(f"Unknown item type '{item_type}'. Expected one of: {', '.join(ITEM_TYPES)}")
    return model


def validate_item_fields(item_type: str, fields: dict[str, Any]) -> dict[str, Any]:
    allowed = ITEM_FIELDS[item_type]
    unknown = sorted(key for key in fields if key not in allowed)
    if unknown:
        raise ValidationError(f"Unknown field(s) for {item_type}: {', '.join(unknown)}")
    return fields


def get_item_or_404(db: Session, item_type: str, item_id: int):
    """Get an item by type and ID or raise 404 if not found."""
    model = get_item_model(item_type)
    item = db.query(model).filter(model.id == item_id).first()
    if not item:
        raise NotFoundError("Item not found")
    return item


def items_in_trip(db: Session, trip_id: int) -> list[tuple[str, int]]:
    """All ``(item_type, item_id)`` pairs currently attached to a trip."""
    pairs = []
    for item_type, model in ITEM_MODELS.items():
        rows = db.query(model.id).filter(model.trip_id == trip_id).all()
        pairs.extend((item_type, row.id) for row in rows)
    return pairs


def serialize_item(item_type: str, item) -> dict[str, Any]:
    return {
        "id": item.id,
        "item_type": item_type,
        "user_id": item.user_id,
        "trip_id": item.trip_id,
        "fields": {name: getattr(item, name) for name in ITEM_FIELDS[item_type]},
    }


def delete_item(db: Session, item_type: str, item) -> None:
    """Delete an item together with its companion links."""
    db.query(models.ItemCompanion).filter(
        models.ItemCompanion.item_type == item_type,
        models.ItemCompanion.item_id == item.id,
    ).delete(synchronize_session=False)
    db.delete(item)
    db.commit()
