from pydantic import BaseModel, EmailStr, field_validator
from typing import Any, Optional

from constants import ASSIGNABLE_ROLES, ITEM_TYPES, TRIP_PURPOSES, TRIP_ROLES


class UserBase(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class UserCreate(UserBase):
    password: str

    @field_validator('password')
    @classmethod
    def password_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Password must not be empty')
        return v

class User(UserBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True

class Token(BaseModel):
    access_token: str
    token_type: str

class TokenData(BaseModel):
    email: Optional[str] = None


# Companion records

class CompanionCreate(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    can_share_trips: bool = True
    can_manage_trips: bool = False

class CompanionUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None

class CompanionPermissionsUpdate(BaseModel):
    """The caller's grant on a companion record.

    ``can_share_trips`` lets the other side view the caller's trips,
    ``can_manage_trips`` lets them edit those trips.
    """
    can_share_trips: Optional[bool] = None
    can_manage_trips: Optional[bool] = None

class Companion(BaseModel):
    id: int
    email: str
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[int] = None
    created_by: int

    class Config:
        from_attributes = True

class MergedCompanion(BaseModel):
    id: int
    companion_id: int
    email: str
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[int] = None
    can_share_trips: bool
    they_manage_trips: bool
    they_share_trips: bool
    can_manage_trips: bool
    you_invited: bool
    they_invited: bool
    has_linked_user: bool
    their_companion_id: Optional[int] = None


# Companion entries shown on trips and items. ``id`` is the companion record
# id, or None for a synthesized owner entry.

class CompanionEntry(BaseModel):
    id: Optional[int] = None
    email: Optional[str] = None
    name: str
    user_id: Optional[int] = None
    inherited_from_trip: bool = False
    can_edit: bool = False
    can_add_items: bool = False
    permission_source: Optional[str] = None
    status: Optional[str] = None
    is_owner: bool = False


# Trips

class TripBase(BaseModel):
    name: str
    departure_date: Optional[str] = None
    return_date: Optional[str] = None
    purpose: Optional[str] = None
    is_confirmed: bool = False

    @field_validator('purpose')
    @classmethod
    def validate_purpose(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in TRIP_PURPOSES:
            raise ValueError(f"purpose must be one of {', '.join(TRIP_PURPOSES)}")
        return v

class TripCreate(TripBase):
    pass

class Trip(TripBase):
    id: int
    user_id: int

    class Config:
        from_attributes = True

class TripDetail(Trip):
    role: Optional[str] = None
    can_edit: bool
    companions: list[CompanionEntry]

class TripCompanionCreate(BaseModel):
    companion_id: int
    can_edit: bool = False
    can_add_items: bool = False

class TripCompanionUpdate(BaseModel):
    can_edit: Optional[bool] = None
    can_add_items: Optional[bool] = None

class TripCompanion(BaseModel):
    id: int
    trip_id: int
    companion_id: int
    can_edit: bool
    can_add_items: bool
    added_by: int
    permission_source: str

    class Config:
        from_attributes = True


# Attendees

class AttendeeCreate(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    role: str = "attendee"

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in ASSIGNABLE_ROLES:
            raise ValueError(f"role must be one of {', '.join(ASSIGNABLE_ROLES)}")
        return v

class AttendeeRoleUpdate(BaseModel):
    role: str

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in TRIP_ROLES:
            raise ValueError(f"role must be one of {', '.join(TRIP_ROLES)}")
        return v

class Attendee(BaseModel):
    id: int
    trip_id: int
    user_id: Optional[int] = None
    email: str
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str

    class Config:
        from_attributes = True


# Trip items

class ItemCreate(BaseModel):
    trip_id: Optional[int] = None
    fields: dict[str, Any] = {}

class ItemUpdate(BaseModel):
    # Leaving trip_id out keeps the item where it is; an explicit null
    # makes it standalone.
    trip_id: Optional[int] = None
    fields: dict[str, Any] = {}

class ItemCompanionsUpdate(BaseModel):
    companion_ids: list[Optional[int]]

class ItemDetail(BaseModel):
    id: int
    item_type: str
    user_id: Optional[int] = None
    trip_id: Optional[int] = None
    fields: dict[str, Any]
    can_edit: bool
    can_delete: bool
    item_companions: list[CompanionEntry] = []
    trip_companions: list[CompanionEntry] = []
    trip_owner_id: Optional[int] = None

    @field_validator('item_type')
    @classmethod
    def validate_item_type(cls, v: str) -> str:
        if v not in ITEM_TYPES:
            raise ValueError(f"item_type must be one of {', '.join(ITEM_TYPES)}")
        return v
