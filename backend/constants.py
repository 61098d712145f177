"""Shared values for item types, permission provenance, roles and statuses."""

ITEM_TYPE_FLIGHT = "flight"
ITEM_TYPE_HOTEL = "hotel"
ITEM_TYPE_TRANSPORTATION = "transportation"
ITEM_TYPE_CAR_RENTAL = "car_rental"
ITEM_TYPE_EVENT = "event"

ITEM_TYPES = [
    ITEM_TYPE_FLIGHT,
    ITEM_TYPE_HOTEL,
    ITEM_TYPE_TRANSPORTATION,
    ITEM_TYPE_CAR_RENTAL,
    ITEM_TYPE_EVENT,
]

# Why a TripCompanion row exists
PERMISSION_SOURCE_OWNER = "owner"
PERMISSION_SOURCE_MANAGE_TRAVEL = "manage_travel"
PERMISSION_SOURCE_EXPLICIT = "explicit"
PERMISSION_SOURCES = [
    PERMISSION_SOURCE_OWNER,
    PERMISSION_SOURCE_MANAGE_TRAVEL,
    PERMISSION_SOURCE_EXPLICIT,
]

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_ATTENDEE = "attendee"
TRIP_ROLES = [ROLE_OWNER, ROLE_ADMIN, ROLE_ATTENDEE]
ASSIGNABLE_ROLES = [ROLE_ADMIN, ROLE_ATTENDEE]

STATUS_ATTENDING = "attending"

ACCESS_VIEW = "view"
ACCESS_MANAGE = "manage"

TRIP_PURPOSES = ["business", "leisure", "family", "romantic", "other"]

# Defaults for a new companion permission
DEFAULT_CAN_VIEW = True
DEFAULT_CAN_EDIT = False

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 10
