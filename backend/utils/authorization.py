"""Boolean access checks for trips, trip items and attendees."""

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

import models
from constants import ACCESS_MANAGE, ACCESS_VIEW, ASSIGNABLE_ROLES, ROLE_ADMIN, ROLE_OWNER
from utils.permissions import resolve_full_access, resolve_item_permissions, resolve_trip_role


class AuthorizationService:
    """Answers "may this user do X" questions. Never raises for a denial."""

    def __init__(self, db: Session):
        self.db = db

    def _get_trip(self, trip_id: int):
        return self.db.query(models.Trip).filter(models.Trip.id == trip_id).first()

    def _trip_companion_link(self, user_id: int, trip_id: int):
        return (
            self.db.query(models.TripCompanion)
            .join(models.TravelCompanion, models.TripCompanion.companion_id == models.TravelCompanion.id)
            .filter(
                models.TripCompanion.trip_id == trip_id,
                models.TravelCompanion.user_id == user_id,
            )
            .order_by(models.TripCompanion.can_edit.desc())
            .first()
        )

    def can_view_trip(self, user_id: int, trip_id: int) -> bool:
        trip = self._get_trip(trip_id)
        if trip is None:
            return False
        if trip.user_id == user_id:
            return True
        if resolve_trip_role(self.db, user_id, trip_id) is not None:
            return True
        if self._trip_companion_link(user_id, trip_id) is not None:
            return True
        return resolve_full_access(self.db, user_id, trip.user_id, ACCESS_VIEW)

    def can_edit_trip(self, user_id: int, trip_id: int) -> bool:
        trip = self._get_trip(trip_id)
        if trip is None:
            return False
        if trip.user_id == user_id:
            return True
        if resolve_trip_role(self.db, user_id, trip_id) == ROLE_ADMIN:
            return True
        link = self._trip_companion_link(user_id, trip_id)
        if link is not None and link.can_edit:
            return True
        return resolve_full_access(self.db, user_id, trip.user_id, ACCESS_MANAGE)

    def can_view_item_in_trip(self, user_id: int, trip_id: int, item) -> bool:
        if item.trip_id != trip_id:
            return False
        return self.can_view_trip(user_id, trip_id)

    def can_edit_item_in_trip(self, user_id: int, trip_id: int, item) -> bool:
        if item.trip_id != trip_id:
            return False
        if resolve_item_permissions(self.db, item, user_id)["can_edit"]:
            return True
        return self.can_edit_trip(user_id, trip_id)

    def can_remove_attendee(self, user_id: int, trip_id: int, attendee_id: int) -> bool:
        if resolve_trip_role(self.db, user_id, trip_id) not in (ROLE_OWNER, ROLE_ADMIN):
            return False
        attendee = self.db.query(models.TripAttendee).filter(
            models.TripAttendee.id == attendee_id,
            models.TripAttendee.trip_id == trip_id,
        ).first()
        return attendee is not None and attendee.role != ROLE_OWNER

    def can_update_attendee_role(self, user_id: int, trip_id: int, attendee_id: int, new_role: str) -> bool:
        if resolve_trip_role(self.db, user_id, trip_id) != ROLE_OWNER:
            return False
        if new_role not in ASSIGNABLE_ROLES:
            return False
        attendee = self.db.query(models.TripAttendee).filter(
            models.TripAttendee.id == attendee_id,
            models.TripAttendee.trip_id == trip_id,
        ).first()
        return attendee is not None and attendee.role != ROLE_OWNER

    def get_accessible_trips(self, user_id: int) -> list[int]:
        """IDs of every trip the user can see, sorted and without duplicates.

        Owned trips, attended trips, trips the user was added to as a
        companion, and all trips of users who granted them view or manage
        access through a companion record.
        """
        db = self.db
        trip_ids = set()

        trip_ids.update(
            row.id for row in db.query(models.Trip.id).filter(models.Trip.user_id == user_id).all()
        )
        trip_ids.update(
            row.trip_id for row in db.query(models.TripAttendee.trip_id).filter(
                models.TripAttendee.user_id == user_id
            ).all()
        )
        trip_ids.update(
            row.trip_id for row in db.query(models.TripCompanion.trip_id)
            .join(models.TravelCompanion, models.TripCompanion.companion_id == models.TravelCompanion.id)
            .filter(models.TravelCompanion.user_id == user_id)
            .all()
        )

        companion = models.TravelCompanion
        grant = models.CompanionPermission
        candidates = {
            row.granted_by for row in db.query(grant.granted_by)
            .join(companion, grant.companion_id == companion.id)
            .filter(
                grant.granted_by != user_id,
                or_(
                    and_(companion.created_by == grant.granted_by, companion.user_id == user_id),
                    and_(companion.created_by == user_id, companion.user_id == grant.granted_by),
                ),
            )
            .all()
        }
        grantor_ids = [
            grantor_id for grantor_id in candidates
            if resolve_full_access(db, user_id, grantor_id, ACCESS_VIEW)
        ]
        if grantor_ids:
            trip_ids.update(
                row.id for row in db.query(models.Trip.id).filter(models.Trip.user_id.in_(grantor_ids)).all()
            )

        return sorted(trip_ids)

    def can_view_item(self, user_id: int, item_type: str, item) -> bool:
        if item.user_id == user_id:
            return True
        if item.trip_id is not None and self.can_view_trip(user_id, item.trip_id):
            return True
        shared = (
            self.db.query(models.ItemCompanion.id)
            .join(models.TravelCompanion, models.ItemCompanion.companion_id == models.TravelCompanion.id)
            .filter(
                models.ItemCompanion.item_type == item_type,
                models.ItemCompanion.item_id == item.id,
                models.TravelCompanion.user_id == user_id,
            )
            .first()
        )
        return shared is not None
