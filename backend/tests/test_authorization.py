import pytest

import models
from utils.authorization import AuthorizationService
from utils.cascade import add_companion_to_trip


@pytest.fixture
def service(db_session):
    return AuthorizationService(db_session)


def _attend(db_session, trip, user, role="attendee"):
    attendee = models.TripAttendee(
        trip_id=trip.id, user_id=user.id, email=user.email, name=user.email, role=role
    )
    db_session.add(attendee)
    db_session.commit()
    return attendee


def test_owner_can_view_and_edit(service, test_user, make_trip):
    trip = make_trip(test_user)
    assert service.can_view_trip(test_user.id, trip.id)
    assert service.can_edit_trip(test_user.id, trip.id)


def test_missing_trip_is_denied(service, test_user):
    assert service.can_view_trip(test_user.id, 9999) is False
    assert service.can_edit_trip(test_user.id, 9999) is False


def test_stranger_is_denied(service, test_user, other_user, make_trip):
    trip = make_trip(test_user)
    assert service.can_view_trip(other_user.id, trip.id) is False
    assert service.can_edit_trip(other_user.id, trip.id) is False


def test_attendee_roles(db_session, service, test_user, other_user, make_user, make_trip):
    trip = make_trip(test_user)
    admin = make_user("admin@example.com")
    _attend(db_session, trip, other_user)
    _attend(db_session, trip, admin, role="admin")

    assert service.can_view_trip(other_user.id, trip.id)
    assert service.can_edit_trip(other_user.id, trip.id) is False
    assert service.can_edit_trip(admin.id, trip.id)


def test_trip_companion_access(db_session, service, test_user, other_user, make_trip, make_companion):
    trip = make_trip(test_user)
    companion = make_companion(test_user, other_user.email, linked_user=other_user, can_view=False)
    add_companion_to_trip(db_session, trip.id, companion.id, test_user.id, can_edit=False)

    assert service.can_view_trip(other_user.id, trip.id)
    assert service.can_edit_trip(other_user.id, trip.id) is False


def test_full_access_grant(db_session, service, test_user, other_user, make_trip, make_companion):
    trip = make_trip(test_user)
    make_companion(test_user, other_user.email, linked_user=other_user, can_view=True, can_edit=True)

    assert service.can_view_trip(other_user.id, trip.id)
    assert service.can_edit_trip(other_user.id, trip.id)


def test_item_in_trip_checks(db_session, service, test_user, other_user, make_trip, make_flight, make_companion):
    trip = make_trip(test_user)
    other_trip = make_trip(test_user, "Other")
    flight = make_flight(test_user, trip)
    companion = make_companion(test_user, other_user.email, linked_user=other_user, can_view=False)
    add_companion_to_trip(db_session, trip.id, companion.id, test_user.id, can_edit=True)

    assert service.can_view_item_in_trip(other_user.id, trip.id, flight)
    assert service.can_edit_item_in_trip(other_user.id, trip.id, flight)
    # Item does not belong to the trip asked about
    assert service.can_view_item_in_trip(test_user.id, other_trip.id, flight) is False
    assert service.can_edit_item_in_trip(test_user.id, other_trip.id, flight) is False


def test_attendee_management(db_session, service, test_user, other_user, make_user, make_trip):
    trip = make_trip(test_user)
    admin = make_user("admin@example.com")
    attendee = _attend(db_session, trip, other_user)
    _attend(db_session, trip, admin, role="admin")
    owner_row = db_session.query(models.TripAttendee).filter(
        models.TripAttendee.trip_id == trip.id, models.TripAttendee.role == "owner"
    ).first()

    assert service.can_remove_attendee(test_user.id, trip.id, attendee.id)
    assert service.can_remove_attendee(admin.id, trip.id, attendee.id)
    assert service.can_remove_attendee(other_user.id, trip.id, attendee.id) is False
    assert service.can_remove_attendee(test_user.id, trip.id, owner_row.id) is False

    assert service.can_update_attendee_role(test_user.id, trip.id, attendee.id, "admin")
    assert service.can_update_attendee_role(admin.id, trip.id, attendee.id, "admin") is False
    assert service.can_update_attendee_role(test_user.id, trip.id, attendee.id, "owner") is False
    assert service.can_update_attendee_role(test_user.id, trip.id, owner_row.id, "attendee") is False


def test_accessible_trips_union(db_session, service, test_user, other_user, make_user, make_trip, make_companion):
    owned = make_trip(test_user, "Mine")
    attended = make_trip(other_user, "Attended")
    _attend(db_session, attended, test_user)
    grantor = make_user("grantor@example.com")
    shared_a = make_trip(grantor, "Shared A")
    shared_b = make_trip(grantor, "Shared B")
    make_companion(grantor, test_user.email, linked_user=test_user, can_view=True)
    via_companion_owner = make_user("host@example.com")
    via_companion = make_trip(via_companion_owner, "Companion trip")
    record = make_companion(via_companion_owner, "guest@example.com", can_view=False)
    record.user_id = test_user.id
    db_session.commit()
    add_companion_to_trip(db_session, via_companion.id, record.id, via_companion_owner.id)
    make_trip(other_user, "Hidden")

    assert service.get_accessible_trips(test_user.id) == sorted(
        [owned.id, attended.id, shared_a.id, shared_b.id, via_companion.id]
    )


def test_accessible_trips_ignore_revoked_grant(db_session, service, test_user, other_user, make_trip, make_companion):
    make_trip(other_user)
    make_companion(other_user, test_user.email, linked_user=test_user, can_view=False, can_edit=False)

    assert service.get_accessible_trips(test_user.id) == []


def test_can_view_item(db_session, service, test_user, other_user, make_user, make_flight, make_companion):
    flight = make_flight(test_user)
    companion = make_companion(test_user, other_user.email, linked_user=other_user, can_view=False)
    stranger = make_user("stranger@example.com")
    db_session.add(models.ItemCompanion(
        item_type="flight", item_id=flight.id, companion_id=companion.id, added_by=test_user.id
    ))
    db_session.commit()

    assert service.can_view_item(test_user.id, "flight", flight)
    assert service.can_view_item(other_user.id, "flight", flight)
    assert service.can_view_item(stranger.id, "flight", flight) is False


def test_accessible_trips_follow_preferred_grant(db_session, service, test_user, other_user, make_trip, make_companion):
    trip = make_trip(test_user)
    # Owner's record for the viewer says no; owner's grant on the viewer's record says yes
    make_companion(test_user, other_user.email, linked_user=other_user, can_view=False)
    viewers_record = make_companion(other_user, test_user.email, linked_user=test_user)
    db_session.add(models.CompanionPermission(
        companion_id=viewers_record.id, granted_by=test_user.id, can_view=True, can_edit=False
    ))
    db_session.commit()

    listed = trip.id in service.get_accessible_trips(other_user.id)
    assert listed is False
    assert service.can_view_trip(other_user.id, trip.id) is listed


def test_accessible_trips_accept_grant_on_viewers_record(db_session, service, test_user, other_user, make_trip, make_companion):
    trip = make_trip(test_user)
    viewers_record = make_companion(other_user, test_user.email, linked_user=test_user)
    db_session.add(models.CompanionPermission(
        companion_id=viewers_record.id, granted_by=test_user.id, can_view=True, can_edit=False
    ))
    db_session.commit()

    assert service.get_accessible_trips(other_user.id) == [trip.id]
    assert service.can_view_trip(other_user.id, trip.id)
    assert service.can_edit_trip(other_user.id, trip.id) is False
