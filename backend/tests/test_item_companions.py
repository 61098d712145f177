import pytest

import models
from errors import NotFoundError
from utils.cascade import add_companion_to_trip
from utils.item_companions import (
    load_item_companions_data,
    load_trip_companions,
    update_item_companions,
)


def test_trip_companions_synthesize_owner_first(db_session, test_user, other_user, make_trip, make_companion):
    trip = make_trip(test_user)
    companion = make_companion(test_user, other_user.email, linked_user=other_user)
    add_companion_to_trip(db_session, trip.id, companion.id, test_user.id)

    entries = load_trip_companions(db_session, trip)

    assert entries[0]["is_owner"] is True
    assert entries[0]["id"] is None
    assert entries[0]["user_id"] == test_user.id
    assert entries[0]["can_edit"] is True
    assert entries[0]["name"] == "Test User"
    assert [entry["id"] for entry in entries[1:]] == [companion.id]


def test_trip_owner_with_real_row_is_not_duplicated(db_session, test_user, other_user, make_trip, make_companion):
    trip = make_trip(other_user)
    owner_record = make_companion(test_user, other_user.email, linked_user=other_user)
    add_companion_to_trip(db_session, trip.id, owner_record.id, other_user.id)

    entries = load_trip_companions(db_session, trip)

    assert len(entries) == 1
    assert entries[0]["id"] == owner_record.id
    assert entries[0]["is_owner"] is True


def test_standalone_item_gets_owner_entry(db_session, test_user, make_flight):
    flight = make_flight(test_user)

    data = load_item_companions_data(db_session, flight, "flight")

    assert len(data["item_companions"]) == 1
    assert data["item_companions"][0]["is_owner"] is True
    assert data["item_companions"][0]["user_id"] == test_user.id
    assert data["trip_companions"] == []
    assert data["trip_owner_id"] is None


def test_trip_item_lists_are_deduplicated(db_session, test_user, other_user, make_user, make_trip, make_flight, make_companion):
    trip = make_trip(test_user)
    friend = make_user("friend@example.com")
    inherited = make_companion(test_user, other_user.email, linked_user=other_user)
    not_on_item = make_companion(test_user, friend.email, linked_user=friend)
    add_companion_to_trip(db_session, trip.id, inherited.id, test_user.id)
    flight = make_flight(test_user, trip)
    db_session.add(models.ItemCompanion(
        item_type="flight", item_id=flight.id, companion_id=inherited.id,
        added_by=test_user.id, inherited_from_trip=True,
    ))
    db_session.commit()
    add_companion_to_trip(db_session, trip.id, not_on_item.id, test_user.id)
    # not_on_item was fanned out too; take it back off the item
    update_item_companions(db_session, "flight", flight, [inherited.id], test_user.id)

    data = load_item_companions_data(db_session, flight, "flight")

    item_user_ids = {entry["user_id"] for entry in data["item_companions"]}
    trip_user_ids = {entry["user_id"] for entry in data["trip_companions"]}
    assert item_user_ids == {other_user.id}
    assert trip_user_ids == {test_user.id, friend.id}
    assert not item_user_ids & trip_user_ids
    assert data["trip_owner_id"] == test_user.id


def test_update_item_companions_keeps_provenance(db_session, test_user, other_user, make_user, make_trip, make_flight, make_companion):
    trip = make_trip(test_user)
    friend = make_user("friend@example.com")
    inherited = make_companion(test_user, other_user.email, linked_user=other_user)
    explicit = make_companion(test_user, friend.email, linked_user=friend)
    add_companion_to_trip(db_session, trip.id, inherited.id, test_user.id)
    flight = make_flight(test_user, trip)
    db_session.add(models.ItemCompanion(
        item_type="flight", item_id=flight.id, companion_id=inherited.id,
        added_by=test_user.id, inherited_from_trip=True,
    ))
    db_session.commit()

    entries = update_item_companions(db_session, "flight", flight, [None, inherited.id, explicit.id], test_user.id)

    by_id = {entry["id"]: entry for entry in entries}
    assert set(by_id) == {inherited.id, explicit.id}
    assert by_id[inherited.id]["inherited_from_trip"] is True
    assert by_id[explicit.id]["inherited_from_trip"] is False


def test_update_item_companions_unknown_id(db_session, test_user, make_flight):
    flight = make_flight(test_user)
    with pytest.raises(NotFoundError):
        update_item_companions(db_session, "flight", flight, [424242], test_user.id)
