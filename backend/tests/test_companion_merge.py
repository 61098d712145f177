import models
from utils.companion_merge import merge_companion_views


def _grant(db_session, companion, user, can_view, can_edit=False):
    db_session.add(models.CompanionPermission(
        companion_id=companion.id, granted_by=user.id, can_view=can_view, can_edit=can_edit
    ))
    db_session.commit()


def test_one_directional_record(db_session, test_user, other_user, make_companion):
    companion = make_companion(test_user, other_user.email, linked_user=other_user, can_view=True, can_edit=True)

    mine = merge_companion_views(db_session, test_user.id)
    assert len(mine) == 1
    entry = mine[0]
    assert entry["id"] == companion.id
    assert entry["can_share_trips"] is True
    assert entry["they_manage_trips"] is True
    assert entry["they_share_trips"] is False
    assert entry["can_manage_trips"] is False
    assert entry["you_invited"] is True
    assert entry["they_invited"] is False
    assert entry["has_linked_user"] is True

    # The other side sees a synthesized entry built from the creator
    theirs = merge_companion_views(db_session, other_user.id)
    assert len(theirs) == 1
    assert theirs[0]["email"] == test_user.email
    assert theirs[0]["user_id"] == test_user.id
    assert theirs[0]["they_share_trips"] is True
    assert theirs[0]["can_manage_trips"] is True
    assert theirs[0]["can_share_trips"] is True
    assert theirs[0]["they_manage_trips"] is False
    assert theirs[0]["you_invited"] is False
    assert theirs[0]["they_invited"] is True


def test_reciprocal_records_merge_to_one_entry_each(db_session, test_user, other_user, make_companion):
    a_for_b = make_companion(test_user, other_user.email, linked_user=other_user, can_view=True)
    b_for_a = make_companion(other_user, test_user.email, linked_user=test_user, can_view=False)

    a_view = merge_companion_views(db_session, test_user.id)
    b_view = merge_companion_views(db_session, other_user.id)

    assert len(a_view) == 1
    assert len(b_view) == 1
    # Canonical id is the record the viewer created
    assert a_view[0]["id"] == a_for_b.id
    assert b_view[0]["id"] == b_for_a.id
    assert a_view[0]["their_companion_id"] == b_for_a.id

    assert a_view[0]["they_share_trips"] == b_view[0]["can_share_trips"]
    assert b_view[0]["they_share_trips"] == a_view[0]["can_share_trips"]
    assert a_view[0]["they_invited"] is True and b_view[0]["they_invited"] is True


def test_counterpart_grant_on_my_record_wins_over_their_record(db_session, test_user, other_user, make_companion):
    a_for_b = make_companion(test_user, other_user.email, linked_user=other_user)
    # other_user grants back on test_user's record, and separately keeps a
    # record of their own with a different grant.
    _grant(db_session, a_for_b, other_user, can_view=True, can_edit=True)
    make_companion(other_user, test_user.email, linked_user=test_user, can_view=False, can_edit=False)

    entry = merge_companion_views(db_session, test_user.id)[0]
    assert entry["they_share_trips"] is True
    assert entry["can_manage_trips"] is True
    assert entry["they_invited"] is True


def test_unlinked_and_self_records(db_session, test_user, make_companion):
    make_companion(test_user, "nobody@example.com", first_name="Nobody")
    # A record for the user's own profile is never listed
    make_companion(test_user, "self-profile@example.com", linked_user=test_user)

    entries = merge_companion_views(db_session, test_user.id)
    assert [entry["email"] for entry in entries] == ["nobody@example.com"]
    assert entries[0]["has_linked_user"] is False
    assert entries[0]["they_share_trips"] is False


def test_entries_sorted_by_name(db_session, test_user, make_companion):
    make_companion(test_user, "zed@example.com", first_name="Zed")
    make_companion(test_user, "amy@example.com", first_name="amy")

    names = [entry["name"] for entry in merge_companion_views(db_session, test_user.id)]
    assert names == ["amy", "Zed"]
