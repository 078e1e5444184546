import json

import pytest

from family_graph.core.exceptions import InvitationError, PersistenceError
from family_graph.registry.entities import Gender, Invitation, InvitationStatus, Position
from family_graph.store.record_store import InMemoryRecordStore, JsonFileRecordStore
from family_graph.store.records import member_from_record, member_to_record

from conftest import make_member


def test_member_rows_keep_positions_in_their_own_table():
    store = InMemoryRecordStore()
    store.upsert_member(make_member("a", "Karim", owner_id="alice", position=Position(5, 6)))
    store.upsert_member(make_member("b", "Laylo", "female", owner_id="bob"))

    assert "position" not in store.members["a"]
    assert store.positions["a"] == {"x": 5, "y": 6}

    (loaded,) = store.list_members(["alice"])
    assert loaded.id == "a"
    assert loaded.position == Position(5, 6)
    assert store.get_member("b").gender is Gender.FEMALE
    assert store.get_member("ghost") is None


def test_update_and_tombstone():
    store = InMemoryRecordStore()
    store.upsert_member(make_member("a", "Karim"))
    store.update_member("a", {"name": "Karim B.", "parent_ids": ["p"]})
    store.tombstone_member("a", "z")

    member = store.get_member("a")
    assert member.name == "Karim B."
    assert member.parent_ids == ["p"]
    assert member.merged_into == "z"


def test_update_rejects_missing_rows_and_unknown_fields():
    store = InMemoryRecordStore()
    store.upsert_member(make_member("a"))
    with pytest.raises(PersistenceError):
        store.update_member("ghost", {"name": "x"})
    with pytest.raises(PersistenceError):
        store.update_member("a", {"relation_type": "self"})
    with pytest.raises(PersistenceError):
        store.delete_member("ghost")


def test_invitations():
    store = InMemoryRecordStore()
    store.save_invitation(Invitation("inv", "alice", "bob", "s_bob"))
    store.update_invitation_status("inv", InvitationStatus.ACCEPTED)

    assert store.get_invitation("inv").status is InvitationStatus.ACCEPTED
    assert store.get_invitation("other") is None
    with pytest.raises(InvitationError):
        store.update_invitation_status("other", InvitationStatus.REJECTED)


def test_camel_case_rows_are_read():
    member = member_from_record(
        {
            "id": "m1",
            "name": "Karim",
            "gender": "M",
            "birthYear": "1950",
            "parentIds": ["p1", "p1", "p2"],
            "spouseId": "w1",
            "linkedUserId": "u1",
            "mergedInto": "",
        }
    )
    assert member.birth_year == 1950
    assert member.parent_ids == ["p1", "p2"]
    assert member.spouse_id == "w1"
    assert member.linked_user_id == "u1"
    assert member.merged_into is None
    assert member_to_record(member)["birth_year"] == 1950

    with pytest.raises(ValueError):
        member_from_record({"name": "no id"})


def test_json_file_store_persists_every_write(tmp_path):
    path = tmp_path / "store" / "records.json"
    store = JsonFileRecordStore(path)
    store.upsert_member(make_member("a", "Karim", owner_id="alice"))
    store.write_position("a", Position(1, 2))

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["members"]["a"]["name"] == "Karim"
    assert on_disk["positions"]["a"] == {"x": 1, "y": 2}

    reopened = JsonFileRecordStore(path)
    assert reopened.get_member("a").position == Position(1, 2)


def test_json_file_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "records.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PersistenceError):
        JsonFileRecordStore(path)
