import pytest

from family_graph.core.exceptions import FamilyGraphError, GenderMismatchError
from family_graph.registry.editing import (
    add_child,
    add_initial_couple,
    add_parents,
    add_spouse,
    link_spouses,
    remove_member,
)
from family_graph.registry.entities import FamilyGraph, Gender, Position
from family_graph.resolution.executor import execute_merges
from family_graph.store.record_store import InMemoryRecordStore

from conftest import make_member


@pytest.fixture
def seeded():
    graph = FamilyGraph(owner_id="alice")
    store = InMemoryRecordStore()
    husband_id, wife_id = add_initial_couple(graph, owner_id="alice", self_user_id="alice", store=store)
    return graph, store, husband_id, wife_id


def test_initial_couple(seeded):
    graph, store, husband_id, wife_id = seeded
    husband, wife = graph.members[husband_id], graph.members[wife_id]

    assert husband.gender is Gender.MALE and wife.gender is Gender.FEMALE
    assert husband.spouse_id == wife_id and wife.spouse_id == husband_id
    assert husband.linked_user_id == "alice"
    assert husband.owner_id == "alice"
    assert husband.created_at

    assert husband.position == Position(250, 0)
    assert wife.position == Position(430, 0)
    assert set(store.members) == {husband_id, wife_id}
    assert store.read_position(wife_id) == Position(430, 0)


def test_add_parents(seeded):
    graph, store, husband_id, _ = seeded
    dad_id, mum_id = add_parents(graph, husband_id, {"name": "Karim"}, {"name": "Laylo"}, store=store)

    assert graph.members[husband_id].parent_ids == [dad_id, mum_id]
    assert graph.members[dad_id].children_ids == [husband_id]
    assert graph.members[dad_id].spouse_id == mum_id
    assert graph.members[mum_id].name == "Laylo"
    assert graph.members[dad_id].position == Position(160, -200)
    assert graph.members[mum_id].position == Position(340, -200)
    assert store.members[husband_id]["parent_ids"] == [dad_id, mum_id]

    with pytest.raises(FamilyGraphError):
        add_parents(graph, husband_id)


def test_add_child_attaches_both_partners(seeded):
    graph, store, husband_id, wife_id = seeded
    child_id = add_child(graph, wife_id, {"name": "Sara", "gender": "female", "birth_year": 2005}, store=store)

    child = graph.members[child_id]
    assert child.gender is Gender.FEMALE
    assert child.birth_year == 2005
    assert child.parent_ids == [wife_id, husband_id]
    assert graph.members[husband_id].children_ids == [child_id]
    assert child.position == Position(340, 200)
    assert store.members[wife_id]["children_ids"] == [child_id]


def test_add_spouse(seeded):
    graph, store, husband_id, _ = seeded
    child_id = add_child(graph, husband_id, {"name": "Sara", "gender": "F"}, store=store)

    with pytest.raises(GenderMismatchError):
        add_spouse(graph, child_id, {"name": "Aziz", "gender": "female"})
    count = len(graph)

    spouse_id = add_spouse(graph, child_id, {"name": "Aziz"}, store=store)
    assert len(graph) == count + 1
    assert graph.members[spouse_id].gender is Gender.MALE
    assert graph.members[child_id].spouse_id == spouse_id
    assert graph.members[spouse_id].position == Position(160, 200)

    with pytest.raises(FamilyGraphError):
        add_spouse(graph, child_id)


def test_link_spouses_checks_gender_and_marriage():
    graph = FamilyGraph.from_members(
        [
            make_member("a", "Karim"),
            make_member("b", "Aziz"),
            make_member("c", "Laylo", "female", spouse_id="d"),
            make_member("d", "Rustam", spouse_id="c"),
            make_member("e", "Zuhra", "female"),
        ]
    )
    with pytest.raises(GenderMismatchError):
        link_spouses(graph, "a", "b")
    with pytest.raises(FamilyGraphError):
        link_spouses(graph, "a", "c")

    link_spouses(graph, "a", "e")
    assert graph.members["a"].spouse_id == "e"
    assert graph.members["e"].spouse_id == "a"


def test_remove_member_unlinks_relatives(seeded):
    graph, store, husband_id, wife_id = seeded
    child_id = add_child(graph, husband_id, {"name": "Sara"}, store=store)

    changed = remove_member(graph, child_id, store=store)
    assert sorted(changed) == sorted([husband_id, wife_id])
    assert child_id not in graph
    assert child_id not in store.members
    assert graph.members[husband_id].children_ids == []
    assert store.members[wife_id]["children_ids"] == []


def test_merge_survivor_cannot_be_removed():
    graph = FamilyGraph.from_members([make_member("a", "Karim"), make_member("b", "Karim")])
    execute_merges(graph, [("a", "b")])

    with pytest.raises(FamilyGraphError):
        remove_member(graph, "a")
    with pytest.raises(FamilyGraphError):
        remove_member(graph, "b")
