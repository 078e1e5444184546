import pytest

from family_graph.core.exceptions import MemberNotFoundError
from family_graph.registry.entities import (
    FamilyGraph,
    Gender,
    Position,
    Relation,
    RelationKind,
)

from conftest import make_member


def test_gender_parse_accepts_shorthands():
    assert Gender.parse("M") is Gender.MALE
    assert Gender.parse("female") is Gender.FEMALE
    assert Gender.parse(Gender.FEMALE) is Gender.FEMALE
    assert Gender.parse(None) is Gender.MALE
    assert Gender.parse("?", default=Gender.FEMALE) is Gender.FEMALE
    assert Gender.MALE.opposite() is Gender.FEMALE


def test_relations_cover_every_field():
    m = make_member("m", parent_ids=["p"], spouse_id="s", children_ids=["c1", "c2"])
    assert list(m.relations()) == [
        Relation(RelationKind.PARENT, "p"),
        Relation(RelationKind.SPOUSE, "s"),
        Relation(RelationKind.CHILD, "c1"),
        Relation(RelationKind.CHILD, "c2"),
    ]


def test_add_relation_is_duplicate_free():
    m = make_member("m")
    assert m.add_relation(Relation(RelationKind.CHILD, "c"))
    assert not m.add_relation(Relation(RelationKind.CHILD, "c"))
    assert not m.add_relation(Relation(RelationKind.PARENT, "m"))
    assert m.add_relation(Relation(RelationKind.SPOUSE, "s"))
    assert m.children_ids == ["c"]
    assert m.spouse_id == "s"


def test_replace_reference_drops_self_and_duplicates():
    m = make_member("m", parent_ids=["old", "keep"], children_ids=["x", "new"], spouse_id="old")
    assert m.replace_reference("old", "keep")
    assert m.parent_ids == ["keep"]
    assert m.spouse_id == "keep"

    n = make_member("n", children_ids=["x", "new"], spouse_id="x")
    assert n.replace_reference("x", "new")
    assert n.children_ids == ["new"]
    assert n.spouse_id == "new"

    o = make_member("o", spouse_id="t")
    assert o.replace_reference("t", "o")
    assert o.spouse_id is None

    assert not make_member("p").replace_reference("a", "b")


def test_resolve_follows_tombstones_and_guards_cycles():
    graph = FamilyGraph.from_members(
        [
            make_member("a", merged_into="b"),
            make_member("b", merged_into="c"),
            make_member("c"),
            make_member("x", merged_into="y"),
            make_member("y", merged_into="x"),
            make_member("d", merged_into="missing"),
        ]
    )
    assert graph.resolve("a").id == "c"
    assert graph.resolve("c").id == "c"
    assert graph.resolve("x") is None
    assert graph.resolve("d") is None
    assert graph.resolve(None) is None
    assert {m.id for m in graph.live_members()} == {"c"}
    assert len(list(graph.tombstones())) == 5


def test_parents_of_reads_both_encodings(sender_tree, receiver_tree):
    assert [p.id for p in sender_tree.parents_of("s_bob")] == ["s_dad", "s_mum"]
    assert [p.id for p in receiver_tree.parents_of("r_self")] == ["r_dad", "r_mum"]
    assert [c.id for c in sender_tree.children_of("s_dad")] == ["a_self", "s_bob", "s_ali"]
    assert [c.id for c in receiver_tree.children_of("r_dad")] == ["r_self", "r_alice", "r_ali"]


def test_traversals_skip_tombstones_and_redirect():
    graph = FamilyGraph.from_members(
        [
            make_member("dad", children_ids=["kid", "dup"]),
            make_member("kid"),
            make_member("dup", merged_into="kid"),
        ]
    )
    assert [c.id for c in graph.children_of("dad")] == ["kid"]
    assert [p.id for p in graph.parents_of("kid")] == ["dad"]


def test_spouse_of_and_find_linked(sender_tree):
    assert sender_tree.spouse_of("s_dad").id == "s_mum"
    assert sender_tree.spouse_of("s_ali") is None
    assert sender_tree.find_linked("alice").id == "a_self"
    assert sender_tree.find_linked("nobody") is None
    assert sender_tree.find_linked(None) is None


def test_require_member_raises_key_error():
    graph = FamilyGraph()
    with pytest.raises(MemberNotFoundError) as exc:
        graph.require_member("ghost")
    assert isinstance(exc.value, KeyError)
    assert exc.value.member_id == "ghost"
    assert "ghost" in str(exc.value)


def test_combine_shares_member_objects(sender_tree, receiver_tree):
    combined = FamilyGraph.combine(sender_tree, receiver_tree, owner_id="alice")
    assert len(combined) == len(sender_tree) + len(receiver_tree)
    assert combined.members["s_dad"] is sender_tree.members["s_dad"]
    assert "r_dad" in combined
    assert set(combined.owned_by("bob").members) == set(receiver_tree.members)


def test_positions_only_for_live_positioned_members():
    graph = FamilyGraph.from_members(
        [
            make_member("a", position=Position(1, 2)),
            make_member("b"),
            make_member("c", position=Position(5, 5), merged_into="a"),
        ]
    )
    assert graph.positions() == {"a": Position(1, 2)}
    assert Position(1, 2).moved(3, -2) == Position(4, 0)
