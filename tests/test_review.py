from family_graph.registry.entities import Gender
from family_graph.resolution.candidates import find_merge_candidates
from family_graph.resolution.models import ChildProfile, MergePair
from family_graph.resolution.review import (
    build_child_review,
    confirmed_child_pairs,
    default_parent_pairs,
    pair_children,
    review_summary,
    toggle_child,
)


def _result(sender_tree, receiver_tree, scoring):
    return find_merge_candidates(sender_tree, receiver_tree, "s_bob", "bob", scoring)


def test_suggested_rows_are_prechecked(sender_tree, receiver_tree, scoring):
    result = _result(sender_tree, receiver_tree, scoring)
    items = build_child_review(result)

    assert [(i.source_child.id, i.target_child.id, i.checked) for i in items] == [
        ("a_self", "r_alice", True),
        ("s_ali", "r_ali", True),
        ("s_uncle", "r_uncle", True),
    ]
    assert confirmed_child_pairs(items) == [
        MergePair("a_self", "r_alice"),
        MergePair("s_ali", "r_ali"),
        MergePair("s_uncle", "r_uncle"),
    ]


def test_unmatched_child_gets_free_target_unchecked(sender_tree, receiver_tree, scoring):
    receiver_tree.members["r_ali"].name = ""
    receiver_tree.members["r_ali"].birth_year = None
    result = _result(sender_tree, receiver_tree, scoring)
    items = build_child_review(result)

    ali = next(i for i in items if i.source_child.id == "s_ali")
    assert ali.target_child.id == "r_ali"
    assert not ali.checked
    assert ali.as_pair() is None


def test_toggle_and_manual_pairing(sender_tree, receiver_tree, scoring):
    result = _result(sender_tree, receiver_tree, scoring)
    items = build_child_review(result)

    assert toggle_child(items, 0) is False
    assert items[0].as_pair() is None

    r_ali = items[1].target_child
    assert pair_children(items, "s_uncle", r_ali) is True
    assert items[2].target_child.id == "r_ali"
    assert items[1].target_child is None
    assert not items[1].checked
    assert toggle_child(items, 1) is False

    alice = ChildProfile("r_alice", "Alice", Gender.FEMALE)
    assert pair_children(items, "s_ali", alice) is False
    assert pair_children(items, "nobody", r_ali) is False

    assert review_summary(result, items) == {"parents": 4, "children_merge": 1, "children_separate": 2}


def test_default_parent_pairs_are_auto_accepted_only(sender_tree, receiver_tree, scoring):
    sender_tree.members["s_gm"].name = "Zarina"
    result = _result(sender_tree, receiver_tree, scoring)
    assert default_parent_pairs(result) == [
        MergePair("s_dad", "r_dad"),
        MergePair("s_mum", "r_mum"),
        MergePair("s_gf", "r_gf"),
    ]
