from family_graph.registry.entities import FamilyGraph
from family_graph.registry.link_entities import link_relationships

from conftest import make_member


def test_mirrors_parent_child_edges(sender_tree):
    counts = link_relationships(sender_tree)
    assert counts["child_links_added"] > 0
    assert sender_tree.members["s_dad"].children_ids == ["a_self", "s_bob", "s_ali"]
    assert sender_tree.members["s_gf"].children_ids == ["s_dad", "s_uncle"]


def test_is_idempotent(receiver_tree):
    link_relationships(receiver_tree)
    again = link_relationships(receiver_tree)
    assert all(v == 0 for v in again.values())
    assert receiver_tree.members["r_self"].parent_ids == ["r_dad", "r_mum"]


def test_redirects_tombstones_and_drops_dangling_ids():
    graph = FamilyGraph.from_members(
        [
            make_member("dad", children_ids=["old", "ghost"]),
            make_member("old", merged_into="kid"),
            make_member("kid"),
        ]
    )
    counts = link_relationships(graph)
    assert counts["redirected"] == 1
    assert counts["dropped"] == 1
    assert graph.members["dad"].children_ids == ["kid"]
    assert graph.members["kid"].parent_ids == ["dad"]


def test_completes_or_drops_one_sided_spouse_links():
    graph = FamilyGraph.from_members(
        [
            make_member("h", spouse_id="w"),
            make_member("w", "", "female"),
            make_member("x", spouse_id="y"),
            make_member("y", "", "female", spouse_id="z"),
            make_member("z", spouse_id="y"),
        ]
    )
    counts = link_relationships(graph)
    assert graph.members["w"].spouse_id == "h"
    assert graph.members["x"].spouse_id is None
    assert graph.members["y"].spouse_id == "z"
    assert counts["spouse_links_added"] == 1
    assert counts["spouse_links_dropped"] == 1
