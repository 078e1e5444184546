import sys
from pathlib import Path

import pytest

# Ensure the project src directory is on sys.path for test imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_PATH = PROJECT_ROOT / "src"
if SRC_PATH not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from family_graph.registry.entities import FamilyGraph, FamilyMember, Gender  # noqa: E402
from family_graph.scoring.similarity import ScoringConfig  # noqa: E402


def make_member(member_id, name="", gender="male", **kwargs):
    return FamilyMember(id=member_id, name=name, gender=Gender.parse(gender), **kwargs)


@pytest.fixture
def scoring():
    return ScoringConfig()


@pytest.fixture
def sender_tree():
    """
    Alice's tree. Children point at parents (parent_ids only).

        Rustam + Zuhra
          |- Karim (1950) + Laylo (1955)
          |     |- Alice (self), Bob (bridge placeholder), Ali (1985)
          |- Aziz (1952)
    """
    members = [
        make_member("s_gf", "Rustam", "male", birth_year=1920, spouse_id="s_gm", owner_id="alice"),
        make_member("s_gm", "Zuhra", "female", birth_year=1925, spouse_id="s_gf", owner_id="alice"),
        make_member("s_dad", "Karim", "male", birth_year=1950, spouse_id="s_mum",
                    parent_ids=["s_gf", "s_gm"], owner_id="alice"),
        make_member("s_mum", "Laylo", "female", birth_year=1955, spouse_id="s_dad", owner_id="alice"),
        make_member("s_uncle", "Aziz", "male", birth_year=1952, parent_ids=["s_gf", "s_gm"], owner_id="alice"),
        make_member("a_self", "Alice", "female", birth_year=1980, parent_ids=["s_dad", "s_mum"],
                    linked_user_id="alice", owner_id="alice"),
        make_member("s_bob", "Bob", "male", birth_year=1982, parent_ids=["s_dad", "s_mum"], owner_id="alice"),
        make_member("s_ali", "Ali", "male", birth_year=1985, parent_ids=["s_dad", "s_mum"], owner_id="alice"),
    ]
    return FamilyGraph.from_members(members, owner_id="alice")


@pytest.fixture
def receiver_tree():
    """
    Bob's tree. Parents point at children (children_ids only).
    """
    members = [
        make_member("r_gf", "Rustam", "male", birth_year=1920, spouse_id="r_gm",
                    children_ids=["r_dad", "r_uncle"], owner_id="bob"),
        make_member("r_gm", "Zuhra", "female", birth_year=1925, spouse_id="r_gf",
                    children_ids=["r_dad", "r_uncle"], owner_id="bob"),
        make_member("r_dad", "Karim", "male", birth_year=1950, spouse_id="r_mum",
                    children_ids=["r_self", "r_alice", "r_ali"], owner_id="bob"),
        make_member("r_mum", "Laylo", "female", birth_year=1955, spouse_id="r_dad",
                    children_ids=["r_self", "r_alice", "r_ali"], owner_id="bob"),
        make_member("r_uncle", "Aziz", "male", birth_year=1952, owner_id="bob"),
        make_member("r_self", "Bob", "male", birth_year=1982, linked_user_id="bob", owner_id="bob"),
        make_member("r_alice", "Alice", "female", birth_year=1980, owner_id="bob"),
        make_member("r_ali", "Ali", "male", birth_year=1985, owner_id="bob"),
    ]
    return FamilyGraph.from_members(members, owner_id="bob")


@pytest.fixture
def two_couples():
    """
    One arena holding two copies of the same couple and their child.
    """
    members = [
        make_member("dad_a", "Karim", "male", spouse_id="mum_a", children_ids=["kid_a"]),
        make_member("mum_a", "Laylo", "female", spouse_id="dad_a", children_ids=["kid_a"]),
        make_member("kid_a", "Sara", "female", birth_year=2005, parent_ids=["dad_a", "mum_a"]),
        make_member("dad_b", "Karim", "male", spouse_id="mum_b", children_ids=["kid_b"],
                    linked_user_id="u_karim", photo_url="karim.jpg", birth_year=1950),
        make_member("mum_b", "Laylo", "female", spouse_id="dad_b", children_ids=["kid_b"]),
        make_member("kid_b", "Sara", "female", birth_year=2005, parent_ids=["dad_b", "mum_b"]),
    ]
    return FamilyGraph.from_members(members, owner_id="alice")
