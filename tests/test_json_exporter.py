import json
from dataclasses import dataclass
from enum import Enum

from family_graph.exporter import (
    build_graph_dict,
    export_graph_json,
    graph_from_dict,
    load_graph_json,
    to_json_compatible,
)
from family_graph.registry.entities import Gender, Position

from conftest import make_member


class Colour(str, Enum):
    RED = "red"


@dataclass
class Box:
    colour: Colour
    tags: set


def test_to_json_compatible():
    data = to_json_compatible({"box": Box(Colour.RED, {"a"}), "pos": Position(1, 2), 3: (None, 1.5)})
    assert data == {"box": {"colour": "red", "tags": ["a"]}, "pos": {"x": 1, "y": 2}, "3": [None, 1.5]}


def test_graph_dict_inlines_positions(two_couples):
    two_couples.members["dad_a"].position = Position(10, 20)
    data = build_graph_dict(two_couples)

    assert data["owner_id"] == "alice"
    assert [row["id"] for row in data["members"]] == list(two_couples.members)
    assert data["members"][0]["position"] == {"x": 10, "y": 20}
    assert data["members"][1]["position"] is None

    restored = graph_from_dict(data)
    assert restored.members["dad_a"].position == Position(10, 20)
    assert restored.members["mum_b"].gender is Gender.FEMALE
    assert restored.members["kid_b"].parent_ids == ["dad_b", "mum_b"]


def test_export_and_load(tmp_path, two_couples):
    two_couples.register_member(make_member("gone", "Karim", merged_into="dad_a"))
    path = tmp_path / "out" / "graph.json"
    export_graph_json(two_couples, path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert len(raw["members"]) == 7

    loaded = load_graph_json(path)
    assert loaded.members == two_couples.members
    assert loaded.resolve("gone").id == "dad_a"
