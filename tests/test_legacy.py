from family_graph.registry.entities import Gender
from family_graph.store.legacy import members_from_legacy_rows, parse_relation_type


def test_parse_relation_type():
    assert parse_relation_type("self") == ("self", None)
    assert parse_relation_type("spouse_of_abc") == ("spouse", "abc")
    assert parse_relation_type("spouse_2_of_abc") == ("spouse", "abc")
    assert parse_relation_type("father_of_abc") == ("father", "abc")
    assert parse_relation_type("mother_2_of_abc") == ("mother", "abc")
    assert parse_relation_type("child_of_abc_3") == ("child", "abc")
    assert parse_relation_type("merged_into_abc") == ("merged", "abc")
    assert parse_relation_type("family_member") == (None, None)
    assert parse_relation_type(None) == (None, None)


def test_legacy_rows_become_typed_members():
    rows = [
        {"id": "me", "member_name": "Alice", "gender": "female", "relation_type": "self"},
        {"id": "dad", "member_name": "Karim", "gender": "male", "relation_type": "father_of_me",
         "avatar_url": "karim.jpg"},
        {"id": "mum", "member_name": "Laylo", "gender": "female", "relation_type": "spouse_of_dad"},
        {"id": "bro", "member_name": "Ali", "gender": "male", "relation_type": "child_of_dad_2",
         "birth_year": "1985"},
        {"id": "old", "member_name": "Ali", "gender": "male", "relation_type": "merged_into_bro"},
        {"id": "x", "member_name": "Stray", "relation_type": "child_of_ghost"},
    ]
    members, self_id = members_from_legacy_rows(rows)
    by_id = {m.id: m for m in members}

    assert self_id == "me"
    assert by_id["me"].parent_ids == ["dad"]
    assert by_id["dad"].children_ids == ["me", "bro"]
    assert by_id["dad"].photo_url == "karim.jpg"
    assert by_id["dad"].spouse_id == "mum" and by_id["mum"].spouse_id == "dad"
    assert by_id["bro"].parent_ids == ["dad", "mum"]
    assert by_id["bro"].birth_year == 1985
    assert by_id["mum"].children_ids == ["bro"]
    assert by_id["old"].merged_into == "bro"
    assert by_id["x"].parent_ids == []
    assert by_id["x"].gender is Gender.MALE


def test_second_spouse_row_is_linked():
    rows = [
        {"id": "dad", "member_name": "Karim", "gender": "male", "relation_type": "self"},
        {"id": "mum", "member_name": "Laylo", "gender": "female", "relation_type": "spouse_of_dad"},
        {"id": "wife2", "member_name": "Zuhra", "gender": "female", "relation_type": "spouse_2_of_dad"},
        {"id": "kid", "member_name": "Sara", "gender": "female", "relation_type": "child_of_dad"},
    ]
    members, _ = members_from_legacy_rows(rows)
    by_id = {m.id: m for m in members}

    assert by_id["wife2"].spouse_id == "dad"
    assert by_id["dad"].spouse_id == "mum"
    assert by_id["kid"].parent_ids == ["dad", "mum"]


def test_first_row_is_self_when_untagged():
    members, self_id = members_from_legacy_rows([{"id": "a", "name": "A"}, {"id": "b", "name": "B"}])
    assert self_id == "a"
    assert [m.name for m in members] == ["A", "B"]
    assert members_from_legacy_rows([]) == ([], None)
