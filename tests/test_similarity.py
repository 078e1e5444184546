import pytest

from family_graph.scoring.similarity import (
    ScoringConfig,
    birth_year_score,
    match_score,
    name_similarity,
    normalize_name,
    score_members,
)

from conftest import make_member


@pytest.mark.parametrize(
    "a, b",
    [
        ("Ali", "Vali"),
        ("Muhammad", "Mohammed"),
        ("Laylo", ""),
        ("Zuhra", "Zuhro"),
    ],
)
def test_name_similarity_is_symmetric(a, b):
    assert name_similarity(a, b) == name_similarity(b, a)


def test_name_similarity_ignores_case_accents_and_spacing():
    assert normalize_name("  José   MARÍA ") == "jose maria"
    assert name_similarity("José María", "jose  maria") == 100.0


def test_missing_names_score_zero():
    assert name_similarity("", "") == 0.0
    assert name_similarity(None, "Ali") == 0.0


def test_partial_name_similarity_is_between_bounds():
    score = name_similarity("Ali", "Vali")
    assert 0.0 < score < 100.0


def test_birth_year_score_rules():
    cfg = ScoringConfig()
    assert birth_year_score(1980, 1980, cfg) == 100.0
    assert birth_year_score(1980, None, cfg) == cfg.neutral_birth_score
    assert birth_year_score(None, None, cfg) == 50.0
    assert birth_year_score(1980, 1995, cfg) == 0.0
    assert birth_year_score(1980, 2030, cfg) == 0.0
    mid = birth_year_score(1980, 1985, cfg)
    assert 0.0 < mid < 100.0
    assert mid == birth_year_score(1985, 1980, cfg)


def test_exact_match_is_auto_merged(scoring):
    a = make_member("a", "Ali", birth_year=1980)
    b = make_member("b", "Ali", birth_year=1980)
    score = score_members(a, b, scoring)
    assert score >= 90
    assert scoring.should_auto_merge(score)


def test_missing_birth_years_give_neutral_combination(scoring):
    a = make_member("a", "Vali")
    b = make_member("b", "Vali")
    score = score_members(a, b, scoring)
    assert score == 85.0
    assert scoring.is_suggestible(score)
    assert not scoring.should_auto_merge(score)


def test_match_score_uses_neutral_when_one_side_lacks_year(scoring):
    assert match_score(100.0, 0.0, False, scoring) == 85.0
    assert match_score(100.0, 100.0, True, scoring) == 100.0


def test_score_members_is_symmetric(scoring):
    a = make_member("a", "Karim", birth_year=1950)
    b = make_member("b", "Karimjon", birth_year=1953)
    assert score_members(a, b, scoring) == score_members(b, a, scoring)


def test_scoring_config_from_mapping_ignores_unknown_keys():
    cfg = ScoringConfig.from_mapping(
        {"auto_merge_threshold": "95", "birth_year_cutoff": 10.0, "colour": "blue", "name_weight": None}
    )
    assert cfg.auto_merge_threshold == 95.0
    assert cfg.birth_year_cutoff == 10
    assert cfg.name_weight == 0.7
    assert ScoringConfig.from_mapping(None) == ScoringConfig()
