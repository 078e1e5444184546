from __future__ import annotations

from .similarity import (
    ScoringConfig,
    birth_year_score,
    match_score,
    name_similarity,
    normalize_name,
    score_members,
    scoring_config,
)

__all__ = [
    "ScoringConfig",
    "birth_year_score",
    "match_score",
    "name_similarity",
    "normalize_name",
    "score_members",
    "scoring_config",
]
