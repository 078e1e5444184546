"""
Similarity scoring for member entity resolution.

This module implements:

- Name similarity (normalized Levenshtein over case/accent-folded names)
- Birth-year proximity with a neutral score for missing data
- A fixed-weight combination of both into a 0..100 match score
- The two gates used by proposal building: auto-merge threshold and
  suggestion floor

Every function here is pure and symmetric in its two member arguments.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from rapidfuzz.distance import Levenshtein

from family_graph.config import get_config
from family_graph.registry.entities import FamilyMember

# ---------------------------------------------------------------------------
# Defaults (config/family_graph.yml "scoring:" overrides)
# ---------------------------------------------------------------------------

DEFAULT_NAME_WEIGHT = 0.7
DEFAULT_BIRTH_WEIGHT = 0.3
DEFAULT_NEUTRAL_BIRTH_SCORE = 50.0
DEFAULT_BIRTH_YEAR_CUTOFF = 15
DEFAULT_AUTO_MERGE_THRESHOLD = 90.0
DEFAULT_SUGGESTION_FLOOR = 1.0


@dataclass(frozen=True)
class ScoringConfig:
    name_weight: float = DEFAULT_NAME_WEIGHT
    birth_weight: float = DEFAULT_BIRTH_WEIGHT
    neutral_birth_score: float = DEFAULT_NEUTRAL_BIRTH_SCORE
    birth_year_cutoff: int = DEFAULT_BIRTH_YEAR_CUTOFF
    auto_merge_threshold: float = DEFAULT_AUTO_MERGE_THRESHOLD
    suggestion_floor: float = DEFAULT_SUGGESTION_FLOOR

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "ScoringConfig":
        data = data or {}
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            kwargs[key] = int(value) if key == "birth_year_cutoff" else float(value)
        return cls(**kwargs)

    def should_auto_merge(self, score: float) -> bool:
        return score >= self.auto_merge_threshold

    def is_suggestible(self, score: float) -> bool:
        return score >= self.suggestion_floor


def scoring_config() -> ScoringConfig:
    """ScoringConfig built from the project YAML."""
    return ScoringConfig.from_mapping(get_config().scoring)


# ---------------------------------------------------------------------------
# Name similarity
# ---------------------------------------------------------------------------

def normalize_name(name: Optional[str]) -> str:
    """Casefold, strip accents and collapse whitespace."""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(name))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.casefold().split())


def name_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    0..100 similarity of two names.

    Missing or blank names score 0 (absence is not evidence of a match).
    """
    na = normalize_name(a)
    nb = normalize_name(b)
    if not na or not nb:
        return 0.0
    return round(Levenshtein.normalized_similarity(na, nb) * 100.0, 2)


# ---------------------------------------------------------------------------
# Birth-year proximity
# ---------------------------------------------------------------------------

def birth_year_score(
    a: Optional[int],
    b: Optional[int],
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Exact year -> 100; a known gap decays linearly to 0 at the cutoff;
    a missing year on either side -> the neutral score.
    """
    config = config or ScoringConfig()
    if a is None or b is None:
        return config.neutral_birth_score

    gap = abs(int(a) - int(b))
    if gap == 0:
        return 100.0
    cutoff = max(1, config.birth_year_cutoff)
    if gap >= cutoff:
        return 0.0
    return round(100.0 * (1.0 - gap / cutoff), 2)


# ---------------------------------------------------------------------------
# Combined score
# ---------------------------------------------------------------------------

def match_score(
    name_sim: float,
    birth_sim: float,
    both_have_birth_years: bool,
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Fixed-weight combination. Without birth years on both sides the birth
    component is the neutral score, so scores stay comparable across pairs.
    """
    config = config or ScoringConfig()
    birth = birth_sim if both_have_birth_years else config.neutral_birth_score
    return round(config.name_weight * name_sim + config.birth_weight * birth, 2)


def score_members(
    a: FamilyMember,
    b: FamilyMember,
    config: Optional[ScoringConfig] = None,
) -> float:
    config = config or ScoringConfig()
    both = a.birth_year is not None and b.birth_year is not None
    return match_score(
        name_similarity(a.name, b.name),
        birth_year_score(a.birth_year, b.birth_year, config),
        both,
        config,
    )
