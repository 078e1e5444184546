"""
Shared proposal building for tree merges.

Both the invitation-driven candidate finder and the interactive merge mode
produce the same ``MergeResult`` shape. They differ only in how the anchor
pair is chosen, so the matching rules live here:

- parents / grandparents: greedy first-fit matching on gender
- children: every same-gender cross pair is scored, then pairs are accepted
  best-first while neither child is already consumed
- within one scope no member id is used twice (injective assignment)

The child matching is greedy, not a maximum-weight assignment. With the
handful of siblings a couple has this is stable and good enough.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Set, Tuple

from family_graph.identity.uuid_factory import pair_key
from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph, FamilyMember, Gender
from family_graph.resolution.models import (
    UNNAMED,
    ChildMergeSuggestion,
    ChildProfile,
    CoupleGroup,
    MergeCandidate,
    MergeRelationship,
    MergeResult,
)
from family_graph.scoring.similarity import ScoringConfig, score_members, scoring_config

log = get_logger("resolution.matching")

PARENTS_LABEL = "Parents"
GRANDPARENTS_LABEL = "Grandparents"


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------

def choose_survivor(
    preferred: FamilyMember,
    other: FamilyMember,
    prefer_earliest: bool = True,
) -> Tuple[FamilyMember, FamilyMember]:
    """
    Return (source, target). The earlier-created record survives when both
    carry ``created_at``; otherwise ``preferred`` survives.
    """
    if prefer_earliest and preferred.created_at and other.created_at:
        if other.created_at < preferred.created_at:
            return other, preferred
    return preferred, other


def make_candidate(
    source: FamilyMember,
    target: FamilyMember,
    relationship: MergeRelationship,
    config: ScoringConfig,
) -> MergeCandidate:
    score = score_members(source, target, config)
    return MergeCandidate(
        source_id=source.id,
        target_id=target.id,
        source_name=source.name or UNNAMED,
        target_name=target.name or UNNAMED,
        relationship=relationship,
        source_photo_url=source.photo_url,
        target_photo_url=target.photo_url,
        similarity=score,
        auto_accept=config.should_auto_merge(score),
    )


def couple_children(
    graph: FamilyGraph,
    couple: Iterable[FamilyMember],
    exclude: Set[str],
) -> List[FamilyMember]:
    """
    Children of every member of a couple, including children attached only
    to that member's spouse. Unique, in discovery order.
    """
    seen: Set[str] = set()
    out: List[FamilyMember] = []
    for parent in couple:
        carers = [parent]
        spouse = graph.spouse_of(parent.id)
        if spouse is not None:
            carers.append(spouse)
        for carer in carers:
            for child in graph.children_of(carer.id):
                if child.id in exclude or child.id in seen:
                    continue
                seen.add(child.id)
                out.append(child)
    return out


def couple_label(couples: Sequence[Sequence[FamilyMember]], fallback: str) -> str:
    """Father's then mother's name, taken from the first side that has one."""
    def first_named(gender: Gender) -> Optional[str]:
        for couple in couples:
            for m in couple:
                if m.gender is gender and m.name:
                    return m.name
        return None

    names = [n for n in (first_named(Gender.MALE), first_named(Gender.FEMALE)) if n]
    return " & ".join(names) or fallback


# ---------------------------------------------------------------------------
# Proposal builder
# ---------------------------------------------------------------------------

class ProposalBuilder:
    """
    Accumulates one ``MergeResult`` from a source graph and a target graph.
    The two may be the same arena (interactive merge mode).
    """

    def __init__(
        self,
        source_graph: FamilyGraph,
        target_graph: FamilyGraph,
        config: Optional[ScoringConfig] = None,
        prefer_earliest: bool = True,
    ):
        self.source_graph = source_graph
        self.target_graph = target_graph
        self.config = config or scoring_config()
        self.prefer_earliest = prefer_earliest
        self.result = MergeResult()
        self._consumed: Set[str] = set()
        self._processed: Set[Tuple[str, str]] = set()

    # -- injectivity bookkeeping ------------------------------------------

    def begin_scope(self) -> None:
        """Start a new merge scope; already proposed pairs stay suppressed."""
        self._consumed = set()

    def consume(self, *member_ids: str) -> None:
        self._consumed.update(member_ids)

    def is_consumed(self, member_id: str) -> bool:
        return member_id in self._consumed

    def _claim(self, a: str, b: str) -> bool:
        if a in self._consumed or b in self._consumed:
            return False
        self._consumed.update((a, b))
        return True

    # -- matching levels --------------------------------------------------

    def add_pair(
        self,
        source: FamilyMember,
        target: FamilyMember,
        relationship: MergeRelationship,
    ) -> Optional[MergeCandidate]:
        """Record a pair chosen outside level matching (merge-mode picks)."""
        self.consume(source.id, target.id)
        key = pair_key(source.id, target.id)
        if key in self._processed:
            return None
        self._processed.add(key)
        candidate = make_candidate(source, target, relationship, self.config)
        self.result.parent_merges.append(candidate)
        return candidate

    def match_level(
        self,
        source_members: Sequence[FamilyMember],
        target_members: Sequence[FamilyMember],
        relationship: MergeRelationship,
    ) -> Tuple[List[Tuple[FamilyMember, FamilyMember]], List[MergeCandidate]]:
        """
        Greedy gender matching of one generation.

        Returns the matched (source-side, target-side) member pairs and the
        candidates created for them. A member present on both sides (shared
        arena) is already one node and is consumed without a candidate.
        """
        target_ids = {t.id for t in target_members}
        for s in source_members:
            if s.id in target_ids:
                self.consume(s.id)

        pairs: List[Tuple[FamilyMember, FamilyMember]] = []
        merges: List[MergeCandidate] = []
        for s in source_members:
            if self.is_consumed(s.id):
                continue
            match = next(
                (t for t in target_members
                 if not self.is_consumed(t.id) and t.gender is s.gender and t.id != s.id),
                None,
            )
            if match is None:
                continue
            self._claim(s.id, match.id)
            pairs.append((s, match))

            key = pair_key(s.id, match.id)
            if key in self._processed:
                continue
            self._processed.add(key)

            source, target = choose_survivor(s, match, self.prefer_earliest)
            merges.append(make_candidate(source, target, relationship, self.config))

        self.result.parent_merges.extend(merges)
        return pairs, merges

    def match_children(
        self,
        source_children: Sequence[FamilyMember],
        target_children: Sequence[FamilyMember],
    ) -> List[ChildMergeSuggestion]:
        scored = []
        for i, s in enumerate(source_children):
            for j, t in enumerate(target_children):
                if s.id == t.id or s.gender is not t.gender:
                    continue
                score = score_members(s, t, self.config)
                if not self.config.is_suggestible(score):
                    continue
                scored.append((score, i, j, s, t))

        # Highest score first; ties keep input order
        scored.sort(key=lambda item: (-item[0], item[1], item[2]))

        suggestions: List[ChildMergeSuggestion] = []
        for score, _, _, s, t in scored:
            if not self._claim(s.id, t.id):
                continue
            self._processed.add(pair_key(s.id, t.id))
            suggestions.append(
                ChildMergeSuggestion(
                    source_child=ChildProfile.of(s),
                    target_child=ChildProfile.of(t),
                    similarity=score,
                    should_merge=self.config.should_auto_merge(score),
                )
            )
        return suggestions

    def add_couple_group(
        self,
        merges: List[MergeCandidate],
        source_couple: Sequence[FamilyMember],
        target_couple: Sequence[FamilyMember],
        exclude_source: Set[str],
        exclude_target: Set[str],
        fallback_label: str,
    ) -> Optional[CoupleGroup]:
        s_children = couple_children(self.source_graph, source_couple, exclude_source)
        t_children = couple_children(self.target_graph, target_couple, exclude_target)
        if not s_children and not t_children:
            return None

        group = CoupleGroup(
            label=couple_label([source_couple, target_couple], fallback_label),
            parent_merges=list(merges),
            source_children=[ChildProfile.of(c) for c in s_children],
            target_children=[ChildProfile.of(c) for c in t_children],
            child_suggestions=self.match_children(s_children, t_children),
        )
        self.result.add_group(group)
        return group

    # -- generations above an anchor pair ---------------------------------

    def expand_ancestors(self, source_anchor: FamilyMember, target_anchor: FamilyMember) -> None:
        """
        Match the anchors' parents, then the matched parents' parents, and
        build a couple group for every generation that produced merges.
        """
        s_parents = self.source_graph.parents_of(source_anchor.id)
        t_parents = self.target_graph.parents_of(target_anchor.id)
        log.debug(
            "expand_ancestors: %s (%d parents) vs %s (%d parents)",
            source_anchor.id, len(s_parents), target_anchor.id, len(t_parents),
        )

        parent_pairs, parent_merges = self.match_level(s_parents, t_parents, MergeRelationship.PARENT)
        if parent_merges:
            self.add_couple_group(
                parent_merges,
                s_parents,
                t_parents,
                {source_anchor.id},
                {target_anchor.id},
                PARENTS_LABEL,
            )

        for s_parent, t_parent in parent_pairs:
            s_grand = self.source_graph.parents_of(s_parent.id)
            t_grand = self.target_graph.parents_of(t_parent.id)
            if not s_grand or not t_grand:
                continue

            _, grand_merges = self.match_level(s_grand, t_grand, MergeRelationship.GRANDPARENT)
            if not grand_merges:
                continue
            self.add_couple_group(
                grand_merges,
                s_grand,
                t_grand,
                {s_parent.id},
                {t_parent.id},
                GRANDPARENTS_LABEL,
            )
