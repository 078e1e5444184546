"""
Dragging members on the canvas.

Intermediate positions during a drag only change the in-memory graph. The
record store sees one ``write_position`` per moved member when the drag
finishes. Spouses move together unless their pair has been unlocked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from family_graph.identity.uuid_factory import pair_key
from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph, Position

log = get_logger("layout.drag")


@dataclass(slots=True)
class SpouseLocks:
    """Spouse pairs are locked by default; only unlocked pairs are stored."""

    unlocked: Set[tuple] = field(default_factory=set)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Iterable[str]]) -> "SpouseLocks":
        locks = cls()
        for a, b in pairs:
            locks.unlocked.add(pair_key(a, b))
        return locks

    def is_locked(self, member_id: str, spouse_id: Optional[str]) -> bool:
        if not spouse_id:
            return False
        return pair_key(member_id, spouse_id) not in self.unlocked

    def set_locked(self, member_id: str, spouse_id: Optional[str], locked: bool) -> None:
        if not spouse_id:
            return
        key = pair_key(member_id, spouse_id)
        if locked:
            self.unlocked.discard(key)
        else:
            self.unlocked.add(key)

    def toggle(self, member_id: str, spouse_id: Optional[str]) -> bool:
        """Flip the pair's lock; returns the new locked state."""
        locked = not self.is_locked(member_id, spouse_id)
        self.set_locked(member_id, spouse_id, locked)
        return locked

    def locked_spouse(self, graph: FamilyGraph, member_id: str) -> Optional[str]:
        spouse = graph.spouse_of(member_id)
        if spouse is None or not self.is_locked(member_id, spouse.id):
            return None
        return spouse.id

    def to_list(self) -> List[List[str]]:
        return [list(k) for k in sorted(self.unlocked)]


class DragSession:
    def __init__(self, graph: FamilyGraph, member_id: str, locks: Optional[SpouseLocks] = None):
        self.graph = graph
        self.member_id = graph.require_member(member_id).id
        self.locks = locks or SpouseLocks()
        self.moving: List[str] = [self.member_id]
        spouse_id = self.locks.locked_spouse(graph, self.member_id)
        if spouse_id is not None:
            self.moving.append(spouse_id)
        self.start: Dict[str, Optional[Position]] = {
            mid: graph.members[mid].position for mid in self.moving
        }
        self.finished = False

    def move_to(self, x: float, y: float) -> None:
        """Move the dragged member to (x, y); a locked spouse follows by the same delta."""
        if self.finished:
            raise RuntimeError("Drag session already finished")
        dragged = self.graph.members[self.member_id]
        current = dragged.position or Position(0.0, 0.0)
        dx, dy = x - current.x, y - current.y
        dragged.position = Position(x, y)
        for mid in self.moving[1:]:
            other = self.graph.members[mid]
            if other.position is not None:
                other.position = other.position.moved(dx, dy)

    def cancel(self) -> None:
        for mid, pos in self.start.items():
            self.graph.members[mid].position = pos
        self.finished = True

    def finish(self, store: Any = None) -> Dict[str, Position]:
        """Hand the final positions of moved members to the store."""
        self.finished = True
        final: Dict[str, Position] = {}
        for mid in self.moving:
            pos = self.graph.members[mid].position
            if pos is None or pos == self.start.get(mid):
                continue
            final[mid] = pos
        if store is not None:
            for mid, pos in final.items():
                store.write_position(mid, pos)
        log.debug("Drag of %s finished; %d positions persisted", self.member_id, len(final))
        return final
