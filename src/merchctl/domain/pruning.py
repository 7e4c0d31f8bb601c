"""Stale reference pruning for category-referencing scopes.

Homepage category slots and menu items reference categories by id.  When
the category collection changes, entries pointing at vanished categories
are removed.  Slot survivors are then compacted to contiguous slot
indexes starting at 1, keeping their relative order; menu items keep
their orders.

INVARIANT: Pruning only removes or lowers slot indexes inside the given
assignments.  It never touches the order of any other scope.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from merchctl.domain.ordering import sort_by_order

if TYPE_CHECKING:
    from merchctl.domain.entities import PlacedEntity


@dataclass(frozen=True)
class SlotMove:
    """One slot re-index produced by compaction."""

    entity_id: str
    reference_id: str | None
    from_index: int
    to_index: int


@dataclass(frozen=True)
class PrunePlan:
    """Removals and re-indexes needed to restore slot integrity."""

    removed: tuple[PlacedEntity, ...] = ()
    moves: tuple[SlotMove, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.moves)


def plan_prune(
    assignments: Iterable[PlacedEntity],
    valid_reference_ids: Iterable[str],
    *,
    compact: bool = True,
) -> PrunePlan:
    """Compute removals for stale references and the compaction that follows.

    Running the plan and then planning again against the same valid ids
    yields an empty plan.
    """
    valid = set(valid_reference_ids)
    ordered = sort_by_order(assignments)

    removed = tuple(a for a in ordered if a.reference_id not in valid)
    survivors = [a for a in ordered if a.reference_id in valid]
    if not compact:
        return PrunePlan(removed=removed)

    moves = tuple(
        SlotMove(
            entity_id=a.id or "",
            reference_id=a.reference_id,
            from_index=a.order,
            to_index=index,
        )
        for index, a in enumerate(survivors, start=1)
        if a.order != index
    )
    return PrunePlan(removed=removed, moves=moves)


def slot_map(assignments: Iterable[PlacedEntity]) -> dict[int, str]:
    """Sparse ``slot_index -> reference_id`` view of slot assignments."""
    return {a.order: a.reference_id or "" for a in sort_by_order(assignments)}
