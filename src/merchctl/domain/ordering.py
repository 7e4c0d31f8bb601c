"""Order assignment, conflict detection, and duplicate repair planning.

Pure functions over a scope and a snapshot of entities.  Callers pass
whatever the gateway listed; entities outside the scope (other kinds or
other variants) are ignored, so a mixed listing is safe.

Two distinct "next" rules apply:

- :func:`next_order` is ``max + 1`` — used for new entities without an
  explicit order.  It never reuses a gap.
- :func:`first_free_order` is the smallest positive integer not taken —
  used only for displaced occupants (and for wrapping slot grids).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from merchctl.domain.entities import PlacedEntity
    from merchctl.domain.scopes import Scope


def in_scope(scope: Scope, entities: Iterable[PlacedEntity]) -> list[PlacedEntity]:
    """Filter *entities* to those belonging to *scope*."""
    return [e for e in entities if scope.contains(e)]


def sort_by_order(entities: Iterable[PlacedEntity]) -> list[PlacedEntity]:
    """Sort by order, then creation time, then id (stable display order)."""
    return sorted(entities, key=lambda e: (e.order, e.created or "", e.id or ""))


def occupied_orders(scope: Scope, entities: Iterable[PlacedEntity]) -> set[int]:
    return {e.order for e in in_scope(scope, entities)}


def next_order(scope: Scope, entities: Iterable[PlacedEntity]) -> int:
    """Return ``max(order) + 1`` over the scope, or 1 when the scope is empty.

    The scope bound is not enforced; callers decide whether a value past
    ``max_slots`` is rejected or wrapped.

    Examples:
        Orders ``{1, 2, 4}`` give 5, not 3.
    """
    orders = occupied_orders(scope, entities)
    return max(orders) + 1 if orders else 1


def first_free_order(occupied: Iterable[int]) -> int:
    """Smallest positive integer not in *occupied*."""
    taken = set(occupied)
    candidate = 1
    while candidate in taken:
        candidate += 1
    return candidate


def find_conflict(
    scope: Scope,
    entities: Iterable[PlacedEntity],
    desired_order: int,
    exclude_id: str | None = None,
) -> PlacedEntity | None:
    """Return the entity occupying *desired_order*, ignoring *exclude_id*.

    *exclude_id* is the entity being edited, so re-saving an entity at its
    own order is never reported as a conflict.
    """
    for entity in sort_by_order(in_scope(scope, entities)):
        if entity.order != desired_order:
            continue
        if exclude_id is not None and entity.id == exclude_id:
            continue
        return entity
    return None


def duplicate_orders(
    scope: Scope, entities: Iterable[PlacedEntity]
) -> dict[int, list[PlacedEntity]]:
    """Group entities sharing an order value; only groups of two or more."""
    groups: dict[int, list[PlacedEntity]] = defaultdict(list)
    for entity in in_scope(scope, entities):
        groups[entity.order].append(entity)
    return {order: group for order, group in sorted(groups.items()) if len(group) > 1}


def plan_repair(scope: Scope, entities: Iterable[PlacedEntity]) -> list[tuple[PlacedEntity, int]]:
    """Plan relocations that restore unique, positive orders in *scope*.

    On a contested order the most recently modified entity stays (it holds
    the authoritative write); the others move to the smallest free orders.
    Entities with ``order < 1`` move as well.

    Returns:
        ``(entity, new_order)`` pairs in application order.
    """
    members = in_scope(scope, entities)
    occupied = {e.order for e in members if e.order >= 1}
    moves: list[tuple[PlacedEntity, int]] = []
    moved: set[str | None] = set()

    for _, group in duplicate_orders(scope, members).items():
        ranked = sorted(group, key=lambda e: (e.modified or "", e.id or ""), reverse=True)
        for loser in ranked[1:]:
            target = first_free_order(occupied)
            occupied.add(target)
            moves.append((loser, target))
            moved.add(loser.id)

    for entity in sort_by_order(e for e in members if e.order < 1 and e.id not in moved):
        target = first_free_order(occupied)
        occupied.add(target)
        moves.append((entity, target))

    return moves
