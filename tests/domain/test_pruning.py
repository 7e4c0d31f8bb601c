"""Tests for stale reference pruning."""

from __future__ import annotations

from merchctl.domain.entities import PlacedEntity
from merchctl.domain.pruning import plan_prune, slot_map
from merchctl.domain.scopes import ScopeKind


def slot(entity_id: str, index: int, category_id: str) -> PlacedEntity:
    return PlacedEntity(
        id=entity_id,
        kind=ScopeKind.HOMEPAGE_CATEGORY_SLOT,
        order=index,
        label=category_id,
        reference_id=category_id,
    )


def apply(assignments: list[PlacedEntity], valid: set[str]) -> list[PlacedEntity]:
    plan = plan_prune(assignments, valid)
    removed = {e.id for e in plan.removed}
    moved = {m.entity_id: m.to_index for m in plan.moves}
    return [
        e.model_copy(update={"order": moved.get(e.id or "", e.order)})
        for e in assignments
        if e.id not in removed
    ]


class TestPlanPrune:
    def test_removes_and_compacts(self) -> None:
        assignments = [slot("S1", 1, "c1"), slot("S2", 2, "c2"), slot("S3", 3, "c3")]
        assert slot_map(apply(assignments, {"c1", "c3"})) == {1: "c1", 2: "c3"}

    def test_compacts_gaps_preserving_order(self) -> None:
        assignments = [slot("S1", 2, "c1"), slot("S2", 5, "c2"), slot("S3", 9, "c3")]
        plan = plan_prune(assignments, {"c1", "c2", "c3"})
        assert plan.removed == ()
        assert [(m.entity_id, m.from_index, m.to_index) for m in plan.moves] == [
            ("S1", 2, 1),
            ("S2", 5, 2),
            ("S3", 9, 3),
        ]

    def test_idempotent(self) -> None:
        assignments = [slot("S1", 1, "c1"), slot("S2", 2, "c2"), slot("S3", 3, "c3")]
        once = apply(assignments, {"c2", "c3"})
        assert plan_prune(once, {"c2", "c3"}).changed is False

    def test_nothing_valid(self) -> None:
        plan = plan_prune([slot("S1", 1, "c1")], set())
        assert [e.id for e in plan.removed] == ["S1"]
        assert plan.moves == ()

    def test_clean_assignments_unchanged(self) -> None:
        plan = plan_prune([slot("S1", 1, "c1"), slot("S2", 2, "c2")], {"c1", "c2"})
        assert plan.changed is False

    def test_without_compaction_keeps_orders(self) -> None:
        items = [slot("I1", 1, "c1"), slot("I2", 2, "c2"), slot("I3", 4, "c3")]
        plan = plan_prune(items, {"c1", "c3"}, compact=False)
        assert [e.id for e in plan.removed] == ["I2"]
        assert plan.moves == ()


class TestSlotMap:
    def test_sparse(self) -> None:
        assert slot_map([slot("S2", 4, "c2"), slot("S1", 1, "c1")]) == {1: "c1", 4: "c2"}
