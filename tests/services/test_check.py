"""Tests for CheckService — integrity reporting and repair."""

from __future__ import annotations

from sqlalchemy import delete, insert, update

from merchctl.infrastructure.database.schema import categories, placements
from merchctl.infrastructure.store import Store
from merchctl.services.check import CheckService
from tests.conftest import (
    add_category,
    item_payload,
    orders,
    place_entity,
    place_hero,
    section_payload,
)


def force_order(store: Store, entity_id: str, order: int, modified: str | None = None) -> None:
    """Write an order directly, bypassing conflict detection."""
    patch: dict[str, object] = {"order": order}
    store.gateway.update(entity_id, patch)
    if modified is not None:
        with store.engine.begin() as conn:
            conn.execute(
                update(placements).where(placements.c.id == entity_id).values(modified=modified)
            )


class TestCheckClean:
    def test_empty_store(self, store: Store) -> None:
        result = CheckService(store).check()
        assert result.ok
        assert result.data["count"] == 0

    def test_clean_scopes(self, store: Store) -> None:
        place_hero(store, "Alpha")
        place_hero(store, "Bravo")
        assert CheckService(store).check().data["issues"] == []


class TestCheckIssues:
    def test_duplicate_detected(self, store: Store) -> None:
        place_hero(store, "Alpha", order=1)
        place_hero(store, "Bravo", order=2)
        force_order(store, "HERO-0002", 1)
        issues = CheckService(store).check().data["issues"]
        assert len(issues) == 1
        assert issues[0]["category"] == "duplicate_order"
        assert issues[0]["scope"] == "hero-slide"
        assert set(issues[0]["ids"]) == {"HERO-0001", "HERO-0002"}

    def test_invalid_order_detected(self, store: Store) -> None:
        place_hero(store, "Alpha", order=1)
        force_order(store, "HERO-0001", 0)
        issues = CheckService(store).check().data["issues"]
        assert [i["category"] for i in issues] == ["invalid_order"]

    def test_over_capacity_detected(self, store: Store) -> None:
        for title in ("Alpha", "Bravo", "Charlie"):
            place_hero(store, title)
        with store.engine.begin() as conn:
            conn.execute(
                insert(placements).values(
                    id="HERO-0099",
                    kind="hero-slide",
                    variant=None,
                    position=9,
                    label="Extra",
                    payload="{}",
                    created="2025-01-01T00:00:00+00:00",
                    modified="2025-01-01T00:00:00+00:00",
                )
            )
        issues = CheckService(store).check(kind="hero-slide").data["issues"]
        assert [i["category"] for i in issues] == ["over_capacity"]
        assert issues[0]["severity"] == "warning"

    def test_stale_reference_detected(self, store: Store) -> None:
        c1 = add_category(store, "Brakes")
        place_entity(store, "homepage-category-slot", {"category_id": c1})
        with store.engine.begin() as conn:
            conn.execute(delete(categories).where(categories.c.id == c1))
        issues = CheckService(store).check().data["issues"]
        assert [i["category"] for i in issues] == ["stale_reference"]

    def test_kind_filter(self, store: Store) -> None:
        place_hero(store, "Alpha", order=1)
        place_hero(store, "Bravo", order=2)
        force_order(store, "HERO-0002", 1)
        assert CheckService(store).check(kind="menu-link").data["count"] == 0


class TestCheckFix:
    def test_latest_write_keeps_contested_order(self, store: Store) -> None:
        place_hero(store, "Alpha", order=1)
        place_hero(store, "Bravo", order=2)
        force_order(store, "HERO-0001", 2, modified="2025-01-01T00:00:00+00:00")
        force_order(store, "HERO-0002", 2, modified="2025-06-01T00:00:00+00:00")

        result = CheckService(store).check(fix=True)
        assert result.ok
        assert len(result.data["fixes"]) == 1
        assert orders(store, "hero-slide") == {"Bravo": 2, "Alpha": 1}
        assert CheckService(store).check().data["count"] == 0

    def test_fix_prunes_stale_slots(self, store: Store) -> None:
        c1, c2 = (add_category(store, n) for n in ("Brakes", "Filters"))
        place_entity(store, "homepage-category-slot", {"category_id": c1}, order=1)
        place_entity(store, "homepage-category-slot", {"category_id": c2}, order=2)
        with store.engine.begin() as conn:
            conn.execute(delete(categories).where(categories.c.id == c1))

        result = CheckService(store).check(fix=True)
        assert any("pruned" in f for f in result.data["fixes"])
        assert orders(store, "homepage-category-slot") == {"Filters": 1}

    def test_fix_on_clean_store(self, store: Store) -> None:
        result = CheckService(store).check(fix=True)
        assert result.data["fixes"] == []


class TestCheckMenuItems:
    def test_stale_item_reported_and_pruned(self, store: Store) -> None:
        c1, c2 = (add_category(store, n) for n in ("Brakes", "Filters"))
        parts = place_entity(store, "menu-section", section_payload("Parts"))["id"]
        place_entity(store, "menu-item", item_payload(c1), variant=parts)
        place_entity(store, "menu-item", item_payload(c2), variant=parts)
        with store.engine.begin() as conn:
            conn.execute(delete(categories).where(categories.c.id == c1))

        issues = CheckService(store).check().data["issues"]
        assert [i["category"] for i in issues] == ["stale_reference"]
        assert issues[0]["scope"] == f"menu-item:{parts}"
        assert issues[0]["message"].startswith("Item 1 references missing category")

        result = CheckService(store).check(fix=True)
        assert "pruned stale menu item MITM-0001 (CAT-0001)" in result.data["fixes"]
        assert orders(store, "menu-item", parts) == {"Filters": 2}

    def test_orphaned_items_reported_and_pruned(self, store: Store) -> None:
        c1 = add_category(store, "Brakes")
        parts = place_entity(store, "menu-section", section_payload("Parts"))["id"]
        place_entity(store, "menu-item", item_payload(c1), variant=parts)
        store.gateway.delete(parts)

        issues = CheckService(store).check(kind="menu-item").data["issues"]
        assert [i["category"] for i in issues] == ["stale_reference"]
        assert "missing menu-section" in issues[0]["message"]
        assert issues[0]["ids"] == ["MITM-0001"]

        CheckService(store).check(fix=True)
        assert store.gateway.list_variants("menu-item") == []

    def test_duplicate_item_orders_repaired(self, store: Store) -> None:
        c1, c2 = (add_category(store, n) for n in ("Brakes", "Filters"))
        parts = place_entity(store, "menu-section", section_payload("Parts"))["id"]
        place_entity(store, "menu-item", item_payload(c1), variant=parts)
        place_entity(store, "menu-item", item_payload(c2), variant=parts)
        force_order(store, "MITM-0001", 2, modified="2025-01-01T00:00:00+00:00")

        result = CheckService(store).check(kind="menu-item", variant=parts, fix=True)
        assert [i["category"] for i in result.data["issues"]] == ["duplicate_order"]
        assert orders(store, "menu-item", parts) == {"Filters": 2, "Brakes": 1}
