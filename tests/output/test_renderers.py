"""Tests for operation-specific Rich renderers."""

from merchctl.output.renderers import render_quiet, render_result
from merchctl.services.result import ServiceError, ServiceResult

# ── Helpers ───────────────────────────────────────────────────────────


def _ok(op: str, **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str, code: str, message: str, **detail: object) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=dict(detail)),
    )


def _conflict() -> ServiceResult:
    return ServiceResult(
        ok=True,
        op="place",
        data={
            "outcome": "conflict",
            "conflict": {
                "kind": "hero-slide",
                "variant": None,
                "desired_order": 2,
                "occupant_id": "HERO-0002",
                "occupant_label": "Bravo",
            },
        },
        warnings=['Order 2 is already used by "Bravo"'],
    )


ENTITY = {"id": "HERO-0003", "kind": "hero-slide", "order": 2, "label": "Charlie"}


# ── Error rendering ──────────────────────────────────────────────────


class TestErrorRenderer:
    def test_basic_error(self) -> None:
        output = render_result(_err("place", "OUT_OF_BOUNDS", "hero-slide is at capacity"))
        assert "ERROR" in output
        assert "place" in output
        assert "[OUT_OF_BOUNDS]" in output
        assert "hero-slide is at capacity" in output

    def test_verbose_shows_detail(self) -> None:
        result = _err("place", "VALIDATION_FAILED", "Bad", errors=["title: required"])
        output = render_result(result, verbose=True)
        assert "detail" in output
        assert "title: required" in output

    def test_no_error_object(self) -> None:
        assert "Unknown error" in render_result(ServiceResult(ok=False, op="test"))

    def test_partial_displacement_shows_resume(self) -> None:
        result = _err(
            "place",
            "IO_ERROR",
            "Persistence failed during relocate: simulated outage",
            step="relocate",
            completed_steps=["place", "relist"],
            placed_id="HERO-0003",
            rolled_back=False,
            kind="featured-item",
            variant="tile",
            order=2,
        )
        output = render_result(result)
        assert "failed step: relocate (completed: place, relist)" in output
        assert "merchctl resume featured-item 2 --placed-id HERO-0003 --variant tile" in output

    def test_menu_item_resume_uses_section(self) -> None:
        result = _err(
            "place",
            "IO_ERROR",
            "Persistence failed during relocate: simulated outage",
            step="relocate",
            completed_steps=["place", "relist"],
            placed_id="MITM-0003",
            rolled_back=False,
            kind="menu-item",
            variant="MSEC-0001",
            order=1,
        )
        expected = "merchctl resume menu-item 1 --placed-id MITM-0003 --section MSEC-0001"
        assert expected in render_result(result)

    def test_rolled_back_hides_step(self) -> None:
        result = _err(
            "place", "IO_ERROR", "Persistence failed", step="relocate", rolled_back=True
        )
        output = render_result(result)
        assert "failed step" not in output
        assert "resume" not in output


# ── Placement renderers ──────────────────────────────────────────────


class TestPlaceRenderer:
    def test_placed(self) -> None:
        output = render_result(_ok("place", outcome="placed", auto_assigned=True, entity=ENTITY))
        assert "OK" in output
        assert "HERO-0003" in output
        assert "Charlie" in output

    def test_conflict(self) -> None:
        output = render_result(_conflict())
        assert "CONFLICT" in output
        assert 'Order 2 is already used by "Bravo"' in output
        assert "HERO-0002" in output
        assert "--confirm" in output

    def test_displaced(self) -> None:
        result = _ok(
            "place",
            outcome="displaced",
            entity=ENTITY,
            displaced=[{"id": "HERO-0002", "label": "Bravo", "from_order": 2, "to_order": 3}],
        )
        output = render_result(result)
        assert 'displaced HERO-0002 "Bravo": 2 -> 3' in output

    def test_slot_move(self) -> None:
        entity = {**ENTITY, "id": "SLOT-0001", "kind": "homepage-category-slot"}
        output = render_result(_ok("place", outcome="placed", entity=entity, moved_from=4))
        assert "moved_from: 4" in output


class TestListRenderer:
    def test_scopes_and_capacity(self) -> None:
        result = _ok(
            "list",
            kind="featured-item",
            scopes=[
                {
                    "scope": "featured-item:feature",
                    "max_slots": 3,
                    "count": 1,
                    "items": [{"id": "FEAT-0001", "order": 1, "label": "Oils"}],
                },
                {"scope": "featured-item:tile", "max_slots": 4, "count": 0, "items": []},
            ],
        )
        output = render_result(result)
        assert "featured-item:feature  (1/3)" in output
        assert "FEAT-0001" in output
        assert "Oils" in output
        assert "(empty)" in output

    def test_unbounded_scope(self) -> None:
        scope = {"scope": "menu-section", "max_slots": None, "count": 0, "items": []}
        output = render_result(_ok("list", kind="menu-section", scopes=[scope]))
        assert "menu-section  (0)" in output


class TestGetRenderer:
    def test_panel_shows_payload(self) -> None:
        entity = {
            **ENTITY,
            "variant": None,
            "payload": {"title": "Charlie", "link_url": "/sale"},
            "created": "2025-01-01T00:00:00+00:00",
        }
        output = render_result(_ok("get", entity=entity))
        assert "HERO-0003: Charlie" in output
        assert "link_url: /sale" in output
        assert "created" not in output
        assert "created" in render_result(_ok("get", entity=entity), verbose=True)


class TestConflictRenderer:
    def test_free(self) -> None:
        output = render_result(_ok("find_conflict", scope="hero-slide", order=3, conflict=None))
        assert "FREE" in output
        assert "Order 3 is free in hero-slide" in output

    def test_occupied(self) -> None:
        conflict = _conflict().data["conflict"]
        output = render_result(
            _ok("find_conflict", scope="hero-slide", order=2, conflict=conflict)
        )
        assert "CONFLICT" in output
        assert "(HERO-0002)" in output


# ── Slots and categories ─────────────────────────────────────────────


class TestAssignmentsRenderer:
    def test_full_grid_with_gaps(self) -> None:
        result = _ok(
            "assignments",
            slots={"2": "CAT-0001"},
            labels={"2": "Brakes"},
            count=1,
            max_slots=3,
        )
        output = render_result(result)
        assert "CAT-0001" in output
        assert "Brakes" in output
        for index in ("1", "2", "3"):
            assert index in output


class TestPruneRenderer:
    def test_counts(self) -> None:
        result = _ok(
            "prune",
            removed=[{"id": "SLOT-0001", "order": 1}],
            moves=[{"id": "SLOT-0002", "from_index": 2, "to_index": 1}],
            count=1,
        )
        output = render_result(result)
        assert "removed: 1" in output
        assert "moved: 1" in output
        assert "slot 2 -> 1" in render_result(result, verbose=True)

    def test_remove_category_nests_prune(self) -> None:
        result = _ok("remove_category", id="CAT-0001", pruned={"removed": [], "moves": []})
        output = render_result(result)
        assert "CAT-0001" in output
        assert "removed: 0" in output

    def test_removed_menu_items(self) -> None:
        item = {"id": "MITM-0002", "kind": "menu-item", "variant": "MSEC-0001", "order": 2}
        result = _ok("prune", removed=[], moves=[], removed_items=[item], count=0)
        assert "removed_items: 1" in render_result(result)
        assert "removed MITM-0002 (menu section MSEC-0001)" in render_result(result, verbose=True)


class TestCategoriesRenderer:
    def test_table(self) -> None:
        items = [{"id": "CAT-0001", "name": "Brakes"}]
        output = render_result(_ok("list_categories", items=items, count=1))
        assert "CAT-0001" in output
        assert "Brakes" in output


# ── Check renderer ───────────────────────────────────────────────────


class TestCheckRenderer:
    def test_clean(self) -> None:
        assert "No issues found" in render_result(_ok("check", issues=[], count=0))

    def test_issues_grouped(self) -> None:
        issues = [
            {
                "category": "duplicate_order",
                "severity": "error",
                "scope": "hero-slide",
                "message": 'Order 1 is shared by "Alpha", "Bravo"',
                "ids": ["HERO-0001", "HERO-0002"],
                "fix_action": "relocate",
            },
            {
                "category": "over_capacity",
                "severity": "warning",
                "scope": "featured-item:tile",
                "message": "5 entities exceed the limit of 4",
                "ids": [],
                "fix_action": None,
            },
        ]
        output = render_result(_ok("check", issues=issues, count=2))
        assert "duplicate_order" in output
        assert "[hero-slide]" in output
        assert "[featured-item:tile]" in output
        assert "1 errors, 1 warnings" in output

    def test_fixes_listed(self) -> None:
        issues = [
            {
                "category": "invalid_order",
                "severity": "error",
                "scope": "menu-section",
                "message": "MSEC-0001 has order 0",
                "ids": ["MSEC-0001"],
                "fix_action": "relocate",
            }
        ]
        fixes = ["menu-section: moved MSEC-0001 from 0 to 1"]
        output = render_result(_ok("check", issues=issues, count=1, fixes=fixes))
        assert "FIXED" in output
        assert fixes[0] in output


# ── Generic and telemetry ────────────────────────────────────────────


class TestGenericRenderer:
    def test_key_values(self) -> None:
        output = render_result(_ok("delete", id="HERO-0001", freed_order=2))
        assert "OK" in output
        assert "freed_order: 2" in output
        assert "freed_order:  2" not in output

    def test_nested_values_as_json(self) -> None:
        output = render_result(_ok("next_order", scope="hero-slide", extra={"a": 1}))
        assert '{"a":1}' in output


class TestTelemetryTree:
    def test_renders_span_tree_when_verbose(self) -> None:
        result = ServiceResult(
            ok=True,
            op="place",
            data={"outcome": "displaced", "entity": ENTITY, "displaced": []},
            meta={
                "telemetry": {
                    "name": "PlacementService.place",
                    "duration_ms": 3.42,
                    "children": [
                        {"name": "displace", "duration_ms": 2.1, "annotations": {"relocated": 1}},
                    ],
                }
            },
        )
        output = render_result(result, verbose=True)
        assert "3.42ms" in output
        assert "displace" in output
        assert "relocated=1" in output
        assert "3.42ms" not in render_result(result)


# ── Quiet mode ───────────────────────────────────────────────────────


class TestQuiet:
    def test_conflict(self) -> None:
        assert render_quiet(_conflict()) == "CONFLICT: HERO-0002"

    def test_entity_id(self) -> None:
        assert render_quiet(_ok("place", outcome="placed", entity=ENTITY)) == "HERO-0003"

    def test_list_ids(self) -> None:
        scopes = [{"scope": "hero-slide", "items": [{"id": "HERO-0001"}, {"id": "HERO-0002"}]}]
        assert render_quiet(_ok("list", scopes=scopes)) == "HERO-0001\nHERO-0002"

    def test_fallback(self) -> None:
        assert render_quiet(_ok("clear", slot=1, cleared=["CAT-0001"])) == "OK: clear"

    def test_error(self) -> None:
        assert render_quiet(_err("place", "NOT_FOUND", "gone")) == "ERROR: place: gone"
