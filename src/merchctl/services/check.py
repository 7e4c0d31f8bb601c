"""CheckService — integrity reporting and repair.

Follows the linter pattern: ``check`` reports issues, ``check(fix=True)``
repairs what it can.  Four categories:

- duplicate orders within a scope (concurrent last-writer-wins edits or an
  interrupted displacement);
- orders below 1;
- scopes holding more entities than their limit;
- homepage slots and menu items referencing a missing category, and menu
  items whose section no longer exists.

Duplicates are repaired by keeping the most recently modified entity on
the contested order and moving the rest to the smallest free orders.
Over-capacity is reported only; removing content is an operator decision.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from merchctl.domain.ordering import duplicate_orders, plan_repair
from merchctl.domain.scopes import Scope, ScopeKind
from merchctl.infrastructure.gateway import GatewayError
from merchctl.services._helpers import error_result
from merchctl.services.base import BaseService
from merchctl.services.prune import PruneService
from merchctl.services.result import ServiceResult
from merchctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from merchctl.domain.entities import PlacedEntity

log = structlog.get_logger(__name__)

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_DUPLICATE = "duplicate_order"
CAT_INVALID = "invalid_order"
CAT_CAPACITY = "over_capacity"
CAT_STALE = "stale_reference"


def _issue(
    category: str,
    severity: str,
    scope: Scope,
    message: str,
    *,
    ids: list[str] | None = None,
    fix_action: str | None = None,
) -> dict[str, Any]:
    return {
        "category": category,
        "severity": severity,
        "scope": scope.key,
        "message": message,
        "ids": ids or [],
        "fix_action": fix_action,
    }


class CheckService(BaseService):
    """Detects and repairs ordering invariant violations."""

    @traced
    def check(
        self,
        kind: str | None = None,
        variant: str | None = None,
        *,
        fix: bool = False,
    ) -> ServiceResult:
        """Report issues in every scope, or only those of *kind*/*variant*."""
        op = "check"
        try:
            scopes = self._select_scopes(kind, variant)
            listed = {scope.key: self._gateway.list(scope) for scope in scopes}
            category_ids = {c.id for c in self._gateway.list_categories()}
            section_ids = {
                s.id for s in self._gateway.list(self._registry.scope(ScopeKind.MENU_SECTION))
            }
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="list")

        issues: list[dict[str, Any]] = []
        with trace_span("scan"):
            for scope in scopes:
                issues.extend(self._scan(scope, listed[scope.key], category_ids, section_ids))

        if not fix:
            return ServiceResult(
                ok=True,
                op=op,
                data={"issues": issues, "count": len(issues)},
            )

        fixes: list[str] = []
        try:
            with trace_span("repair"), self._gateway.transaction():
                for scope in scopes:
                    for entity, target in plan_repair(scope, listed[scope.key]):
                        self._gateway.update(entity.id or "", {"order": target})
                        fixes.append(
                            f"{scope.key}: moved {entity.id} from {entity.order} to {target}"
                        )
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="repair", rolled_back=True)

        warnings: list[str] = []
        if any(i["category"] == CAT_STALE for i in issues):
            pruned = PruneService(self._store).prune(category_ids)
            if not pruned.ok:
                return pruned.model_copy(update={"op": op})
            for removed in pruned.data["removed"]:
                fixes.append(f"pruned stale slot {removed['id']} ({removed['reference_id']})")
            for move in pruned.data["moves"]:
                fixes.append(
                    f"compacted slot {move['id']} from {move['from_index']} to {move['to_index']}"
                )
            for item in pruned.data["removed_items"]:
                fixes.append(f"pruned stale menu item {item['id']} ({item.get('reference_id')})")

        if any(i["category"] == CAT_CAPACITY for i in issues):
            warnings.append("Over-capacity scopes need manual removal")

        log.info("check.fixed", fixes=len(fixes))
        return ServiceResult(
            ok=True,
            op=op,
            data={"issues": issues, "count": len(issues), "fixes": fixes},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _select_scopes(self, kind: str | None, variant: str | None) -> list[Scope]:
        if kind is None:
            return self._all_scopes()
        return self._scopes_of(kind, variant)

    def _scan(
        self,
        scope: Scope,
        entities: list[PlacedEntity],
        category_ids: set[str],
        section_ids: set[str | None],
    ) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []

        for order, group in duplicate_orders(scope, entities).items():
            labels = ", ".join(f'"{e.label}"' for e in group)
            issues.append(
                _issue(
                    CAT_DUPLICATE,
                    SEVERITY_ERROR,
                    scope,
                    f"Order {order} is shared by {labels}",
                    ids=[e.id or "" for e in group],
                    fix_action="relocate",
                )
            )

        for entity in entities:
            if entity.order < 1:
                issues.append(
                    _issue(
                        CAT_INVALID,
                        SEVERITY_ERROR,
                        scope,
                        f"{entity.id} has order {entity.order}",
                        ids=[entity.id or ""],
                        fix_action="relocate",
                    )
                )

        if scope.max_slots is not None and len(entities) > scope.max_slots:
            issues.append(
                _issue(
                    CAT_CAPACITY,
                    SEVERITY_WARNING,
                    scope,
                    f"{len(entities)} entities exceed the limit of {scope.max_slots}",
                    ids=[e.id or "" for e in entities],
                )
            )

        if scope.parent_kind is not None and entities and scope.variant not in section_ids:
            issues.append(
                _issue(
                    CAT_STALE,
                    SEVERITY_ERROR,
                    scope,
                    f"{len(entities)} item(s) belong to missing {scope.parent_kind.value} "
                    f"{scope.variant}",
                    ids=[e.id or "" for e in entities],
                    fix_action="prune",
                )
            )
            return issues

        if scope.reference_kind == "category":
            noun = "Slot" if scope.slot_indexed else "Item"
            for entity in entities:
                if entity.reference_id not in category_ids:
                    issues.append(
                        _issue(
                            CAT_STALE,
                            SEVERITY_ERROR,
                            scope,
                            f"{noun} {entity.order} references missing category "
                            f"{entity.reference_id}",
                            ids=[entity.id or ""],
                            fix_action="prune",
                        )
                    )

        return issues
