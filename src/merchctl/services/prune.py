"""PruneService — drop entries whose referenced category vanished.

Called explicitly after any change to the category collection.  Stale
homepage slots are deleted and the survivors compacted to slots 1..n.
Stale menu items are deleted, as are items whose menu section no longer
exists; the remaining items keep their orders.  No other scope is touched.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from merchctl.domain.ordering import sort_by_order
from merchctl.domain.pruning import plan_prune
from merchctl.domain.scopes import ScopeKind
from merchctl.infrastructure.gateway import GatewayError
from merchctl.services._helpers import error_result
from merchctl.services.base import BaseService
from merchctl.services.result import ServiceResult
from merchctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from merchctl.domain.entities import PlacedEntity

log = structlog.get_logger(__name__)


class PruneService(BaseService):
    """Removes stale category references and compacts slot indexes."""

    @traced
    def prune(self, valid_reference_ids: Iterable[str] | None = None) -> ServiceResult:
        """Prune against *valid_reference_ids*, or the current categories."""
        op = "prune"
        slot_scope = self._registry.scope(ScopeKind.HOMEPAGE_CATEGORY_SLOT)
        section_scope = self._registry.scope(ScopeKind.MENU_SECTION)
        try:
            if valid_reference_ids is None:
                valid = {c.id for c in self._gateway.list_categories()}
            else:
                valid = set(valid_reference_ids)
            assignments = self._gateway.list(slot_scope)
            section_ids = {s.id for s in self._gateway.list(section_scope)}
            item_groups = [
                (scope.variant, self._gateway.list(scope))
                for scope in self._scopes_of(ScopeKind.MENU_ITEM)
            ]
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="list")

        plan = plan_prune(assignments, valid)
        stale_items: list[PlacedEntity] = []
        for section_id, items in item_groups:
            if section_id not in section_ids:
                stale_items.extend(sort_by_order(items))
            else:
                stale_items.extend(plan_prune(items, valid, compact=False).removed)

        if not plan.changed and not stale_items:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "removed": [],
                    "moves": [],
                    "removed_items": [],
                    "count": len(assignments),
                },
            )

        try:
            with self._gateway.transaction():
                with trace_span("remove_stale"):
                    for stale in (*plan.removed, *stale_items):
                        self._gateway.delete(stale.id or "")
                with trace_span("compact"):
                    for move in plan.moves:
                        self._gateway.update(move.entity_id, {"order": move.to_index})
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step=exc.op, rolled_back=True)

        log.info(
            "references.pruned",
            removed=[s.id for s in plan.removed],
            removed_items=[i.id for i in stale_items],
            moved=len(plan.moves),
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "removed": [s.summary() for s in plan.removed],
                "moves": [
                    {
                        "id": m.entity_id,
                        "reference_id": m.reference_id,
                        "from_index": m.from_index,
                        "to_index": m.to_index,
                    }
                    for m in plan.moves
                ],
                "removed_items": [i.summary() for i in stale_items],
                "count": len(assignments) - len(plan.removed),
            },
        )
