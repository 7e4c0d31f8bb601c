"""SlotService — the homepage category grid as a slot → category view.

A category occupies at most one slot: assigning a category that already
sits in another slot moves that slot entity instead of creating a second
one.  Placement, bounds and displacement are delegated to
:class:`PlacementService`.
"""

from __future__ import annotations

from merchctl.domain.ordering import sort_by_order
from merchctl.domain.pruning import slot_map
from merchctl.domain.scopes import ScopeKind
from merchctl.infrastructure.gateway import GatewayError
from merchctl.services._helpers import error_result
from merchctl.services.base import BaseService
from merchctl.services.placement import PlacementService
from merchctl.services.result import ServiceResult
from merchctl.services.telemetry import traced


class SlotService(BaseService):
    """Assigns categories to homepage slots."""

    @traced
    def assign(
        self,
        slot_index: int | None,
        category_id: str,
        *,
        confirmed: bool = False,
    ) -> ServiceResult:
        """Put *category_id* in *slot_index* (next free slot when None)."""
        scope = self._registry.scope(ScopeKind.HOMEPAGE_CATEGORY_SLOT)
        try:
            current = self._gateway.list(scope)
        except GatewayError as exc:
            return error_result("assign", "IO_ERROR", str(exc), step="list")

        existing = next((e for e in current if e.reference_id == category_id), None)
        result = PlacementService(self._store).place(
            ScopeKind.HOMEPAGE_CATEGORY_SLOT,
            {"category_id": category_id},
            order=slot_index,
            entity_id=existing.id if existing is not None else None,
            confirmed=confirmed,
        )
        if existing is not None and result.ok:
            data = {**result.data, "moved_from": existing.order}
            return result.model_copy(update={"data": data})
        return result

    @traced
    def clear(self, slot_index: int) -> ServiceResult:
        """Empty *slot_index*.  Other slots keep their indexes."""
        op = "clear"
        scope = self._registry.scope(ScopeKind.HOMEPAGE_CATEGORY_SLOT)
        try:
            current = self._gateway.list(scope)
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="list")

        occupants = [e for e in current if e.order == slot_index]
        if not occupants:
            return error_result(op, "NOT_FOUND", f"Slot {slot_index} is empty")

        try:
            with self._gateway.transaction():
                for entity in occupants:
                    self._gateway.delete(entity.id or "")
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="delete")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "slot": slot_index,
                "cleared": [e.reference_id for e in occupants],
            },
        )

    @traced
    def assignments(self) -> ServiceResult:
        """Sparse mapping of occupied slot indexes to category ids."""
        op = "assignments"
        scope = self._registry.scope(ScopeKind.HOMEPAGE_CATEGORY_SLOT)
        try:
            current = sort_by_order(self._gateway.list(scope))
        except GatewayError as exc:
            return error_result(op, "IO_ERROR", str(exc), step="list")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "slots": {str(index): ref for index, ref in slot_map(current).items()},
                "labels": {str(e.order): e.label for e in current},
                "count": len(current),
                "max_slots": scope.max_slots,
            },
        )
