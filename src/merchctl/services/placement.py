"""PlacementService — ordered placement with confirm-to-displace semantics.

Pipeline for :meth:`PlacementService.place`:
VALIDATE → BOUNDS → ASSIGN → DETECT → WRITE (→ DISPLACE) → RESPOND

DISPLACE runs only after explicit confirmation:

1. write the incoming entity at the desired order (authoritative write);
2. re-list the scope from the gateway;
3. re-detect whatever still sits on the desired order besides the
   incoming entity and pick the smallest free order for it;
4. update only the occupant's order.

Steps 3–4 are re-derived from persisted state, so they can be retried on
their own via :meth:`PlacementService.resume`.  With
``placement.atomic_displacement`` enabled all four steps share one
database transaction instead.
"""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError

from merchctl.domain.entities import ConflictDescriptor, PlacedEntity
from merchctl.domain.ordering import (
    find_conflict,
    first_free_order,
    next_order,
    occupied_orders,
    sort_by_order,
)
from merchctl.domain.payloads import dump_payload, format_validation_error, validate_payload
from merchctl.domain.scopes import MENU_LINK_LIMIT, Scope, ScopeKind
from merchctl.infrastructure.gateway import EntityNotFoundError, GatewayError
from merchctl.services._helpers import error_result
from merchctl.services.base import BaseService
from merchctl.services.result import ServiceResult
from merchctl.services.telemetry import trace_span, traced

log = structlog.get_logger(__name__)


@dataclass
class _Progress:
    """Tracks which displacement step is running for IO_ERROR reporting."""

    step: str = "place"
    completed: list[str] = field(default_factory=list)

    def begin(self, step: str) -> None:
        self.step = step

    def done(self) -> None:
        self.completed.append(self.step)


def _io_error(op: str, exc: GatewayError, *, step: str, **detail: Any) -> ServiceResult:
    log.warning("gateway.failed", op=op, step=step, error=str(exc))
    return error_result(
        op,
        "IO_ERROR",
        f"Persistence failed during {step}: {exc.message}",
        step=step,
        **detail,
    )


class PlacementService(BaseService):
    """Assigns, checks, and resolves display orders within scopes."""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @traced
    def next_order(self, kind: str, *, variant: str | None = None) -> ServiceResult:
        """Next order for a new entity: ``max + 1`` over the scope, or 1."""
        op = "next_order"
        scope = self._registry.scope(kind, variant)
        try:
            current = self._gateway.list(scope)
        except GatewayError as exc:
            return _io_error(op, exc, step="list")

        value = next_order(scope, current)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "scope": scope.key,
                "next_order": value,
                "count": len(current),
                "max_slots": scope.max_slots,
                "full": scope.is_full(len(current)),
            },
        )

    @traced
    def find_conflict(
        self,
        kind: str,
        order: int,
        *,
        variant: str | None = None,
        exclude_id: str | None = None,
    ) -> ServiceResult:
        """Report which entity, other than *exclude_id*, occupies *order*."""
        op = "find_conflict"
        scope = self._registry.scope(kind, variant)
        try:
            current = self._gateway.list(scope)
        except GatewayError as exc:
            return _io_error(op, exc, step="list")

        occupant = find_conflict(scope, current, order, exclude_id=exclude_id)
        conflict = (
            ConflictDescriptor.for_occupant(scope, order, occupant).model_dump(mode="json")
            if occupant is not None
            else None
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"scope": scope.key, "order": order, "conflict": conflict},
        )

    @traced
    def list(self, kind: str, *, variant: str | None = None) -> ServiceResult:
        """List entities sorted by order.  Partitioned kinds without a
        variant list every variant, or every populated parent for menu items."""
        op = "list"
        scopes_data: list[dict[str, Any]] = []
        try:
            for scope in self._scopes_of(kind, variant):
                items = sort_by_order(self._gateway.list(scope))
                scopes_data.append(
                    {
                        "scope": scope.key,
                        "max_slots": scope.max_slots,
                        "count": len(items),
                        "items": [e.summary() for e in items],
                    }
                )
        except GatewayError as exc:
            return _io_error(op, exc, step="list")

        return ServiceResult(ok=True, op=op, data={"kind": kind, "scopes": scopes_data})

    @traced
    def get(self, entity_id: str) -> ServiceResult:
        op = "get"
        try:
            entity = self._gateway.get(entity_id)
        except GatewayError as exc:
            return _io_error(op, exc, step="get")
        if entity is None:
            return error_result(op, "NOT_FOUND", f"No entity found with ID: {entity_id}")
        return ServiceResult(ok=True, op=op, data={"entity": entity.model_dump(mode="json")})

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    def place(
        self,
        kind: str,
        payload: dict[str, Any],
        *,
        variant: str | None = None,
        order: int | None = None,
        entity_id: str | None = None,
        confirmed: bool = False,
    ) -> ServiceResult:
        """Create or update an entity at *order* (auto-assigned when None).

        Returns ``data["outcome"]`` of ``"placed"``, ``"conflict"`` (nothing
        written; re-invoke with ``confirmed=True``) or ``"displaced"``.
        """
        op = "place"
        scope = self._registry.scope(kind, variant)

        # ── VALIDATE ─────────────────────────────────────────
        if order is not None and order < 1:
            return error_result(
                op, "VALIDATION_FAILED", f"Order must be a positive integer, got {order}"
            )
        if scope.slot_indexed and order is not None and scope.max_slots is not None:
            if order > scope.max_slots:
                return error_result(
                    op,
                    "OUT_OF_BOUNDS",
                    f"Slot {order} is outside 1..{scope.max_slots} for {scope.key}",
                    scope=scope.key,
                    max_slots=scope.max_slots,
                )

        try:
            existing = self._gateway.get(entity_id) if entity_id else None
        except GatewayError as exc:
            return _io_error(op, exc, step="get")
        if entity_id and existing is None:
            return error_result(op, "NOT_FOUND", f"No entity found with ID: {entity_id}")
        if existing is not None and existing.kind != scope.kind:
            return error_result(
                op,
                "VALIDATION_FAILED",
                f"Entity {entity_id} is a {existing.kind.value}, not a {scope.kind.value}",
            )
        if scope.parent_kind is not None:
            try:
                parent = self._gateway.get(scope.variant or "")
            except GatewayError as exc:
                return _io_error(op, exc, step="get")
            if parent is None or parent.kind != scope.parent_kind:
                return error_result(
                    op,
                    "NOT_FOUND",
                    f"No {scope.parent_kind.value} found with ID: {scope.variant}",
                )

        merged = {**existing.payload, **payload} if existing is not None else dict(payload)
        try:
            validated = validate_payload(scope.kind, merged)
        except ValidationError as exc:
            errors = format_validation_error(exc)
            return error_result(op, "VALIDATION_FAILED", "; ".join(errors), errors=errors)

        reference_id = validated.reference()
        label = validated.display_label()
        if scope.reference_kind == "category" and reference_id is not None:
            try:
                category = self._gateway.get_category(reference_id)
            except GatewayError as exc:
                return _io_error(op, exc, step="get_category")
            if category is None:
                return error_result(
                    op, "NOT_FOUND", f"No category found with ID: {reference_id}"
                )
            label = category.name

        try:
            current = self._gateway.list(scope)
        except GatewayError as exc:
            return _io_error(op, exc, step="list")

        # ── BOUNDS ───────────────────────────────────────────
        is_member = existing is not None and any(e.id == existing.id for e in current)
        if not is_member:
            if scope.kind == ScopeKind.MENU_LINK and len(current) >= MENU_LINK_LIMIT:
                return error_result(
                    op,
                    "OUT_OF_BOUNDS",
                    f"A maximum of {MENU_LINK_LIMIT} links is supported",
                    scope=scope.key,
                    max_slots=MENU_LINK_LIMIT,
                )
            if scope.is_full(len(current)):
                return error_result(
                    op,
                    "OUT_OF_BOUNDS",
                    f"{scope.key} is at capacity ({scope.max_slots} entities)",
                    scope=scope.key,
                    max_slots=scope.max_slots,
                )

        # ── ASSIGN ───────────────────────────────────────────
        # Auto-assigned orders are above the current maximum (or the first
        # free slot on a full grid), so they skip conflict detection.
        auto_assigned = order is None
        if order is not None:
            desired = order
        elif is_member and existing is not None:
            desired = existing.order
        else:
            desired = next_order(scope, current)
            if scope.slot_indexed and scope.max_slots is not None and desired > scope.max_slots:
                desired = first_free_order(occupied_orders(scope, current))

        entity = PlacedEntity(
            id=existing.id if existing is not None else None,
            kind=scope.kind,
            variant=scope.variant,
            order=desired,
            label=label,
            reference_id=reference_id,
            payload=dump_payload(validated),
        )

        # ── DETECT ───────────────────────────────────────────
        occupant = None
        if not auto_assigned:
            occupant = find_conflict(scope, current, desired, exclude_id=entity.id)

        if occupant is None:
            try:
                placed = self._write(entity)
            except GatewayError as exc:
                return _io_error(op, exc, step="place", completed_steps=[])
            log.info("placement.placed", scope=scope.key, id=placed.id, order=placed.order)
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "outcome": "placed",
                    "auto_assigned": auto_assigned,
                    "entity": placed.summary(),
                },
            )

        descriptor = ConflictDescriptor.for_occupant(scope, desired, occupant)
        if not confirmed:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "outcome": "conflict",
                    "conflict": descriptor.model_dump(mode="json"),
                },
                warnings=[descriptor.message],
            )

        return self._displace(op, scope, entity, occupant)

    @traced
    def resume(
        self,
        kind: str,
        order: int,
        placed_id: str,
        *,
        variant: str | None = None,
    ) -> ServiceResult:
        """Retry relocation after a partially failed displacement.

        Re-derives occupants of *order* other than *placed_id* from current
        state and moves them to free orders.  A no-op when nothing else
        sits on *order*, so repeated calls are safe.
        """
        op = "resume"
        scope = self._registry.scope(kind, variant)
        try:
            placed = self._gateway.get(placed_id)
        except GatewayError as exc:
            return _io_error(op, exc, step="get")
        if placed is None or not scope.contains(placed):
            return error_result(op, "NOT_FOUND", f"No {scope.key} entity with ID: {placed_id}")
        if placed.order != order:
            return error_result(
                op,
                "VALIDATION_FAILED",
                f"Entity {placed_id} holds order {placed.order}, not {order}",
            )

        progress = _Progress(step="relist")
        try:
            moved = self._relocate_occupants(scope, placed, progress)
        except GatewayError as exc:
            return _io_error(
                op,
                exc,
                step=progress.step,
                completed_steps=progress.completed,
                placed_id=placed_id,
                rolled_back=False,
                kind=scope.kind.value,
                variant=scope.variant,
                order=order,
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"outcome": "resumed", "entity": placed.summary(), "displaced": moved},
        )

    @traced
    def delete(self, entity_id: str) -> ServiceResult:
        """Delete an entity, freeing its order for reuse.

        Deleting a parent (a menu section) deletes its children in the same
        transaction.
        """
        op = "delete"
        removed_children: list[str] = []
        try:
            with self._gateway.transaction():
                entity = self._gateway.get(entity_id)
                if entity is None:
                    return error_result(op, "NOT_FOUND", f"No entity found with ID: {entity_id}")
                for child_kind in self._registry.children_of(entity.kind):
                    for child in self._gateway.list(self._registry.scope(child_kind, entity_id)):
                        self._gateway.delete(child.id or "")
                        removed_children.append(child.id or "")
                self._gateway.delete(entity_id)
        except EntityNotFoundError:
            return error_result(op, "NOT_FOUND", f"No entity found with ID: {entity_id}")
        except GatewayError as exc:
            return _io_error(op, exc, step="delete")

        log.info(
            "placement.deleted",
            id=entity_id,
            order=entity.order,
            removed_children=removed_children,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": entity_id,
                "kind": entity.kind.value,
                "variant": entity.variant,
                "freed_order": entity.order,
                "removed_children": removed_children,
            },
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write(self, entity: PlacedEntity) -> PlacedEntity:
        if entity.id is None:
            return self._gateway.create(entity)
        return self._gateway.update(
            entity.id,
            {
                "order": entity.order,
                "variant": entity.variant,
                "label": entity.label,
                "reference_id": entity.reference_id,
                "payload": entity.payload,
            },
        )

    def _displace(
        self,
        op: str,
        scope: Scope,
        entity: PlacedEntity,
        occupant: PlacedEntity,
    ) -> ServiceResult:
        atomic = self._store.settings.placement.atomic_displacement
        progress = _Progress(step="place")
        placed: PlacedEntity | None = None

        with trace_span("displace") as span:
            try:
                with self._gateway.transaction() if atomic else nullcontext():
                    placed = self._write(entity)
                    progress.done()
                    progress.begin("relist")
                    moved = self._relocate_occupants(scope, placed, progress)
            except GatewayError as exc:
                return _io_error(
                    op,
                    exc,
                    step=progress.step,
                    completed_steps=[] if atomic else progress.completed,
                    placed_id=None if atomic or placed is None else placed.id,
                    occupant_id=occupant.id,
                    rolled_back=atomic,
                    kind=scope.kind.value,
                    variant=scope.variant,
                    order=entity.order,
                )
            if span is not None:
                span.annotate("relocated", len(moved))

        warnings: list[str] = []
        if not moved:
            warnings.append(f"Occupant {occupant.id} had already left order {entity.order}")
        log.info(
            "placement.displaced",
            scope=scope.key,
            id=placed.id,
            order=placed.order,
            displaced=[m["id"] for m in moved],
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "outcome": "displaced" if moved else "placed",
                "entity": placed.summary(),
                "displaced": moved,
            },
            warnings=warnings,
        )

    def _relocate_occupants(
        self,
        scope: Scope,
        keep: PlacedEntity,
        progress: _Progress,
    ) -> list[dict[str, Any]]:
        """Move every other entity sitting on ``keep.order`` to a free order."""
        progress.begin("relist")
        current = self._gateway.list(scope)
        progress.done()

        occupied = occupied_orders(scope, current)
        moved: list[dict[str, Any]] = []
        for other in sort_by_order(current):
            if other.order != keep.order or other.id == keep.id:
                continue
            target = first_free_order(occupied)
            progress.begin("relocate")
            self._gateway.update(other.id or "", {"order": target})
            progress.done()
            occupied.add(target)
            moved.append(
                {
                    "id": other.id,
                    "label": other.label,
                    "from_order": other.order,
                    "to_order": target,
                }
            )
        return moved
