"""Placed entities and conflict descriptors.

A PlacedEntity is any item holding an order value inside a scope.  The
kind-specific payload (titles, image references, link targets) is opaque
to the placement core; only ``order``, ``label`` and ``reference_id``
matter for ordering, prompting and pruning.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from merchctl.domain.scopes import Scope, ScopeKind


class PlacedEntity(BaseModel):
    """An item occupying an order value within a scope.

    ``id`` is None until the gateway persists the entity.  ``order`` is
    not range-checked here so that integrity checks can load and report
    rows that violate the ``order >= 1`` invariant.
    """

    model_config = {"frozen": True}

    id: str | None = None
    kind: ScopeKind
    variant: str | None = None
    order: int
    label: str = ""
    reference_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    created: str | None = None
    modified: str | None = None

    def summary(self) -> dict[str, Any]:
        """Compact dict for ServiceResult payloads."""
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "order": self.order,
            "label": self.label,
        }
        if self.variant:
            data["variant"] = self.variant
        if self.reference_id:
            data["reference_id"] = self.reference_id
        return data


class ConflictDescriptor(BaseModel):
    """Transient description of an occupied order, presented for confirmation."""

    model_config = {"frozen": True}

    kind: ScopeKind
    variant: str | None = None
    desired_order: int
    occupant_id: str
    occupant_label: str

    @classmethod
    def for_occupant(
        cls, scope: Scope, desired_order: int, occupant: PlacedEntity
    ) -> ConflictDescriptor:
        return cls(
            kind=scope.kind,
            variant=scope.variant,
            desired_order=desired_order,
            occupant_id=occupant.id or "",
            occupant_label=occupant.label,
        )

    @property
    def message(self) -> str:
        return f'Order {self.desired_order} is already used by "{self.occupant_label}"'


class Category(BaseModel):
    """A catalog category that homepage slots may reference."""

    model_config = {"frozen": True}

    id: str
    name: str
    created: str | None = None
