"""Scope registry — the bounded ordering domains of the back-office.

Each scope kind declares whether it is partitioned by a fixed variant key
or by the id of a parent entity, whether its order values are slot
indexes bounded by the limit, and which foreign collection its entities
reference.  Limits come from code-baked defaults overridable by
configuration, except the menu-link limit which is fixed.  A
parent-partitioned kind (menu items inside a menu section) applies one
limit to every partition.

INVARIANT: Unknown kinds or fixed variants are programming errors and
raise ``ValueError`` immediately.  Whether a parent id names an existing
entity is checked by the caller, not here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from merchctl.domain.entities import PlacedEntity


class ScopeKind(StrEnum):
    """Entity kinds that participate in ordered placement."""

    HERO_SLIDE = "hero-slide"
    FEATURED_ITEM = "featured-item"
    HOMEPAGE_CATEGORY_SLOT = "homepage-category-slot"
    MENU_SECTION = "menu-section"
    MENU_ITEM = "menu-item"
    MENU_LINK = "menu-link"


class FeaturedVariant(StrEnum):
    """Independent partitions of the featured showcase."""

    FEATURE = "feature"
    TILE = "tile"


MENU_LINK_LIMIT = 3
MENU_ITEM_LIMIT = 12


@dataclass(frozen=True)
class _ScopeSpec:
    variants: frozenset[str] = frozenset()
    slot_indexed: bool = False
    reference_kind: str | None = None
    parent_kind: ScopeKind | None = None


_SPECS: dict[ScopeKind, _ScopeSpec] = {
    ScopeKind.HERO_SLIDE: _ScopeSpec(),
    ScopeKind.FEATURED_ITEM: _ScopeSpec(variants=frozenset(v.value for v in FeaturedVariant)),
    ScopeKind.HOMEPAGE_CATEGORY_SLOT: _ScopeSpec(slot_indexed=True, reference_kind="category"),
    ScopeKind.MENU_SECTION: _ScopeSpec(),
    ScopeKind.MENU_ITEM: _ScopeSpec(
        reference_kind="category", parent_kind=ScopeKind.MENU_SECTION
    ),
    ScopeKind.MENU_LINK: _ScopeSpec(),
}

DEFAULT_LIMITS: dict[str, int | None] = {
    "hero-slide": 3,
    "featured-item:feature": 3,
    "featured-item:tile": 4,
    "homepage-category-slot": 12,
    "menu-section": 10,
    "menu-item": MENU_ITEM_LIMIT,
    "menu-link": MENU_LINK_LIMIT,
}


def limit_key(kind: str, variant: str | None = None) -> str:
    """Key used in limit mappings: ``kind`` or ``kind:variant``."""
    return f"{kind}:{variant}" if variant else str(kind)


class ScopeDescription(BaseModel):
    """Result of :meth:`ScopeRegistry.describe`."""

    model_config = {"frozen": True}

    max_slots: int | None
    partitioned: bool
    slot_indexed: bool = False
    reference_kind: str | None = None
    parent_kind: ScopeKind | None = None


class Scope(BaseModel):
    """A concrete ordering domain: one kind, optionally one variant.

    For parent-partitioned kinds the variant is the parent entity's id.
    """

    model_config = {"frozen": True}

    kind: ScopeKind
    variant: str | None = None
    max_slots: int | None = None
    slot_indexed: bool = False
    reference_kind: str | None = None
    parent_kind: ScopeKind | None = None

    @property
    def key(self) -> str:
        return limit_key(self.kind, self.variant)

    @property
    def bounded(self) -> bool:
        return self.max_slots is not None

    def contains(self, entity: PlacedEntity) -> bool:
        """Whether *entity* belongs to this scope (kind and variant match)."""
        return entity.kind == self.kind and (entity.variant or None) == self.variant

    def is_full(self, count: int) -> bool:
        return self.max_slots is not None and count >= self.max_slots


class ScopeRegistry:
    """Lookup of scope limits and partitioning.

    Args:
        limits: Overrides keyed by :func:`limit_key`.  ``None`` values make
            a scope unbounded.  The menu-link limit can only be lowered.
            Parent-partitioned kinds are keyed by kind alone.
    """

    def __init__(self, limits: Mapping[str, int | None] | None = None) -> None:
        merged = {**DEFAULT_LIMITS, **(limits or {})}
        for key, value in merged.items():
            if value is not None and value < 1:
                msg = f"Scope limit for {key!r} must be a positive integer, got {value}"
                raise ValueError(msg)
        link_limit = merged.get(ScopeKind.MENU_LINK.value)
        merged[ScopeKind.MENU_LINK.value] = min(link_limit or MENU_LINK_LIMIT, MENU_LINK_LIMIT)
        self._limits = merged

    def describe(self, kind: str, variant: str | None = None) -> ScopeDescription:
        """Return the limit and partitioning of a scope."""
        scope_kind, spec, variant = self._resolve(kind, variant)
        key = limit_key(scope_kind) if spec.parent_kind else limit_key(scope_kind, variant)
        return ScopeDescription(
            max_slots=self._limits.get(key),
            partitioned=bool(spec.variants) or spec.parent_kind is not None,
            slot_indexed=spec.slot_indexed,
            reference_kind=spec.reference_kind,
            parent_kind=spec.parent_kind,
        )

    def scope(self, kind: str, variant: str | None = None) -> Scope:
        """Build the :class:`Scope` value for *kind* / *variant*."""
        scope_kind, _, variant = self._resolve(kind, variant)
        desc = self.describe(scope_kind, variant)
        return Scope(
            kind=scope_kind,
            variant=variant,
            max_slots=desc.max_slots,
            slot_indexed=desc.slot_indexed,
            reference_kind=desc.reference_kind,
            parent_kind=desc.parent_kind,
        )

    def scopes(self) -> list[Scope]:
        """Every statically known scope, one per variant for partitioned kinds.

        Parent-partitioned kinds are left out: their partitions exist only
        as data.  See :meth:`parented_kinds`.
        """
        result: list[Scope] = []
        for kind, spec in _SPECS.items():
            if spec.parent_kind is not None:
                continue
            if spec.variants:
                result.extend(self.scope(kind, v) for v in sorted(spec.variants))
            else:
                result.append(self.scope(kind))
        return result

    def variants(self, kind: str) -> list[str]:
        """Fixed variants of *kind*; empty for unpartitioned and parented kinds."""
        _, spec, _ = self._resolve(kind, None, require_variant=False)
        return sorted(spec.variants)

    def parent_kind(self, kind: str) -> ScopeKind | None:
        _, spec, _ = self._resolve(kind, None, require_variant=False)
        return spec.parent_kind

    def parented_kinds(self) -> list[ScopeKind]:
        return [kind for kind, spec in _SPECS.items() if spec.parent_kind is not None]

    def children_of(self, kind: str) -> list[ScopeKind]:
        """Kinds whose partitions are keyed by entities of *kind*."""
        parent, _, _ = self._resolve(kind, None, require_variant=False)
        return [k for k, spec in _SPECS.items() if spec.parent_kind == parent]

    @staticmethod
    def _resolve(
        kind: str, variant: str | None, *, require_variant: bool = True
    ) -> tuple[ScopeKind, _ScopeSpec, str | None]:
        try:
            scope_kind = ScopeKind(kind)
        except ValueError:
            msg = f"Unknown scope kind: {kind!r}. Expected one of {[k.value for k in ScopeKind]}"
            raise ValueError(msg) from None

        spec = _SPECS[scope_kind]
        variant = variant or None
        if spec.parent_kind is not None:
            if variant is None and require_variant:
                msg = (
                    f"Scope {scope_kind.value!r} is partitioned by "
                    f"{spec.parent_kind.value}; a {spec.parent_kind.value} id is required"
                )
                raise ValueError(msg)
        elif spec.variants:
            if variant is None:
                if require_variant:
                    msg = f"Scope {scope_kind.value!r} is partitioned; a variant is required"
                    raise ValueError(msg)
            elif variant not in spec.variants:
                msg = (
                    f"Unknown variant {variant!r} for {scope_kind.value!r}. "
                    f"Expected one of {sorted(spec.variants)}"
                )
                raise ValueError(msg)
        elif variant is not None:
            msg = f"Scope {scope_kind.value!r} is not partitioned; got variant {variant!r}"
            raise ValueError(msg)
        return scope_kind, spec, variant
