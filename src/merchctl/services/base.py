"""BaseService — foundation for all merchctl services.

Every service receives a :class:`Store` at construction time.  The store
provides the persistence gateway and the scope registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from merchctl.domain.scopes import Scope, ScopeRegistry
    from merchctl.infrastructure.gateway import SqlGateway
    from merchctl.infrastructure.store import Store


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class PlacementService(BaseService):
            def place(self, kind: str, payload: dict, ...) -> ServiceResult:
                scope = self._registry.scope(kind, variant)
                current = self._gateway.list(scope)
                ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    @property
    def _gateway(self) -> SqlGateway:
        return self._store.gateway

    @property
    def _registry(self) -> ScopeRegistry:
        return self._store.registry

    def _scopes_of(self, kind: str, variant: str | None = None) -> list[Scope]:
        """Concrete scopes of *kind*, every partition when *variant* is None.

        Partitions of parent-partitioned kinds are read from the gateway,
        so this can raise :class:`GatewayError`.
        """
        if variant is not None:
            return [self._registry.scope(kind, variant)]
        if self._registry.parent_kind(kind) is not None:
            return [self._registry.scope(kind, v) for v in self._gateway.list_variants(kind)]
        variants = self._registry.variants(kind)
        if variants:
            return [self._registry.scope(kind, v) for v in variants]
        return [self._registry.scope(kind)]

    def _all_scopes(self) -> list[Scope]:
        scopes = self._registry.scopes()
        for kind in self._registry.parented_kinds():
            scopes.extend(self._scopes_of(kind))
        return scopes
