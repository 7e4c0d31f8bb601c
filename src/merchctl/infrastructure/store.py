"""Store — the single dependency injected into every service.

Owns the database engine, the persistence gateway, and the scope
registry built from configuration.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from merchctl.domain.scopes import ScopeRegistry
from merchctl.infrastructure.database.engine import init_database
from merchctl.infrastructure.gateway import SqlGateway

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from merchctl.config.settings import MerchSettings

logger = logging.getLogger(__name__)


class Store:
    """Repository wiring constructed once per CLI invocation.

    Args:
        settings: Resolved settings (store root, scope limits, placement).
        gateway_cls: Gateway implementation bound to the engine.
    """

    def __init__(
        self,
        settings: MerchSettings,
        *,
        gateway_cls: type[SqlGateway] = SqlGateway,
    ) -> None:
        self._settings = settings
        self._engine: Engine = init_database(self.root)
        self._gateway = gateway_cls(self._engine)
        self._registry = ScopeRegistry(settings.scopes.limits())
        logger.debug("store opened at %s", self.root)

    @property
    def root(self) -> Path:
        """The store root directory."""
        return self._settings.store_root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def gateway(self) -> SqlGateway:
        return self._gateway

    @property
    def registry(self) -> ScopeRegistry:
        return self._registry

    @property
    def settings(self) -> MerchSettings:
        return self._settings

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self._engine.dispose()
