"""Shared pytest fixtures and test helpers for merchctl tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from merchctl.config.settings import MerchSettings
from merchctl.domain.scopes import Scope
from merchctl.infrastructure.database.engine import init_database
from merchctl.infrastructure.gateway import GatewayError, SqlGateway
from merchctl.infrastructure.store import Store


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Engine:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary store directory, shielded from ambient MERCHCTL_* variables."""
    monkeypatch.delenv("MERCHCTL_CONFIG", raising=False)
    monkeypatch.delenv("MERCHCTL_PLACEMENT__ATOMIC_DISPLACEMENT", raising=False)
    return tmp_path


@pytest.fixture
def store(store_root: Path) -> Store:
    """Store with default settings (atomic displacement on)."""
    s = Store(MerchSettings.from_cli(store_root=store_root))
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def stepwise_store(store_root: Path) -> Store:
    """Store whose displacement commits each step on its own."""
    settings = MerchSettings.from_cli(
        store_root=store_root, placement={"atomic_displacement": False}
    )
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def flaky_store(store_root: Path) -> Store:
    """Atomic store backed by :class:`FlakyGateway`."""
    s = Store(MerchSettings.from_cli(store_root=store_root), gateway_cls=FlakyGateway)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def flaky_stepwise_store(store_root: Path) -> Store:
    """Non-atomic store backed by :class:`FlakyGateway`."""
    settings = MerchSettings.from_cli(
        store_root=store_root, placement={"atomic_displacement": False}
    )
    s = Store(settings, gateway_cls=FlakyGateway)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_store(store_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp store root so the CLI creates an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_store")`` on command test
    classes.
    """
    monkeypatch.chdir(store_root)


# ---------------------------------------------------------------------------
# Fault injection
# ---------------------------------------------------------------------------


class FlakyGateway(SqlGateway):
    """SqlGateway that raises GatewayError on chosen operations.

    ``fail("update")`` makes the next update fail; ``fail("list", after=1)``
    lets one list through first.
    """

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)
        self._budget: dict[str, int] = {}

    def fail(self, op: str, *, after: int = 0) -> None:
        self._budget[op] = after

    def heal(self) -> None:
        self._budget.clear()

    def _check(self, op: str) -> None:
        if op not in self._budget:
            return
        if self._budget[op] <= 0:
            raise GatewayError(op, "simulated outage")
        self._budget[op] -= 1

    def list(self, scope: Scope) -> list[Any]:
        self._check("list")
        return super().list(scope)

    def create(self, entity: Any) -> Any:
        self._check("create")
        return super().create(entity)

    def update(self, entity_id: str, patch: dict[str, Any]) -> Any:
        self._check("update")
        return super().update(entity_id, patch)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def hero_payload(title: str, **extra: Any) -> dict[str, Any]:
    return {
        "title": title,
        "link_url": "/sale",
        "desktop_image": "img/desktop.jpg",
        "mobile_image": "img/mobile.jpg",
        **extra,
    }


def featured_payload(title: str, **extra: Any) -> dict[str, Any]:
    return {"title": title, "link_url": "/featured", "image": "img/featured.jpg", **extra}


def section_payload(name: str, icon: str = "car", **extra: Any) -> dict[str, Any]:
    return {"name": name, "icon": icon, **extra}


def link_payload(label: str, href: str = "/deals", **extra: Any) -> dict[str, Any]:
    return {"label": label, "href": href, **extra}


def item_payload(category_id: str, **extra: Any) -> dict[str, Any]:
    return {"category_id": category_id, **extra}


def place_entity(
    store: Store,
    kind: str,
    payload: dict[str, Any],
    **kwargs: Any,
) -> dict[str, Any]:
    """Place via PlacementService, asserting a conflict-free success."""
    from merchctl.services.placement import PlacementService

    result = PlacementService(store).place(kind, payload, **kwargs)
    assert result.ok, result.error
    assert result.data["outcome"] == "placed", result.data
    return result.data["entity"]


def place_hero(store: Store, title: str, **kwargs: Any) -> dict[str, Any]:
    return place_entity(store, "hero-slide", hero_payload(title), **kwargs)


def add_category(store: Store, name: str) -> str:
    """Add a category via CategoryService, asserting success."""
    from merchctl.services.categories import CategoryService

    result = CategoryService(store).add(name)
    assert result.ok, result.error
    return result.data["id"]


def orders(store: Store, kind: str, variant: str | None = None) -> dict[str, int]:
    """Current ``label -> order`` mapping for a scope."""
    scope = store.registry.scope(kind, variant)
    return {e.label: e.order for e in store.gateway.list(scope)}
