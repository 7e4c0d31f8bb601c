"""Persistence gateway — per-entity CRUD consumed by the placement core.

:class:`PersistenceGateway` is the contract; :class:`SqlGateway` is the
SQLite implementation.  Every database failure surfaces as
:class:`GatewayError` carrying the operation name.  The gateway never
retries.

Each call commits on its own unless it runs inside :meth:`SqlGateway.transaction`,
in which case all calls share one connection and commit or roll back
together.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from merchctl.domain.entities import Category, PlacedEntity
from merchctl.domain.scopes import ScopeKind
from merchctl.infrastructure.database.counters import ID_PREFIXES, next_sequential_id
from merchctl.infrastructure.database.schema import categories, placements

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from merchctl.domain.scopes import Scope

logger = logging.getLogger(__name__)

# Patch keys accepted by update(); anything else is a programming error.
_PATCHABLE: dict[str, str] = {
    "order": "position",
    "variant": "variant",
    "label": "label",
    "reference_id": "reference_id",
    "payload": "payload",
}


class GatewayError(Exception):
    """A persistence call failed."""

    def __init__(self, op: str, message: str) -> None:
        super().__init__(f"{op}: {message}")
        self.op = op
        self.message = message


class EntityNotFoundError(GatewayError):
    """The addressed entity does not exist."""


class DuplicateCategoryError(GatewayError):
    """A category with the same name already exists."""


class PersistenceGateway(Protocol):
    """Minimal CRUD contract the placement core depends on."""

    def list(self, scope: Scope) -> list[PlacedEntity]: ...

    def get(self, entity_id: str) -> PlacedEntity | None: ...

    def create(self, entity: PlacedEntity) -> PlacedEntity: ...

    def update(self, entity_id: str, patch: dict[str, Any]) -> PlacedEntity: ...

    def delete(self, entity_id: str) -> None: ...


def _now() -> str:
    """High-resolution UTC timestamp; ordering of writes relies on it."""
    return datetime.now(UTC).isoformat()


def _to_entity(row: Any) -> PlacedEntity:
    return PlacedEntity(
        id=row.id,
        kind=ScopeKind(row.kind),
        variant=row.variant,
        order=row.position,
        label=row.label,
        reference_id=row.reference_id,
        payload=json.loads(row.payload or "{}"),
        created=row.created,
        modified=row.modified,
    )


class SqlGateway:
    """SQLAlchemy Core gateway over the ``placements`` and ``categories`` tables."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._conn: Connection | None = None

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group subsequent calls into one transaction.

        Nested use joins the outer transaction.  Any exception raised in
        the block rolls back every write made inside it.
        """
        if self._conn is not None:
            yield
            return
        try:
            with self._engine.begin() as conn:
                self._conn = conn
                try:
                    yield
                finally:
                    self._conn = None
        except SQLAlchemyError as exc:
            raise GatewayError("transaction", str(exc)) from exc

    @contextmanager
    def _connect(self, op: str) -> Iterator[Connection]:
        if self._conn is not None:
            try:
                yield self._conn
            except SQLAlchemyError as exc:
                raise GatewayError(op, str(exc)) from exc
            return
        try:
            with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise GatewayError(op, str(exc)) from exc

    # ------------------------------------------------------------------
    # Placed entities
    # ------------------------------------------------------------------

    def list(self, scope: Scope) -> list[PlacedEntity]:
        stmt = select(placements).where(placements.c.kind == scope.kind.value)
        if scope.variant is None:
            stmt = stmt.where(placements.c.variant.is_(None))
        else:
            stmt = stmt.where(placements.c.variant == scope.variant)
        stmt = stmt.order_by(placements.c.position, placements.c.created, placements.c.id)
        with self._connect("list") as conn:
            rows = conn.execute(stmt).fetchall()
        return [_to_entity(r) for r in rows]

    def list_variants(self, kind: str) -> list[str]:
        """Distinct variants stored for *kind*, i.e. its populated partitions."""
        stmt = (
            select(placements.c.variant)
            .where(placements.c.kind == str(kind), placements.c.variant.is_not(None))
            .distinct()
            .order_by(placements.c.variant)
        )
        with self._connect("list") as conn:
            return list(conn.execute(stmt).scalars())

    def get(self, entity_id: str) -> PlacedEntity | None:
        with self._connect("get") as conn:
            row = conn.execute(select(placements).where(placements.c.id == entity_id)).first()
        return _to_entity(row) if row is not None else None

    def create(self, entity: PlacedEntity) -> PlacedEntity:
        now = _now()
        with self._connect("create") as conn:
            new_id = next_sequential_id(conn, ID_PREFIXES[entity.kind.value])
            conn.execute(
                insert(placements).values(
                    id=new_id,
                    kind=entity.kind.value,
                    variant=entity.variant,
                    position=entity.order,
                    label=entity.label,
                    reference_id=entity.reference_id,
                    payload=json.dumps(entity.payload),
                    created=now,
                    modified=now,
                )
            )
        logger.debug("created %s at order %d", new_id, entity.order)
        return entity.model_copy(update={"id": new_id, "created": now, "modified": now})

    def update(self, entity_id: str, patch: dict[str, Any]) -> PlacedEntity:
        unknown = set(patch) - set(_PATCHABLE)
        if unknown:
            msg = f"Unpatchable fields: {sorted(unknown)}"
            raise ValueError(msg)

        values: dict[str, Any] = {_PATCHABLE[k]: v for k, v in patch.items()}
        if "payload" in values:
            values["payload"] = json.dumps(values["payload"])
        values["modified"] = _now()

        with self._connect("update") as conn:
            result = conn.execute(
                update(placements).where(placements.c.id == entity_id).values(**values)
            )
            if result.rowcount == 0:
                raise EntityNotFoundError("update", f"No entity with ID: {entity_id}")
            row = conn.execute(select(placements).where(placements.c.id == entity_id)).one()
        logger.debug("updated %s: %s", entity_id, sorted(patch))
        return _to_entity(row)

    def delete(self, entity_id: str) -> None:
        with self._connect("delete") as conn:
            result = conn.execute(delete(placements).where(placements.c.id == entity_id))
            if result.rowcount == 0:
                raise EntityNotFoundError("delete", f"No entity with ID: {entity_id}")
        logger.debug("deleted %s", entity_id)

    # ------------------------------------------------------------------
    # Categories (the collection homepage slots reference)
    # ------------------------------------------------------------------

    def list_categories(self) -> list[Category]:
        with self._connect("list_categories") as conn:
            rows = conn.execute(select(categories).order_by(categories.c.name)).fetchall()
        return [Category(id=r.id, name=r.name, created=r.created) for r in rows]

    def get_category(self, category_id: str) -> Category | None:
        with self._connect("get_category") as conn:
            row = conn.execute(select(categories).where(categories.c.id == category_id)).first()
        if row is None:
            return None
        return Category(id=row.id, name=row.name, created=row.created)

    def add_category(self, name: str) -> Category:
        now = _now()
        try:
            with self._connect("add_category") as conn:
                new_id = next_sequential_id(conn, ID_PREFIXES["category"])
                conn.execute(insert(categories).values(id=new_id, name=name, created=now))
        except GatewayError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                msg = f"Category already exists: {name}"
                raise DuplicateCategoryError("add_category", msg) from exc
            raise
        return Category(id=new_id, name=name, created=now)

    def remove_category(self, category_id: str) -> None:
        with self._connect("remove_category") as conn:
            result = conn.execute(delete(categories).where(categories.c.id == category_id))
            if result.rowcount == 0:
                raise EntityNotFoundError("remove_category", f"No category with ID: {category_id}")
