"""Database engine setup for SQLite with WAL mode.

The DB is stored at {store_root}/.merchctl/merchctl.db.  SQLAlchemy Core
(not ORM) is used: merchctl is a short-lived CLI process and the gateway
maps rows to immutable domain models itself.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Engine

from merchctl.config.discovery import STORE_DIRNAME
from merchctl.infrastructure.database.counters import ID_PREFIXES
from merchctl.infrastructure.database.schema import id_counters, metadata

DB_FILENAME = "merchctl.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(store_root: Path) -> Engine:
    """Initialize the database at ``{store_root}/.merchctl/merchctl.db``.

    Creates the directory, all tables, and seeds ``id_counters``.
    Idempotent — safe to call on an existing store.
    """
    store_dir = store_root / STORE_DIRNAME
    store_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(store_dir / DB_FILENAME)
    metadata.create_all(engine)
    _seed_counters(engine)
    return engine


def _seed_counters(engine: Engine) -> None:
    """Insert initial counter rows for every id prefix if they don't exist."""
    with engine.begin() as conn:
        for prefix in ID_PREFIXES.values():
            row = conn.execute(
                select(id_counters.c.type_prefix).where(id_counters.c.type_prefix == prefix)
            ).first()
            if row is None:
                conn.execute(insert(id_counters).values(type_prefix=prefix, next_value=1))
