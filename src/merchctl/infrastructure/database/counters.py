"""Sequential ID generation for placed entities and categories.

Uses the ``id_counters`` table inside the caller's transaction so the
counter increment commits or rolls back together with the insert that
consumes it.  Minimum 4 digits, grows naturally past 9999.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import insert, select, update

from merchctl.infrastructure.database.schema import id_counters

if TYPE_CHECKING:
    from sqlalchemy import Connection

ID_PREFIXES: dict[str, str] = {
    "hero-slide": "HERO-",
    "featured-item": "FEAT-",
    "homepage-category-slot": "SLOT-",
    "menu-section": "MSEC-",
    "menu-item": "MITM-",
    "menu-link": "MLNK-",
    "category": "CAT-",
}

_VALID_PREFIXES = frozenset(ID_PREFIXES.values())


def next_sequential_id(conn: Connection, type_prefix: str) -> str:
    """Claim the next sequential ID for *type_prefix*.

    Args:
        conn: Active SQLAlchemy connection (caller owns the transaction).
        type_prefix: One of the values of :data:`ID_PREFIXES`.

    Returns:
        The new ID string (e.g. ``"HERO-0001"``).

    Raises:
        ValueError: If *type_prefix* is not a recognized prefix.
    """
    if type_prefix not in _VALID_PREFIXES:
        msg = (
            f"Unknown sequential type prefix: {type_prefix!r}. "
            f"Expected one of {sorted(_VALID_PREFIXES)}"
        )
        raise ValueError(msg)

    row = conn.execute(
        select(id_counters.c.next_value).where(id_counters.c.type_prefix == type_prefix)
    ).first()

    if row is None:
        current_value = 1
        conn.execute(insert(id_counters).values(type_prefix=type_prefix, next_value=2))
    else:
        current_value = row.next_value
        conn.execute(
            update(id_counters)
            .where(id_counters.c.type_prefix == type_prefix)
            .values(next_value=current_value + 1)
        )

    return f"{type_prefix}{current_value:04d}"
