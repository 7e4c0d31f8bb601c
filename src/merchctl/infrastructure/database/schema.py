"""SQLAlchemy Core table definitions for the merchctl database.

``placements`` holds every placed entity of every scope; a scope is the
``(kind, variant)`` pair.  There is no unique constraint on
``(kind, variant, position)``: a non-atomic displacement or two operators
writing the same scope can leave a transient duplicate, which the
integrity check detects and repairs.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, Table, Text

metadata = MetaData()

placements = Table(
    "placements",
    metadata,
    Column("id", Text, primary_key=True),
    Column("kind", Text, nullable=False),
    Column("variant", Text),
    Column("position", Integer, nullable=False),
    Column("label", Text, nullable=False, default="", server_default=""),
    Column("reference_id", Text),  # category id for homepage slots
    Column("payload", Text, nullable=False, default="{}", server_default="{}"),  # JSON object
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
)

categories = Table(
    "categories",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False, unique=True),
    Column("created", Text, nullable=False),
)

id_counters = Table(
    "id_counters",
    metadata,
    Column("type_prefix", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=1, server_default="1"),
)

Index("ix_placements_scope", placements.c.kind, placements.c.variant, placements.c.position)
Index("ix_placements_reference", placements.c.reference_id)
