"""Command: show one entity with its payload."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from merchctl.commands._base import MerchCommand

if TYPE_CHECKING:
    from merchctl.commands._context import AppContext


@click.command(
    cls=MerchCommand,
    examples="""\
  merchctl show HERO-0001
  merchctl --json show FEAT-0003""",
)
@click.argument("entity_id")
@click.pass_obj
def show(app: AppContext, entity_id: str) -> None:
    """Show an entity by ID."""
    from merchctl.services.placement import PlacementService

    app.emit(PlacementService(app.store).get(entity_id))
