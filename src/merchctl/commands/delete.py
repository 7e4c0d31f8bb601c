"""Command: delete an entity, freeing its order."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from merchctl.commands._base import MerchCommand

if TYPE_CHECKING:
    from merchctl.commands._context import AppContext


@click.command(
    cls=MerchCommand,
    examples="""\
  merchctl delete HERO-0002
  merchctl delete MLNK-0001 --yes""",
)
@click.argument("entity_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete(app: AppContext, entity_id: str, yes: bool) -> None:
    """Delete an entity.  Other entities keep their orders."""
    from merchctl.services.placement import PlacementService

    if not yes and app.interactive and not click.confirm(f"Delete {entity_id}?", default=False):
        raise click.Abort
    app.emit(PlacementService(app.store).delete(entity_id))
