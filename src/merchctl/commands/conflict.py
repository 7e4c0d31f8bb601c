"""Command: check whether an order is already taken."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from merchctl.commands._base import (
    KIND_CHOICE,
    MerchCommand,
    scope_usage,
    scope_variant,
    section_option,
    variant_option,
)

if TYPE_CHECKING:
    from merchctl.commands._context import AppContext


@click.command(
    cls=MerchCommand,
    examples="""\
  merchctl conflict hero-slide 2
  merchctl conflict menu-section 1 --exclude MSEC-0001
  merchctl conflict menu-item 3 --section MSEC-0002""",
)
@click.argument("kind", type=KIND_CHOICE, metavar="KIND")
@click.argument("order", type=int)
@variant_option()
@section_option()
@click.option(
    "--exclude", "exclude_id", default=None, help="Ignore this entity (the one being edited)."
)
@click.pass_obj
def conflict(
    app: AppContext,
    kind: str,
    order: int,
    variant: str | None,
    section_id: str | None,
    exclude_id: str | None,
) -> None:
    """Report which entity occupies ORDER, if any."""
    from merchctl.services.placement import PlacementService

    variant = scope_variant(variant, section_id)
    with scope_usage():
        result = PlacementService(app.store).find_conflict(
            kind, order, variant=variant, exclude_id=exclude_id
        )
    app.emit(result)
