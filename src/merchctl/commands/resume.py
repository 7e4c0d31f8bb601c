"""Command: finish a displacement that failed after the authoritative write."""

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
  merchctl resume hero-slide 2 --placed-id HERO-0004
  merchctl resume featured-item 1 --variant tile --placed-id FEAT-0007""",
)
@click.argument("kind", type=KIND_CHOICE, metavar="KIND")
@click.argument("order", type=int)
@click.option("--placed-id", required=True, help="The entity written at ORDER.")
@variant_option()
@section_option()
@click.pass_obj
def resume(
    app: AppContext,
    kind: str,
    order: int,
    placed_id: str,
    variant: str | None,
    section_id: str | None,
) -> None:
    """Move any other entity off ORDER to the next free order."""
    from merchctl.services.placement import PlacementService

    variant = scope_variant(variant, section_id)
    with scope_usage():
        result = PlacementService(app.store).resume(kind, order, placed_id, variant=variant)
    app.emit(result)
