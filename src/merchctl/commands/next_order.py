"""Command: show the order a new entity would receive."""

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
    "next-order",
    cls=MerchCommand,
    examples="""\
  merchctl next-order hero-slide
  merchctl next-order featured-item --variant feature
  merchctl next-order menu-item --section MSEC-0001""",
)
@click.argument("kind", type=KIND_CHOICE, metavar="KIND")
@variant_option()
@section_option()
@click.pass_obj
def next_order(
    app: AppContext, kind: str, variant: str | None, section_id: str | None
) -> None:
    """Print max(order) + 1 for the scope (1 when empty)."""
    from merchctl.services.placement import PlacementService

    variant = scope_variant(variant, section_id)
    with scope_usage():
        result = PlacementService(app.store).next_order(kind, variant=variant)
    app.emit(result)
