"""Command: list a scope in display order (named list_cmd to avoid shadowing builtins)."""

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
    "list",
    cls=MerchCommand,
    examples="""\
  merchctl list hero-slide
  merchctl list featured-item
  merchctl list featured-item --variant tile
  merchctl list menu-item --section MSEC-0001
  merchctl --json list menu-link""",
)
@click.argument("kind", type=KIND_CHOICE, metavar="KIND")
@variant_option()
@section_option()
@click.pass_obj
def list_cmd(
    app: AppContext, kind: str, variant: str | None, section_id: str | None
) -> None:
    """List entities sorted by order.  Omit --variant or --section to list all."""
    from merchctl.services.placement import PlacementService

    variant = scope_variant(variant, section_id)
    with scope_usage():
        result = PlacementService(app.store).list(kind, variant=variant)
    app.emit(result)
