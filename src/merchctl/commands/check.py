"""Command: ordering integrity checking and repair."""

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
  merchctl check
  merchctl check --kind featured-item
  merchctl check --kind menu-item --section MSEC-0001
  merchctl check --fix""",
)
@click.option("--kind", type=KIND_CHOICE, default=None, help="Only check this kind.")
@variant_option()
@section_option()
@click.option("--fix", is_flag=True, help="Repair duplicate orders and stale references.")
@click.pass_obj
def check(
    app: AppContext,
    kind: str | None,
    variant: str | None,
    section_id: str | None,
    fix: bool,
) -> None:
    """Check for duplicate orders, over-capacity scopes and stale references."""
    from merchctl.services.check import CheckService

    variant = scope_variant(variant, section_id)
    if variant is not None and kind is None:
        raise click.UsageError("--variant and --section require --kind")
    with scope_usage():
        result = CheckService(app.store).check(kind, variant, fix=fix)
    app.emit(result)
