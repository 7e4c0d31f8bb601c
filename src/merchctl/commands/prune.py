"""Command: remove homepage slots that reference missing categories."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from merchctl.commands._base import MerchCommand

if TYPE_CHECKING:
    from merchctl.commands._context import AppContext


@click.command(
    cls=MerchCommand,
    examples="""\
  merchctl prune
  merchctl prune --valid CAT-0001 --valid CAT-0004""",
)
@click.option(
    "--valid",
    "valid_ids",
    multiple=True,
    help="Valid category ID (repeatable).  Defaults to the current categories.",
)
@click.pass_obj
def prune(app: AppContext, valid_ids: tuple[str, ...]) -> None:
    """Drop stale slot assignments and compact the rest to 1..n."""
    from merchctl.services.prune import PruneService

    app.emit(PruneService(app.store).prune(list(valid_ids) if valid_ids else None))
