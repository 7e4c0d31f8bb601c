"""Command group: the homepage category slot grid."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from merchctl.commands._base import MerchGroup

if TYPE_CHECKING:
    from merchctl.commands._context import AppContext


@click.group(
    cls=MerchGroup,
    examples="""\
  merchctl slot assign CAT-0001 --slot 1
  merchctl slot list
  merchctl slot clear 4""",
)
def slot() -> None:
    """Manage homepage category slots."""


@slot.command(
    examples="""\
  merchctl slot assign CAT-0002
  merchctl slot assign CAT-0002 --slot 3
  merchctl slot assign CAT-0005 --slot 1 --confirm""",
)
@click.argument("category_id")
@click.option(
    "--slot", "slot_index", type=int, default=None, help="Slot index (next free if omitted)."
)
@click.option("--confirm", is_flag=True, help="Displace the current occupant without prompting.")
@click.pass_obj
def assign(app: AppContext, category_id: str, slot_index: int | None, confirm: bool) -> None:
    """Put a category in a slot.  A category already on the grid moves."""
    from merchctl.services.slots import SlotService

    svc = SlotService(app.store)
    result = svc.assign(slot_index, category_id, confirmed=confirm)
    app.emit_placement(result, lambda: svc.assign(slot_index, category_id, confirmed=True))


@slot.command(
    examples="""\
  merchctl slot clear 2""",
)
@click.argument("slot_index", type=int)
@click.pass_obj
def clear(app: AppContext, slot_index: int) -> None:
    """Empty a slot.  Other slots keep their indexes."""
    from merchctl.services.slots import SlotService

    app.emit(SlotService(app.store).clear(slot_index))


@slot.command(
    "list",
    examples="""\
  merchctl slot list
  merchctl --json slot list""",
)
@click.pass_obj
def list_slots(app: AppContext) -> None:
    """Show the slot grid."""
    from merchctl.services.slots import SlotService

    app.emit(SlotService(app.store).assignments())
