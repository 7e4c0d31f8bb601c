"""Subcommand modules for merchctl.

Provides register_commands() which uses deferred imports to keep
``merchctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    2 groups (have subcommands) + 10 standalone commands.
    """
    # --- Groups ---
    from merchctl.commands.category import category
    from merchctl.commands.slot import slot

    cli.add_command(category)
    cli.add_command(slot)

    # --- Standalone commands ---
    from merchctl.commands.check import check
    from merchctl.commands.conflict import conflict
    from merchctl.commands.delete import delete
    from merchctl.commands.init_cmd import init_cmd
    from merchctl.commands.list_cmd import list_cmd
    from merchctl.commands.next_order import next_order
    from merchctl.commands.place import place
    from merchctl.commands.prune import prune
    from merchctl.commands.resume import resume
    from merchctl.commands.show import show

    cli.add_command(init_cmd)
    cli.add_command(place)
    cli.add_command(list_cmd)
    cli.add_command(show)
    cli.add_command(delete)
    cli.add_command(next_order)
    cli.add_command(conflict)
    cli.add_command(resume)
    cli.add_command(check)
    cli.add_command(prune)
