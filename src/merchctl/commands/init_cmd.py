"""Command: store initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from merchctl.commands._base import MerchCommand

if TYPE_CHECKING:
    from merchctl.commands._context import AppContext

_INIT_EXAMPLES = """\
  merchctl init
  merchctl init /srv/storefront --name autoparts
  merchctl --no-interact init . --name test"""


@click.command("init", cls=MerchCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--name", default=None, help="Store name.")
@click.option("--force", is_flag=True, help="Rewrite an existing merchctl.toml.")
@click.pass_obj
def init_cmd(app: AppContext, path: str, name: str | None, force: bool) -> None:
    """Initialize a new merchctl store."""
    store_path = Path(path).resolve()

    if name is None:
        name = (
            click.prompt("Store name", default=store_path.name)
            if app.interactive
            else store_path.name
        )

    from merchctl.services.init import InitService

    app.emit(InitService.init_store(store_path, name=name, force=force))
