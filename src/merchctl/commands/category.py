"""Command group: the category collection homepage slots reference."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from merchctl.commands._base import MerchGroup

if TYPE_CHECKING:
    from merchctl.commands._context import AppContext


@click.group(
    cls=MerchGroup,
    examples="""\
  merchctl category add "Brake Pads"
  merchctl category list
  merchctl category remove CAT-0003""",
)
def category() -> None:
    """Manage categories."""


@category.command(
    examples="""\
  merchctl category add "Engine Oil"
  merchctl --json category add Filters""",
)
@click.argument("name")
@click.pass_obj
def add(app: AppContext, name: str) -> None:
    """Add a category."""
    from merchctl.services.categories import CategoryService

    app.emit(CategoryService(app.store).add(name))


@category.command(
    examples="""\
  merchctl category remove CAT-0002""",
)
@click.argument("category_id")
@click.pass_obj
def remove(app: AppContext, category_id: str) -> None:
    """Remove a category and prune homepage slots that pointed at it."""
    from merchctl.services.categories import CategoryService

    app.emit(CategoryService(app.store).remove(category_id))


@category.command(
    "list",
    examples="""\
  merchctl category list
  merchctl -q category list""",
)
@click.pass_obj
def list_categories(app: AppContext) -> None:
    """List categories by name."""
    from merchctl.services.categories import CategoryService

    app.emit(CategoryService(app.store).list())
