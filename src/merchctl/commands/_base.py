"""Custom Click base classes with --examples support.

Provides MerchCommand and MerchGroup that accept an ``examples`` parameter.
When ``--examples`` is passed, the command prints usage examples and exits.
This keeps ``--help`` concise while making examples available on demand.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click

from merchctl.domain.scopes import FeaturedVariant, ScopeKind

KIND_CHOICE = click.Choice([k.value for k in ScopeKind])
VARIANT_OPTION_HELP = "Featured variant (feature or tile); required for featured-item."


def variant_option() -> Any:
    return click.option(
        "--variant",
        type=click.Choice([v.value for v in FeaturedVariant]),
        default=None,
        help=VARIANT_OPTION_HELP,
    )


def section_option() -> Any:
    return click.option(
        "--section",
        "section_id",
        default=None,
        help="Parent menu-section id; required for menu-item.",
    )


def scope_variant(variant: str | None, section_id: str | None) -> str | None:
    """Fold ``--variant`` and ``--section`` into the one partition key."""
    if variant is not None and section_id is not None:
        raise click.UsageError("--variant and --section are mutually exclusive")
    return variant if variant is not None else section_id


@contextmanager
def scope_usage() -> Iterator[None]:
    """Turn scope lookup errors (unknown kind, missing variant) into usage errors."""
    try:
        yield
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class MerchCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class MerchGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = MerchCommand`` so all subcommands automatically
    accept the ``examples`` parameter without explicit ``cls=`` each time.
    """

    command_class = MerchCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
