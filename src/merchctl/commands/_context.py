"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Store initialization, centralized
result emission (stdout/stderr routing + exit codes) and the
confirm-to-displace prompt.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import TYPE_CHECKING

import click

from merchctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from merchctl.config.settings import MerchSettings
    from merchctl.infrastructure.store import Store
    from merchctl.services.result import ServiceResult

EXIT_ERROR = 1
EXIT_CONFLICT = 2


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The store is lazily
    opened on first use so ``--help`` and ``--version`` never touch the
    database.
    """

    def __init__(self, settings: MerchSettings) -> None:
        self.settings = settings
        self._store: Store | None = None

        from merchctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from merchctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> Store:
        """The store instance (opened lazily on first access)."""
        if self._store is None:
            from merchctl.infrastructure.store import Store

            self._store = Store(self.settings)
        return self._store

    @property
    def interactive(self) -> bool:
        """Prompts require: no ``--no-interact``, no ``--json``, and a TTY stdin."""
        return (
            not self.settings.no_interact
            and not self.settings.json_output
            and sys.stdin.isatty()
        )

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Pending conflict: writes to stdout, exits with code 2.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if not result.ok:
            click.echo(output, err=True)
            raise SystemExit(EXIT_ERROR)

        click.echo(output)
        if result.data.get("outcome") == "conflict":
            raise SystemExit(EXIT_CONFLICT)
        if not settings.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)

    def emit_placement(
        self,
        result: ServiceResult,
        confirm: Callable[[], ServiceResult],
    ) -> None:
        """Emit a placement result, prompting on conflict when interactive.

        *confirm* re-runs the placement with ``confirmed=True``.  A declined
        prompt leaves the conflict pending.
        """
        if result.ok and result.data.get("outcome") == "conflict" and self.interactive:
            message = result.warnings[0] if result.warnings else "Order is already used"
            if click.confirm(f"{message}. Move it to the next free order?", default=False):
                result = confirm()
        self.emit(result)
