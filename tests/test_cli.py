"""Tests for the root merchctl CLI."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from merchctl import __version__
from merchctl.cli import cli
from merchctl.services.telemetry import disable_telemetry


@pytest.fixture
def _reset_telemetry() -> Generator[None]:
    yield
    disable_telemetry()


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "merchctl" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


# --- Global flags ---


@pytest.mark.parametrize(
    "flag",
    [["--json"], ["-q"], ["--no-interact"], ["--log-json"], ["-c", "/tmp/none.toml"]],
    ids=lambda f: f[0],
)
def test_global_flag_accepted(cli_runner: CliRunner, flag: list[str]) -> None:
    result = cli_runner.invoke(cli, [*flag, "--version"])
    assert result.exit_code == 0


@pytest.mark.usefixtures("_isolated_store", "_reset_telemetry")
def test_verbose_includes_telemetry(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--json", "-v", "next-order", "hero-slide"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert "PlacementService.next_order" in data["meta"]["telemetry"]["name"]


@pytest.mark.usefixtures("_isolated_store")
def test_config_flag_sets_limits(cli_runner: CliRunner, tmp_path: Path) -> None:
    config = tmp_path / "custom.toml"
    config.write_text("[scopes]\nmenu_section = 1\n")
    base = ["--json", "-c", str(config), "place", "menu-section", "--set", "icon=car"]

    assert cli_runner.invoke(cli, [*base, "--set", "name=Brakes"]).exit_code == 0
    result = cli_runner.invoke(cli, [*base, "--set", "name=Engine"])
    assert result.exit_code == 1
    assert json.loads(result.stderr)["error"]["code"] == "OUT_OF_BOUNDS"


@pytest.mark.usefixtures("_isolated_store")
def test_env_disables_atomic_displacement(
    cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("MERCHCTL_PLACEMENT__ATOMIC_DISPLACEMENT", "false")
    result = cli_runner.invoke(cli, ["--json", "next-order", "menu-link"])
    assert result.exit_code == 0
