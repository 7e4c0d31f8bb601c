"""Tests for InitService."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from merchctl.config.settings import MerchSettings
from merchctl.services.init import InitService


def _store_name(root: Path) -> str:
    data = tomllib.loads((root / "merchctl.toml").read_text(encoding="utf-8"))
    return data["store"]["name"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MERCHCTL_CONFIG", raising=False)


class TestInitStore:
    def test_creates_config_and_database(self, tmp_path: Path) -> None:
        result = InitService.init_store(tmp_path, name="autoparts")
        assert result.ok
        assert (tmp_path / "merchctl.toml").is_file()
        assert (tmp_path / ".merchctl" / "merchctl.db").is_file()
        assert _store_name(tmp_path) == "autoparts"

    def test_refuses_existing(self, tmp_path: Path) -> None:
        InitService.init_store(tmp_path, name="autoparts")
        result = InitService.init_store(tmp_path, name="again")
        assert result.error.code == "VALIDATION_FAILED"

    def test_force_rewrites(self, tmp_path: Path) -> None:
        InitService.init_store(tmp_path, name="autoparts")
        result = InitService.init_store(tmp_path, name="again", force=True)
        assert result.ok
        assert _store_name(tmp_path) == "again"

    def test_rejects_blank_name(self, tmp_path: Path) -> None:
        result = InitService.init_store(tmp_path, name="   ")
        assert result.error.code == "VALIDATION_FAILED"
        assert not (tmp_path / "merchctl.toml").exists()

    @pytest.mark.parametrize(
        "name",
        [
            r"Parts\xStore",
            'Joe\'s "Best" Parts',
            "two\nlines",
            "tab\there",
            "Pièces Détachées",
        ],
    )
    def test_name_survives_round_trip(self, tmp_path: Path, name: str) -> None:
        result = InitService.init_store(tmp_path, name=name)
        assert result.ok
        assert _store_name(tmp_path) == name
        assert MerchSettings.from_cli(store_root=tmp_path).store.name == name

    def test_store_template_override(self, tmp_path: Path) -> None:
        override = tmp_path / ".merchctl" / "templates" / "config"
        override.mkdir(parents=True)
        (override / "merchctl.toml.j2").write_text(
            "[store]\nname = {{ name | toml_string }}\n\n[scopes]\nhero_slide = 5\n"
        )
        result = InitService.init_store(tmp_path, name="custom")
        assert result.ok
        settings = MerchSettings.from_cli(store_root=tmp_path)
        assert settings.store.name == "custom"
        assert settings.scopes.hero_slide == 5
