"""InitService — create a store directory with config and database."""

from __future__ import annotations

from pathlib import Path

from jinja2 import TemplateError
from sqlalchemy.exc import SQLAlchemyError

from merchctl.config.discovery import CONFIG_FILENAME, STORE_DIRNAME
from merchctl.infrastructure.database.engine import DB_FILENAME, init_database
from merchctl.infrastructure.templates import build_template_environment
from merchctl.services._helpers import error_result
from merchctl.services.result import ServiceResult

CONFIG_TEMPLATE = "merchctl.toml.j2"


class InitService:
    """Store initialization.  Runs before a Store exists, so it is static."""

    @staticmethod
    def init_store(path: Path, *, name: str, force: bool = False) -> ServiceResult:
        op = "init_store"
        config_file = path / CONFIG_FILENAME
        if config_file.exists() and not force:
            return error_result(
                op,
                "VALIDATION_FAILED",
                f"Store already initialized at {path} (use --force to rewrite config)",
                path=str(path),
            )

        if not name.strip():
            return error_result(op, "VALIDATION_FAILED", "Store name must not be empty")

        try:
            env = build_template_environment("config", store_root=path)
            rendered = env.get_template(CONFIG_TEMPLATE).render(name=name)
        except TemplateError as exc:
            return error_result(op, "VALIDATION_FAILED", f"Config template error: {exc}")

        try:
            path.mkdir(parents=True, exist_ok=True)
            config_file.write_text(rendered, encoding="utf-8")
            engine = init_database(path)
            engine.dispose()
        except (OSError, SQLAlchemyError) as exc:
            return error_result(op, "IO_ERROR", str(exc), step="init")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(path),
                "name": name,
                "config": str(config_file),
                "database": str(path / STORE_DIRNAME / DB_FILENAME),
            },
        )
