"""Shared Jinja2 template loading with per-store override support."""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader

from merchctl.config.discovery import STORE_DIRNAME

_TOML_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def toml_string(value: object) -> str:
    """Render *value* as a quoted TOML basic string."""
    chars: list[str] = []
    for ch in str(value):
        if ch in _TOML_ESCAPES:
            chars.append(_TOML_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            chars.append(f"\\u{ord(ch):04X}")
        else:
            chars.append(ch)
    return '"' + "".join(chars) + '"'


def build_template_environment(group: str, *, store_root: Path | None = None) -> Environment:
    """Build a Jinja2 environment with store overrides before packaged defaults.

    Overrides are loaded from ``.merchctl/templates/`` inside the store,
    either namespaced by group (``.merchctl/templates/config/``) or flat.
    """
    loaders: list[BaseLoader] = []
    if store_root is not None:
        template_root = store_root / STORE_DIRNAME / "templates"
        loaders.append(FileSystemLoader([str(template_root / group), str(template_root)]))

    loaders.append(PackageLoader("merchctl", f"templates/{group}"))
    env = Environment(loader=ChoiceLoader(loaders), keep_trailing_newline=True)
    env.filters["toml_string"] = toml_string
    return env
