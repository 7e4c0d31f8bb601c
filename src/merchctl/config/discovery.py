"""Store and config file discovery.

A store root is the nearest directory, walking up from the working
directory, that holds either ``merchctl.toml`` or the ``.merchctl/`` data
directory.  The walk stops at the first store root it meets, so a nested
store never picks up the config of an enclosing one.

``MERCHCTL_CONFIG`` (and the ``--config`` flag, handled by the settings
layer) bypass the walk entirely.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "merchctl.toml"
CONFIG_ENV_VAR = "MERCHCTL_CONFIG"
STORE_DIRNAME = ".merchctl"


def is_store_root(path: Path) -> bool:
    return (path / CONFIG_FILENAME).is_file() or (path / STORE_DIRNAME).is_dir()


def find_store_root(start: Path | None = None) -> Path | None:
    """Nearest ancestor of *start* (default: cwd) that is a store root."""
    current = (start or Path.cwd()).resolve()
    while True:
        if is_store_root(current):
            return current
        parent = current.parent
        if parent == current:
            return None
        current = parent


def find_config(start: Path | None = None) -> Path | None:
    """Locate the config file for the store enclosing *start*.

    Returns ``None`` when ``MERCHCTL_CONFIG`` names a missing file, when
    no store root is found, or when the nearest store root has no config
    file (defaults apply).
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    root = find_store_root(start)
    if root is None:
        return None
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None
