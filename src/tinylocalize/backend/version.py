"""Expose the installed project version."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Final

PACKAGE_NAME: Final = "tinylocalize"
PYPROJECT_PATH: Final = Path(__file__).resolve().parents[3] / "pyproject.toml"

_PROJECT_VERSION = re.compile(
    r'^\[project\]$.*?^version\s*=\s*"([^"]+)"', re.MULTILINE | re.DOTALL
)


@lru_cache(maxsize=1)
def get_project_version() -> str:
    """Return the packaged version, or the checkout's ``pyproject.toml`` version."""

    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        match = _PROJECT_VERSION.search(PYPROJECT_PATH.read_text(encoding="utf-8"))
        if match is None:
            raise RuntimeError(f"No [project] version in {PYPROJECT_PATH}") from None
        return match.group(1)


__all__ = ["get_project_version"]
