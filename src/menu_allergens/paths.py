import os
from typing import Optional

from .logging import get_logger

LOG = get_logger("paths")

ROOT_MARKERS = (".git", "pyproject.toml")


def expand_abs(path: str) -> str:
    """Expand env vars and ~ then return absolute path."""
    return os.path.abspath(os.path.expanduser(os.path.expandvars(path or "")))


def _is_project_root(d: str) -> bool:
    return any(os.path.exists(os.path.join(d, marker)) for marker in ROOT_MARKERS)


def find_upwards(start_dir: Optional[str], filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    Running tools from subdirectories (e.g. `src/`) still finds repository
    level files like `.env`. The walk stops at the first directory that looks
    like a project root (.git/ or pyproject.toml).
    """
    d = os.path.abspath(start_dir or os.getcwd() or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            LOG.debug("Found %s at %s", filename, candidate)
            return candidate
        parent = os.path.dirname(d)
        if parent == d or _is_project_root(d):
            return None
        d = parent
