"""Installed version lookup for gitsift."""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata, resources

_DISTRIBUTION = "gitsift"


@lru_cache(maxsize=1)
def get_version() -> str:
    """Return the distribution version, falling back to the bundled VERSION file."""
    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        pass
    try:
        bundled = resources.files(_DISTRIBUTION).joinpath("VERSION")
        return bundled.read_text(encoding="utf-8").strip()
    except (FileNotFoundError, ModuleNotFoundError):
        return "unknown"


__all__ = ["get_version", "__version__"]

__version__ = get_version()
