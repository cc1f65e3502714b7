"""
Centralized application settings.

Values come from ``GITSIFT_*`` environment variables and an optional TOML
file whose grouped sections are flattened into :class:`AppSettings` fields.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older interpreters
    import tomli as tomllib  # type: ignore[no-redef]

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_concurrency() -> int:
    return os.cpu_count() or 1


class AppSettings(BaseSettings):
    """Project-wide settings loaded from env or a TOML file."""

    model_config = SettingsConfigDict(
        env_prefix="GITSIFT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    concurrency: int = Field(default_factory=_default_concurrency)
    clone_temp_root: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    clone_prefix: str = "gitsift"
    max_depth: int = 0
    verify: bool = False
    queue_size: int = 0
    log_level: str = "INFO"

    @field_validator("concurrency")
    @classmethod
    def _at_least_one_worker(cls, value: int) -> int:
        if value < 1:
            raise ValueError("concurrency must be at least 1")
        return value

    @field_validator("max_depth", "queue_size")
    @classmethod
    def _not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("value must be >= 0")
        return value


_CONFIG_ENV_VAR = "GITSIFT_CONFIG_PATH"
_DEFAULT_CONFIG_FILE = Path("gitsift.toml")


def _load_toml_config() -> Dict[str, Any]:
    """Load configuration from the primary TOML file on disk."""
    candidates: List[Path] = []
    config_override = os.getenv(_CONFIG_ENV_VAR)
    if config_override:
        candidates.append(Path(config_override))
    candidates.append(_DEFAULT_CONFIG_FILE)

    for candidate in candidates:
        if candidate.is_file():
            with candidate.open("rb") as handle:
                return tomllib.load(handle)
    return {}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _flatten_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Translate grouped TOML sections into AppSettings keyword arguments."""
    data: Dict[str, Any] = {}

    scan = raw.get("scan", {})
    if "concurrency" in scan:
        data["concurrency"] = int(scan["concurrency"])
    if "max_depth" in scan:
        data["max_depth"] = int(scan["max_depth"])
    if "verify" in scan:
        data["verify"] = bool(scan["verify"])
    if "queue_size" in scan:
        data["queue_size"] = int(scan["queue_size"])

    clone = raw.get("clone", {})
    temp_root: Optional[str] = _blank_to_none(clone.get("temp_root"))
    if temp_root:
        data["clone_temp_root"] = Path(temp_root)
    if "prefix" in clone:
        data["clone_prefix"] = clone["prefix"]

    logging_section = raw.get("logging", {})
    if "level" in logging_section:
        data["log_level"] = logging_section["level"]

    return data


def load_settings() -> AppSettings:
    raw = _load_toml_config()
    return AppSettings(**_flatten_config(raw))


settings = load_settings()
