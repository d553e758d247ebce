"""Runtime configuration for the pets service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from .errors import ConfigurationError

REMOTE_BREEDS_URL = "https://api.petsite.fake/breeds"
DEFAULT_BREED_TIMEOUT = 30.0
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class RemoteBreedSource:
    """Load breeds with a single GET against the breed catalog API."""

    url: str = REMOTE_BREEDS_URL
    timeout: float = DEFAULT_BREED_TIMEOUT


@dataclass(frozen=True)
class FixtureBreedSource:
    """Load breeds from a local JSON file (tests, offline runs)."""

    path: Optional[Path]


BreedSourceConfig = Union[RemoteBreedSource, FixtureBreedSource]


@dataclass(frozen=True)
class Settings:
    """Application configuration."""

    breed_source: BreedSourceConfig = field(default_factory=RemoteBreedSource)
    database_url: str = "sqlite:///./pets.db"
    allow_empty_catalog: bool = False
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def breed_source_from_env() -> BreedSourceConfig:
    """Resolve the breed source choice from ``PETS_BREED_SOURCE_MODE``."""

    mode = os.getenv("PETS_BREED_SOURCE_MODE", "remote").strip().lower()
    if mode == "remote":
        try:
            timeout = float(os.getenv("PETS_BREED_TIMEOUT", str(DEFAULT_BREED_TIMEOUT)))
        except ValueError as exc:
            raise ConfigurationError(f"invalid PETS_BREED_TIMEOUT: {exc}") from exc
        return RemoteBreedSource(timeout=timeout)
    if mode == "fixture":
        # A missing path is reported by the loader as SourceUnavailable.
        raw_path = os.getenv("PETS_FIXTURE_PATH", "").strip()
        return FixtureBreedSource(path=Path(raw_path) if raw_path else None)
    raise ConfigurationError(f"unknown breed source mode: {mode!r}")


def load_settings() -> Settings:
    """Build settings from environment variables."""

    project_root = Path(__file__).resolve().parents[1]
    default_db_path = project_root / "pets.db"
    try:
        port = int(os.getenv("PETS_PORT", "8000"))
    except ValueError as exc:
        raise ConfigurationError(f"invalid PETS_PORT: {exc}") from exc
    log_level = os.getenv("PETS_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(f"invalid PETS_LOG_LEVEL: {log_level!r}")
    return Settings(
        breed_source=breed_source_from_env(),
        database_url=os.getenv("POSTGRES_URL", f"sqlite:///{default_db_path}"),
        allow_empty_catalog=_env_flag("PETS_ALLOW_EMPTY_CATALOG"),
        log_level=log_level,
        host=os.getenv("PETS_HOST", "127.0.0.1"),
        port=port,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings loaded from environment variables."""

    return load_settings()
