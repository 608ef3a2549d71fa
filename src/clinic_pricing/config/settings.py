"""
Centralized settings and path configuration for the pricing engine.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


ENV_PREFIX = "CLINIC_PRICING_"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 4 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env(name: str) -> Optional[str]:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = _env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = _env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}")


@dataclass
class Settings:
    """Engine settings with sensible defaults."""

    # Project paths
    project_root: Path

    # CSV-backed price record store
    price_records_csv: Path

    # Scope identifier used for organization-wide default prices
    organization_scope: str = "organization-default"

    # Resolution cache
    cache_ttl_seconds: float = 300.0

    # Bulk resolution chunk size
    batch_size: int = 50

    # Suggestion heuristic
    suggestion_prefix_length: int = 3
    suggestion_sample_limit: int = 10

    # Per-call bound on store round trips
    store_timeout_seconds: float = 10.0

    log_level: str = "INFO"

    def __post_init__(self):
        if self.cache_ttl_seconds <= 0:
            raise ValueError("cache_ttl_seconds must be positive")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.suggestion_prefix_length < 1:
            raise ValueError("suggestion_prefix_length must be at least 1")
        if self.suggestion_sample_limit < 1:
            raise ValueError("suggestion_sample_limit must be at least 1")
        if self.store_timeout_seconds <= 0:
            raise ValueError("store_timeout_seconds must be positive")
        if not self.organization_scope:
            raise ValueError("organization_scope must not be empty")

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        records_csv = _env("RECORDS_CSV")

        return cls(
            project_root=root,
            price_records_csv=Path(records_csv) if records_csv else root / 'data' / 'price_records.csv',
            organization_scope=_env("ORG_SCOPE") or "organization-default",
            cache_ttl_seconds=_env_float("CACHE_TTL", 300.0),
            batch_size=_env_int("BATCH_SIZE", 50),
            suggestion_prefix_length=_env_int("PREFIX_LENGTH", 3),
            suggestion_sample_limit=_env_int("SAMPLE_LIMIT", 10),
            store_timeout_seconds=_env_float("STORE_TIMEOUT", 10.0),
            log_level=(_env("LOG_LEVEL") or "INFO").upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
