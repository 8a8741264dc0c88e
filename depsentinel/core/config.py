"""Scanner settings, overridable through DEPSENTINEL_* environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_OSV_URL = "https://api.osv.dev"


@dataclass(frozen=True)
class ScannerSettings:
    """Tunables for the OSV query phase."""

    osv_url: str = DEFAULT_OSV_URL
    timeout: float = 30.0  # seconds, per request
    max_retries: int = 3
    retry_base_delay: float = 1.0  # seconds
    batch_size: int = 10
    batch_delay: float = 0.1  # seconds between batches
    max_pages: int = 10

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self.max_pages}")

    @classmethod
    def from_env(cls) -> ScannerSettings:
        """Build settings from the environment, falling back to the defaults."""
        defaults = cls()
        return cls(
            osv_url=os.environ.get("DEPSENTINEL_OSV_URL", defaults.osv_url).rstrip("/"),
            timeout=_env_float("DEPSENTINEL_TIMEOUT", defaults.timeout),
            max_retries=_env_int("DEPSENTINEL_MAX_RETRIES", defaults.max_retries),
            retry_base_delay=_env_float(
                "DEPSENTINEL_RETRY_BASE_DELAY", defaults.retry_base_delay
            ),
            batch_size=_env_int("DEPSENTINEL_BATCH_SIZE", defaults.batch_size),
            batch_delay=_env_float("DEPSENTINEL_BATCH_DELAY", defaults.batch_delay),
            max_pages=_env_int("DEPSENTINEL_MAX_PAGES", defaults.max_pages),
        )


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None
