"""
Runtime settings for the response analyzer proxy.

Settings are read from environment variables:
- BACKEND_URL: base URL of the generation/storage/export backend
- BACKEND_TIMEOUT: seconds before an upstream call is abandoned (unset = wait forever)
- BACKEND_MAX_RETRIES: extra attempts for transient upstream failures (default 0)
- BACKEND_RETRY_BACKOFF: base delay in seconds for exponential backoff
- BACKEND_RETRY_MAX_DELAY: ceiling for a single backoff delay
- ANALYZER_LOG_LEVEL: logging level name
"""

import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Dict, Optional

DEFAULT_BACKEND_URL = "http://localhost:3001"


@dataclass(frozen=True)
class ProxySettings:
    """Upstream connection settings shared by every proxy route."""
    backend_url: str = DEFAULT_BACKEND_URL
    timeout: Optional[float] = None
    max_retries: int = 0
    retry_backoff: float = 0.5
    retry_max_delay: float = 8.0
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ProxySettings":
        env = os.environ if environ is None else environ

        timeout_raw = env.get("BACKEND_TIMEOUT", "").strip()
        return cls(
            backend_url=(env.get("BACKEND_URL") or DEFAULT_BACKEND_URL).rstrip("/"),
            timeout=_parse_float(timeout_raw, "BACKEND_TIMEOUT") if timeout_raw else None,
            max_retries=max(0, int(_parse_float(env.get("BACKEND_MAX_RETRIES", "0"), "BACKEND_MAX_RETRIES"))),
            retry_backoff=_parse_float(env.get("BACKEND_RETRY_BACKOFF", "0.5"), "BACKEND_RETRY_BACKOFF"),
            retry_max_delay=_parse_float(env.get("BACKEND_RETRY_MAX_DELAY", "8"), "BACKEND_RETRY_MAX_DELAY"),
            log_level=env.get("ANALYZER_LOG_LEVEL", "INFO"),
        )


def _parse_float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


@lru_cache
def get_settings() -> ProxySettings:
    """Return the process-wide settings (call ``get_settings.cache_clear()`` after changing env)."""
    return ProxySettings.from_env()
