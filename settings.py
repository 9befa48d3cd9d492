"""Environment-driven settings (a local .env file is honoured)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    xml_max_size: int = 5 * 1024 * 1024
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: Tuple[str, ...] = ("*",)
    strip_namespaces: bool = True
    fetch_timeout: float = 10.0


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; tests call get_settings.cache_clear()."""
    load_dotenv()
    origins = tuple(o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip())
    return Settings(
        xml_max_size=int(os.getenv("XML_MAX_SIZE", "5242880")),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        cors_origins=origins or ("*",),
        strip_namespaces=_env_bool("STRIP_NAMESPACES", True),
        fetch_timeout=float(os.getenv("FETCH_TIMEOUT", "10")),
    )
