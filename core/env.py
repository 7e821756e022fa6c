"""Environment loader helper to ensure .env is applied early."""

import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv

_ENV_LOADED = False

_TRUTHY = {"1", "true", "yes", "y", "on"}


def load_env() -> None:
    """Load .env once if available (no override)."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path, override=False)
    _ENV_LOADED = True


def getenv(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get env var after ensuring .env is loaded."""
    load_env()
    return os.getenv(key, default)


def getenv_bool(key: str, default: bool = False) -> bool:
    raw = getenv(key)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def getenv_int(key: str, default: int) -> int:
    raw = getenv(key)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def getenv_float(key: str, default: float) -> float:
    raw = getenv(key)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)
