from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from railreserve.db.repositories import StorageBackend, get_data_dir, get_storage_backend


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    storage_backend: StorageBackend = StorageBackend.MEMORY
    data_dir: Path = Path("data")
    lock_timeout: float = 2.0
    lock_retries: int = 3
    log_level: str = "INFO"
    activity_log: Path | None = None


def load_settings() -> Settings:
    activity_log = os.getenv("RAILRESERVE_ACTIVITY_LOG", "").strip()
    return Settings(
        storage_backend=get_storage_backend(),
        data_dir=get_data_dir(),
        lock_timeout=_float_env("RAILRESERVE_LOCK_TIMEOUT", 2.0),
        lock_retries=_int_env("RAILRESERVE_LOCK_RETRIES", 3),
        log_level=os.getenv("RAILRESERVE_LOG_LEVEL", "INFO").strip().upper(),
        activity_log=Path(activity_log) if activity_log else None,
    )
