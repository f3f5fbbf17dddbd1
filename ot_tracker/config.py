"""
Application Configuration.

Pydantic Settings model for the work-order tracker.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Collections / storage ---
    USERS_COLLECTION: str = "users"
    WORK_ORDERS_COLLECTION: str = "ordenes_trabajo"
    STORAGE_BUCKET: str = "evidence"
    EVIDENCE_PREFIX: str = "evidence"

    # --- Profile subscription ---
    SUBSCRIPTION_POLL_INTERVAL_S: float = 2.0

    # --- Home dashboard ---
    HOME_RECENT_LIMIT: int = 10

    # --- Reports ---
    EXPORT_DIR: str = "."
    EXPORT_DATE_FORMAT: str = "%d-%m-%Y"  # es-CL short date

    # --- Logging ---
    LOG_NAMESPACE: str = "ot_tracker"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "ot_tracker.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so the operator gets a hint before the first backend call fails.
        """
        _log = logging.getLogger("ot_tracker.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found - all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY.get_secret_value():
            _log.warning(
                "SUPABASE_URL / SUPABASE_ANON_KEY are empty - the backend "
                "is unreachable until they are configured."
            )

        return self


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern so the fast path never takes the lock.
    Prefer constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
