"""Environment-based configuration for the API service."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


class Settings:
    """API configuration loaded from environment variables."""

    def __init__(self):
        self.host = os.getenv("TD_API_HOST", "0.0.0.0")
        self.port = int(os.getenv("TD_API_PORT", "8000"))
        self.db_path = os.getenv(
            "TD_DATABASE_PATH",
            str(Path.home() / ".td-commission-engine" / "transactions.db"),
        )
        self.debug = os.getenv("TD_ENGINE_ENV", "production") != "production"

        # CORS, comma separated
        origins = os.getenv("TD_ALLOWED_ORIGINS", "")
        self.allowed_origins = (
            [o.strip() for o in origins.split(",") if o.strip()] if origins else list(DEFAULT_ORIGINS)
        )


_settings = None


def _get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
        logger.debug(f"Loaded settings (db_path={_settings.db_path})")
    return _settings


class _SettingsProxy:
    """Lazy proxy so settings aren't loaded until first access."""

    def __getattr__(self, name):
        return getattr(_get_settings(), name)


settings = _SettingsProxy()
