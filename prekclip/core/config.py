"""
Configuration helpers for the PrekClip backend.

Routers/services read everything through ``get_settings()`` instead of
fetching ``os.environ`` directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    storage_backend: str
    data_file: Path
    database_url: str
    uploads_dir: Path
    uploads_url_prefix: str
    max_upload_bytes: int
    avatar_max_size: int
    session_ttl_seconds: int
    bootstrap_username: str
    bootstrap_password: str
    cors_origins: tuple[str, ...]
    log_level: str
    log_file: str
    auth_rate_limit: int
    auth_rate_window_seconds: int
    trusted_proxies: tuple[str, ...]


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _path(value: str | None, default: str) -> Path:
        raw = Path(value or default)
        return raw if raw.is_absolute() else (PROJECT_ROOT / raw)

    origins = os.getenv("CORS_ORIGINS", "*")
    proxies = os.getenv("TRUSTED_PROXIES", "")
    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        storage_backend=(os.getenv("STORAGE_BACKEND") or "json").strip().lower(),
        data_file=_path(os.getenv("DATA_FILE"), "database.json"),
        database_url=os.getenv("DATABASE_URL", ""),
        uploads_dir=_path(os.getenv("UPLOADS_DIR"), "uploads"),
        uploads_url_prefix="/" + os.getenv("UPLOADS_URL_PREFIX", "/uploads").strip("/"),
        max_upload_bytes=_int(os.getenv("MAX_UPLOAD_BYTES", ""), 50 * 1024 * 1024),
        avatar_max_size=_int(os.getenv("AVATAR_MAX_SIZE", "512"), 512),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "604800"), 604800),
        bootstrap_username=(os.getenv("BOOTSTRAP_USERNAME") or "prekclip").strip(),
        bootstrap_password=os.getenv("BOOTSTRAP_PASSWORD", ""),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        log_file=os.getenv("LOG_FILE", ""),
        auth_rate_limit=_int(os.getenv("AUTH_RATE_LIMIT", "20"), 20),
        auth_rate_window_seconds=_int(os.getenv("AUTH_RATE_WINDOW_SECONDS", "60"), 60),
        trusted_proxies=tuple(p.strip() for p in proxies.split(",") if p.strip()),
    )
