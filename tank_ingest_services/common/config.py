from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

from tank_ingest_services import __version__


def _default_env_file() -> str:
    # .env en la raíz del proyecto (junto a pyproject.toml).
    repo_root = Path(__file__).resolve().parents[2]
    return str(repo_root / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def normalize_database_url(url: str) -> str:
    """Acepta URLs estilo Heroku/Render (``postgres://``) además de las de SQLAlchemy."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


@dataclass(frozen=True)
class Settings:
    database_url: str

    db_ssl: bool = True
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 30
    db_create_schema: bool = True

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = field(default=("*",))
    app_version: str = __version__


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("TANQUES_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "").strip()
    if not database_url:
        raise ValueError("DATABASE_URL is not configured")

    cors_raw = os.getenv("CORS_ORIGINS", "*")
    cors_origins = tuple(o.strip() for o in cors_raw.split(",") if o.strip()) or ("*",)

    return Settings(
        database_url=normalize_database_url(database_url),
        db_ssl=_env_bool("DB_SSL", True),
        db_pool_size=_env_int("DB_POOL_SIZE", 5),
        db_max_overflow=_env_int("DB_MAX_OVERFLOW", 5),
        db_pool_timeout=_env_int("DB_POOL_TIMEOUT", 30),
        db_create_schema=_env_bool("DB_CREATE_SCHEMA", True),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 3000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=cors_origins,
        app_version=os.getenv("APP_VERSION", __version__),
    )
