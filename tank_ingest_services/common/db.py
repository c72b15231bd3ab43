from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from .config import Settings


logger = logging.getLogger(__name__)


def build_engine_kwargs(settings: Settings) -> Dict[str, Any]:
    url = make_url(settings.database_url)
    kwargs: Dict[str, Any] = {"pool_pre_ping": True, "future": True}

    # SQLite usa sus propios pools (SingletonThreadPool / StaticPool) y no acepta tamaño.
    if url.get_backend_name() == "sqlite":
        return kwargs

    kwargs.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=300,
    )
    if url.get_backend_name() == "postgresql" and settings.db_ssl:
        # SSL sin verificar certificado, como en los Postgres gestionados (Render/Heroku).
        kwargs["connect_args"] = {"sslmode": "require"}
    return kwargs


def build_engine(settings: Settings) -> Engine:
    url = make_url(settings.database_url)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Crear engine backend=%s host=%s port=%s db=%s pool_size=%s",
        url.get_backend_name(),
        url.host,
        url.port,
        url.database,
        settings.db_pool_size,
    )
    return create_engine(url, **build_engine_kwargs(settings))


def check_connection(engine: Engine) -> None:
    """Ejecuta ``SELECT 1``; propaga la excepción del driver si la BD no responde."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def get_engine(request: Request) -> Engine:
    # El engine vive en app.state; se crea una sola vez en create_app().
    return request.app.state.engine
