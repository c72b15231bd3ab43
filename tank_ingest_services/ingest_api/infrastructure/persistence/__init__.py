"""Persistencia de leituras (SQLAlchemy Core)."""

from .leituras_storage import RETENTION_WINDOW, LeiturasStorage
from .schema import ensure_schema, leituras_tanques, metadata

__all__ = [
    "LeiturasStorage",
    "RETENTION_WINDOW",
    "ensure_schema",
    "leituras_tanques",
    "metadata",
]
