"""Definición de la tabla ``leituras_tanques`` y creación al arrancar.

No es un sistema de migraciones: solo crea la tabla si no existe.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, DateTime, Float, Index, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

leituras_tanques = Table(
    "leituras_tanques",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("esp_id", String(8), nullable=False),
    Column("nivel_tanque1", Float, nullable=False),
    Column("nivel_tanque2", Float, nullable=False),
    Column("data_hora", DateTime(timezone=True), nullable=False),
    Index("ix_leituras_tanques_esp_id_data_hora", "esp_id", "data_hora"),
)


def ensure_schema(engine: Engine) -> None:
    """Crea la tabla e índice si no existen. Seguro de llamar varias veces."""
    logger.info("[DB] Ensuring schema exists table=%s", leituras_tanques.name)
    metadata.create_all(engine, checkfirst=True)
