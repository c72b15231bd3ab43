"""Storage de leituras sobre el pool de SQLAlchemy.

Una sentencia por operación dentro de ``engine.begin()``: el INSERT es
atómico y no hay escrituras parciales. Los errores del driver se propagan
al caller sin reintentos.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy import insert, select
from sqlalchemy.engine import Engine

from ...schemas import Leitura, LeituraIn
from .schema import leituras_tanques

logger = logging.getLogger(__name__)

RETENTION_WINDOW = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite devuelve datetimes naive; se guardaron en UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LeiturasStorage:
    """Acceso a ``leituras_tanques``.

    Args:
        engine: Engine compartido (pool del proceso)
        clock: Fuente de "ahora"; ``data_hora`` y la ventana de 24h salen de aquí
    """

    def __init__(self, engine: Engine, clock: Optional[Callable[[], datetime]] = None):
        self._engine = engine
        self._clock = clock or utcnow

    def insert_leitura(self, leitura: LeituraIn) -> Leitura:
        """Inserta una leitura; ``id`` y ``data_hora`` los asigna el servidor."""
        stmt = (
            insert(leituras_tanques)
            .values(
                esp_id=leitura.esp_id,
                nivel_tanque1=float(leitura.nivel_tanque1),
                nivel_tanque2=float(leitura.nivel_tanque2),
                data_hora=self._clock(),
            )
            .returning(leituras_tanques.c.id, leituras_tanques.c.data_hora)
        )
        with self._engine.begin() as conn:
            row = conn.execute(stmt).one()

        logger.debug("[leituras] inserted id=%s esp_id=%s", row.id, leitura.esp_id)
        return Leitura(
            id=int(row.id),
            esp_id=leitura.esp_id,
            nivel_tanque1=float(leitura.nivel_tanque1),
            nivel_tanque2=float(leitura.nivel_tanque2),
            data_hora=as_utc(row.data_hora),
        )

    def list_recent(self, esp_id: str, window: timedelta = RETENTION_WINDOW) -> List[Leitura]:
        """Leituras del dispositivo dentro de la ventana, más recientes primero."""
        since = self._clock() - window
        t = leituras_tanques
        stmt = (
            select(t.c.id, t.c.esp_id, t.c.nivel_tanque1, t.c.nivel_tanque2, t.c.data_hora)
            .where(t.c.esp_id == esp_id, t.c.data_hora >= since)
            # id desempata lecturas con el mismo timestamp
            .order_by(t.c.data_hora.desc(), t.c.id.desc())
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()

        return [
            Leitura(
                id=int(r.id),
                esp_id=str(r.esp_id),
                nivel_tanque1=float(r.nivel_tanque1),
                nivel_tanque2=float(r.nivel_tanque2),
                data_hora=as_utc(r.data_hora),
            )
            for r in rows
        ]
