"""Endpoints de leituras: ingesta desde el ESP32 y consulta de las últimas 24h."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from ..errors import ErrorKind, PersistenceFailure, QueryFailure, ValidationFailure
from ..infrastructure.persistence import LeiturasStorage
from ..schemas import LeituraCreated, LeituraIn, LeiturasResult
from ..validation import missing_fields, parse_level, validate_esp_id, validate_reading_payload

router = APIRouter(prefix="/api", tags=["leituras"])
logger = logging.getLogger(__name__)

PERIODO = "últimas 24 horas"


def get_storage(request: Request) -> LeiturasStorage:
    return request.app.state.storage


@router.post("/leituras", response_model=LeituraCreated, status_code=201)
def create_leitura(
    payload: Any = Body(default=None),
    storage: LeiturasStorage = Depends(get_storage),
):
    """Recibe una leitura del ESP32 y la persiste.

    ``id`` y ``data_hora`` los genera el servidor; los niveles se devuelven
    como float.
    """
    kind = validate_reading_payload(payload)
    if kind is not None:
        missing = missing_fields(payload) if kind is ErrorKind.MISSING_FIELD else None
        logger.warning("[leituras] payload rejected code=%s missing=%s", kind.value, missing)
        raise ValidationFailure(kind, missing=missing)

    leitura = LeituraIn(
        esp_id=payload["esp_id"],
        nivel_tanque1=parse_level(payload["nivel_tanque1"]),
        nivel_tanque2=parse_level(payload["nivel_tanque2"]),
    )

    try:
        saved = storage.insert_leitura(leitura)
    except Exception as e:
        logger.exception("[leituras] DB error inserting esp_id=%s err=%s", leitura.esp_id, type(e).__name__)
        raise PersistenceFailure(str(e)) from e

    logger.info("[leituras] stored id=%s esp_id=%s", saved.id, saved.esp_id)
    return LeituraCreated(data=saved)


@router.get("/leituras/{esp_id}", response_model=LeiturasResult)
def list_leituras(esp_id: str, storage: LeiturasStorage = Depends(get_storage)):
    """Leituras del dispositivo en las últimas 24 horas, más recientes primero."""
    if not validate_esp_id(esp_id):
        logger.warning("[leituras] invalid esp_id in path")
        raise ValidationFailure(ErrorKind.INVALID_ESP_ID)

    try:
        rows = storage.list_recent(esp_id)
    except Exception as e:
        logger.exception("[leituras] DB error querying esp_id=%s err=%s", esp_id, type(e).__name__)
        raise QueryFailure(str(e)) from e

    return LeiturasResult(count=len(rows), esp_id=esp_id, periodo=PERIODO, data=rows)
