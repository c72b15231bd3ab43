"""Status, health and liveness endpoints."""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from tank_ingest_services.common.db import check_connection, get_engine
from ..schemas import DatabaseStatus, Liveness, RootStatus

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=RootStatus)
def root(request: Request):
    return RootStatus(
        message="API ESP32 Tanques está funcionando!",
        status="online",
        version=request.app.version,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/health", response_model=Liveness)
def health(request: Request):
    """Liveness probe — no toca la BD; expone el contador de errores no manejados."""
    return Liveness(status="ok", unhandled_errors=request.app.state.unhandled_errors)


@router.get("/api/status", response_model=DatabaseStatus)
def database_status(engine: Engine = Depends(get_engine)):
    """Readiness probe — verifica conectividad con ``SELECT 1``."""
    try:
        check_connection(engine)
    except Exception as e:
        logger.exception("[DB] Health check failed")
        return JSONResponse(status_code=500, content={"database": "erro", "error": str(e)})

    return DatabaseStatus(database="conectado", timestamp=datetime.now(timezone.utc))
