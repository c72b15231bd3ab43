from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Iterable, List, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from tank_ingest_services.common.config import Settings, get_settings
from tank_ingest_services.common.db import build_engine
from .endpoints import ROUTERS
from .errors import MESSAGES, ErrorKind, LeituraError
from .infrastructure.persistence import LeiturasStorage, ensure_schema

logger = logging.getLogger(__name__)


def available_routes(routers: Iterable[APIRouter] = ROUTERS) -> List[str]:
    """Rutas públicas como ``"METHOD /path"`` para el cuerpo del 404.

    Se leen de los routers y no de ``app.routes``: según la versión de
    FastAPI, los routers incluidos no se copian ahí como ``APIRoute``.
    """
    routes: List[str] = []
    for router in routers:
        for route in router.routes:
            if not isinstance(route, APIRoute) or not route.include_in_schema:
                continue
            path = route.path
            if router.prefix and not path.startswith(router.prefix):
                path = router.prefix + path
            for method in sorted(route.methods - {"HEAD"}):
                routes.append(f"{method} {path}")
    return routes


async def _leitura_error_handler(request: Request, exc: LeituraError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def _malformed_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # El único body declarado es Any: solo llega aquí con JSON inválido.
    logger.warning("[leituras] malformed request body path=%s", request.url.path)
    err = LeituraError(ErrorKind.MALFORMED_PAYLOAD)
    return JSONResponse(status_code=err.status_code, content=err.to_body())


async def _not_found_handler(request: Request, exc: StarletteHTTPException):
    # 405 también cuenta como ruta no encontrada: la combinación método+path no existe.
    if exc.status_code not in (404, 405):
        return await http_exception_handler(request, exc)
    return JSONResponse(
        status_code=404,
        content={
            "error": MESSAGES[ErrorKind.ROUTE_NOT_FOUND],
            "path": request.url.path,
            "method": request.method,
            "rotas_disponiveis": available_routes(),
        },
    )


async def _error_boundary(request: Request, call_next):
    """Última barrera para errores no manejados.

    Va como middleware dentro de CORS: la respuesta 500 lleva los headers
    CORS y la excepción no llega a ``ServerErrorMiddleware`` (sin traceback
    duplicado en uvicorn).
    """
    try:
        return await call_next(request)
    except Exception as exc:
        request.app.state.unhandled_errors += 1
        logger.error(
            "[app] Unhandled error method=%s path=%s err=%s total=%s",
            request.method,
            request.url.path,
            type(exc).__name__,
            request.app.state.unhandled_errors,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Erro interno do servidor"},
        )


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Construye la aplicación.

    El engine (pool) se crea una sola vez aquí y se comparte vía ``app.state``.
    Si se pasa un engine externo, la app no lo cierra al apagarse.
    """
    settings = settings or get_settings()
    owns_engine = engine is None
    engine = engine if engine is not None else build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.db_create_schema:
            try:
                ensure_schema(engine)
            except Exception:
                # La API arranca igual; /api/status reporta el estado de la BD.
                logger.exception("[startup] Schema check FAILED")
        logger.info("[startup] API ESP32 Tanques version=%s", settings.app_version)
        yield
        if owns_engine:
            engine.dispose()
            logger.info("[shutdown] Engine disposed")

    app = FastAPI(title="ESP32 Tanques API", version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.storage = LeiturasStorage(engine)
    app.state.unhandled_errors = 0

    # El último middleware agregado es el más externo: CORS envuelve al boundary.
    app.middleware("http")(_error_boundary)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in ROUTERS:
        app.include_router(router)

    app.add_exception_handler(LeituraError, _leitura_error_handler)
    app.add_exception_handler(RequestValidationError, _malformed_body_handler)
    app.add_exception_handler(StarletteHTTPException, _not_found_handler)

    return app
