"""Módulo de endpoints HTTP.

Contiene los endpoints de la API de leituras organizados por función.
"""

from .health import router as health_router
from .leituras import router as leituras_router

# Orden de registro en la app; también alimenta la lista de rutas del 404.
ROUTERS = [health_router, leituras_router]

__all__ = [
    "ROUTERS",
    "health_router",
    "leituras_router",
]
