"""CLI entry point: sirve la API con uvicorn."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from tank_ingest_services.common.config import get_settings

from .main import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="API ESP32 Tanques (ingesta de leituras)")
    p.add_argument("--host", default=settings.host)
    p.add_argument("--port", type=int, default=settings.port)
    args = p.parse_args()

    logger.info("Servidor rodando na porta %s", args.port)
    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
