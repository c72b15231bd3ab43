"""Fixtures compartidas: SQLite en memoria inyectado en create_app()."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from tank_ingest_services.common.config import Settings
from tank_ingest_services.ingest_api.infrastructure.persistence import LeiturasStorage, ensure_schema
from tank_ingest_services.ingest_api.main import create_app
from tank_ingest_services.ingest_api.schemas import LeituraIn


ESP_ID = "12345678"


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", app_version="9.9.9")


@pytest.fixture
def engine():
    # StaticPool: todas las conexiones (y threads del threadpool) ven la misma BD en memoria.
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def valid_payload() -> Dict[str, Any]:
    """Payload válido tal como lo envía el ESP32."""
    return {"esp_id": ESP_ID, "nivel_tanque1": 75.5, "nivel_tanque2": 40}


@pytest.fixture
def insert_at(engine):
    """Inserta una leitura con ``data_hora`` desplazada ``age`` hacia atrás."""

    def _insert(esp_id: str, age: timedelta, nivel1: float = 1.0, nivel2: float = 2.0):
        when = datetime.now(timezone.utc) - age
        storage = LeiturasStorage(engine, clock=lambda: when)
        return storage.insert_leitura(
            LeituraIn(esp_id=esp_id, nivel_tanque1=nivel1, nivel_tanque2=nivel2)
        )

    return _insert
