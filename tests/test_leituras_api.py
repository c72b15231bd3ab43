"""Tests de los endpoints de leituras.

Ejecutar:
    pytest tests/test_leituras_api.py -v
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from tank_ingest_services.ingest_api.infrastructure.persistence import leituras_tanques

ESP_ID = "12345678"


def _count_rows(engine) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(leituras_tanques)).scalar_one()


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# =============================================================================
# POST /api/leituras
# =============================================================================

class TestCreateLeitura:

    def test_valid_payload_returns_201(self, client, valid_payload):
        resp = client.post("/api/leituras", json=valid_payload)

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert isinstance(data["id"], int)
        assert data["esp_id"] == ESP_ID
        assert data["nivel_tanque1"] == 75.5
        assert data["nivel_tanque2"] == 40.0
        assert data["data_hora"]

    def test_numeric_strings_are_coerced(self, client):
        resp = client.post(
            "/api/leituras",
            json={"esp_id": ESP_ID, "nivel_tanque1": "12.5", "nivel_tanque2": "3"},
        )

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["nivel_tanque1"] == 12.5
        assert data["nivel_tanque2"] == 3.0

    def test_zero_levels_are_accepted(self, client):
        resp = client.post(
            "/api/leituras",
            json={"esp_id": ESP_ID, "nivel_tanque1": 0, "nivel_tanque2": 0},
        )

        assert resp.status_code == 201
        assert resp.json()["data"]["nivel_tanque1"] == 0.0

    def test_ids_strictly_increase(self, client, valid_payload):
        ids = [client.post("/api/leituras", json=valid_payload).json()["data"]["id"] for _ in range(5)]

        assert all(b > a for a, b in zip(ids, ids[1:]))

    def test_client_supplied_data_hora_is_ignored(self, client, valid_payload):
        payload = dict(valid_payload, data_hora="2001-01-01T00:00:00Z")

        resp = client.post("/api/leituras", json=payload)

        assert resp.status_code == 201
        assert not resp.json()["data"]["data_hora"].startswith("2001")

    def test_one_row_per_call(self, client, engine, valid_payload):
        client.post("/api/leituras", json=valid_payload)
        client.post("/api/leituras", json=valid_payload)

        assert _count_rows(engine) == 2

    def test_missing_field_returns_400(self, client, engine):
        resp = client.post("/api/leituras", json={"esp_id": ESP_ID, "nivel_tanque1": 10})

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "MissingField"
        assert body["missing"] == ["nivel_tanque2"]
        assert "Dados incompletos" in body["error"]
        assert _count_rows(engine) == 0

    def test_seven_digit_esp_id_returns_400(self, client):
        resp = client.post(
            "/api/leituras",
            json={"esp_id": "1234567", "nivel_tanque1": 1, "nivel_tanque2": 2},
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == "InvalidEspId"

    def test_non_numeric_level_returns_400(self, client):
        resp = client.post(
            "/api/leituras",
            json={"esp_id": ESP_ID, "nivel_tanque1": "cheio", "nivel_tanque2": 2},
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == "InvalidNumber"

    def test_float_only_syntax_is_not_a_number(self, client, engine):
        """Strings que float() acepta pero que no son números JSON."""
        resp = client.post(
            "/api/leituras",
            json={"esp_id": ESP_ID, "nivel_tanque1": "1_000", "nivel_tanque2": "１２"},
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == "InvalidNumber"
        assert _count_rows(engine) == 0

    def test_data_hora_is_timezone_aware(self, client, valid_payload):
        resp = client.post("/api/leituras", json=valid_payload)

        data_hora = _parse_ts(resp.json()["data"]["data_hora"])
        assert data_hora.utcoffset() == timedelta(0)

    def test_empty_body_is_missing_fields(self, client):
        resp = client.post("/api/leituras")

        assert resp.status_code == 400
        assert resp.json()["code"] == "MissingField"

    def test_invalid_json_returns_400(self, client):
        resp = client.post(
            "/api/leituras",
            content=b'{"esp_id": "12345678",',
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == "MalformedPayload"

    def test_persistence_failure_returns_500_with_driver_message(self, app, client, valid_payload):
        storage = MagicMock()
        storage.insert_leitura.side_effect = OperationalError("INSERT", {}, Exception("connection refused"))
        app.state.storage = storage

        resp = client.post("/api/leituras", json=valid_payload)

        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == "PersistenceFailure"
        assert body["error"] == "Erro ao processar leitura"
        assert "connection refused" in body["details"]
        storage.insert_leitura.assert_called_once()


# =============================================================================
# GET /api/leituras/{esp_id}
# =============================================================================

class TestListLeituras:

    def test_no_rows_returns_empty_list(self, client):
        resp = client.get(f"/api/leituras/{ESP_ID}")

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["count"] == 0
        assert body["data"] == []
        assert body["esp_id"] == ESP_ID
        assert body["periodo"] == "últimas 24 horas"

    def test_most_recent_first(self, client):
        created = []
        for nivel in (1, 2, 3):
            resp = client.post(
                "/api/leituras",
                json={"esp_id": ESP_ID, "nivel_tanque1": nivel, "nivel_tanque2": nivel},
            )
            created.append(resp.json()["data"]["id"])

        body = client.get(f"/api/leituras/{ESP_ID}").json()

        assert body["count"] == 3
        assert [r["id"] for r in body["data"]] == list(reversed(created))
        assert [r["nivel_tanque1"] for r in body["data"]] == [3.0, 2.0, 1.0]

    def test_orders_by_data_hora_not_insertion(self, client, insert_at):
        older = insert_at(ESP_ID, timedelta(hours=5))
        newer = insert_at(ESP_ID, timedelta(hours=1))
        oldest = insert_at(ESP_ID, timedelta(hours=10))

        body = client.get(f"/api/leituras/{ESP_ID}").json()

        assert [r["id"] for r in body["data"]] == [newer.id, older.id, oldest.id]

    def test_readings_older_than_24h_are_excluded(self, client, insert_at):
        insert_at(ESP_ID, timedelta(hours=25))
        insert_at(ESP_ID, timedelta(days=3))
        recent = insert_at(ESP_ID, timedelta(hours=23))

        body = client.get(f"/api/leituras/{ESP_ID}").json()

        assert body["count"] == 1
        assert body["data"][0]["id"] == recent.id

    def test_listed_data_hora_is_utc(self, client, insert_at):
        saved = insert_at(ESP_ID, timedelta(hours=2))

        body = client.get(f"/api/leituras/{ESP_ID}").json()

        assert saved.data_hora.tzinfo is not None
        listed = _parse_ts(body["data"][0]["data_hora"])
        assert listed.utcoffset() == timedelta(0)
        assert listed == saved.data_hora

    def test_only_requested_device(self, client, insert_at):
        insert_at("87654321", timedelta(minutes=5))
        mine = insert_at(ESP_ID, timedelta(minutes=5))

        body = client.get(f"/api/leituras/{ESP_ID}").json()

        assert [r["id"] for r in body["data"]] == [mine.id]
        assert all(r["esp_id"] == ESP_ID for r in body["data"])

    def test_invalid_esp_id_returns_400(self, client):
        resp = client.get("/api/leituras/1234567")

        assert resp.status_code == 400
        assert resp.json()["code"] == "InvalidEspId"

    def test_query_failure_returns_500(self, app, client):
        storage = MagicMock()
        storage.list_recent.side_effect = RuntimeError("relation does not exist")
        app.state.storage = storage

        resp = client.get(f"/api/leituras/{ESP_ID}")

        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == "QueryFailure"
        assert body["details"] == "relation does not exist"

    def test_service_keeps_working_after_db_error(self, app, client, valid_payload):
        real_storage = app.state.storage
        broken = MagicMock()
        broken.insert_leitura.side_effect = RuntimeError("boom")
        app.state.storage = broken
        assert client.post("/api/leituras", json=valid_payload).status_code == 500

        app.state.storage = real_storage
        assert client.post("/api/leituras", json=valid_payload).status_code == 201
