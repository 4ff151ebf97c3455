"""
Tests for the HTTP API.

The SCL-90 service runs against the in-memory repository from conftest.
"""

import inspect

from fastapi import status

from tests.conftest import items


def test_root(client):
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "operational"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"] == {"api": True, "database": True}
    assert "X-Request-ID" in response.headers
    assert "X-Processing-Time-Ms" in response.headers


def test_health_degraded_without_database(client, monkeypatch):
    import main

    monkeypatch.setattr(main, "ping", lambda: False)

    assert client.get("/health").json()["status"] == "degraded"


def test_health_route_runs_in_threadpool():
    import main

    route = next(r for r in main.app.routes if getattr(r, "path", None) == "/health")

    assert not inspect.iscoroutinefunction(route.endpoint)


class TestReference:
    def test_tables(self, client):
        body = client.get("/api/v1/scl90/baremos").json()

        codes = {d["codigo"]: d for d in body["dimensiones"]}
        assert len(codes) == 10
        assert codes["ADI"]["puntuable"] is False
        assert len(codes["SOM"]["items"]) == 12
        assert body["baremos"]["masculino"]["SOM"] == {"pc50": 0.17, "pc85": 0.67}
        assert set(body["baremos"]) == {"masculino", "femenino"}


class TestGetScl90:
    def test_existing_assessment(self, client, repository):
        repository.assessments["ord-1"] = {"orden_id": "ord-1", "item1": 2}

        body = client.get("/api/v1/scl90/ord-1").json()

        assert body["success"] is True
        assert body["data"]["item1"] == 2
        assert body["paciente"] is None

    def test_order_without_assessment(self, client, repository):
        repository.orders["ord-2"] = {"numeroId": "99", "primerNombre": "LUIS"}

        body = client.get("/api/v1/scl90/ord-2").json()

        assert body["data"] is None
        assert body["paciente"]["numero_id"] == "99"
        assert body["paciente"]["primer_nombre"] == "LUIS"

    def test_unknown_order(self, client):
        response = client.get("/api/v1/scl90/missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        body = response.json()
        assert body["error"] == "HTTP_404"
        assert body["message"] == "Orden no encontrada"
        assert body["request_id"] == response.headers["X-Request-ID"]


class TestSaveScl90:
    def test_insert_and_update(self, client, repository):
        payload = {"orden_id": "ord-1", "numero_id": "7", **items(2)}

        first = client.post("/api/v1/scl90", json=payload)
        second = client.post("/api/v1/scl90", json={**payload, "item1": "4"})

        assert first.status_code == status.HTTP_200_OK
        assert first.json()["operacion"] == "INSERT"
        assert second.json()["operacion"] == "UPDATE"
        data = second.json()["data"]
        assert data["item1"] == 4
        assert data["resultado"]["ISP"] == 90
        assert data["genero"] == "masculino"

    def test_requires_orden_id(self, client):
        response = client.post("/api/v1/scl90", json=items(1))

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["request_id"] == response.headers["X-Request-ID"]
        assert any(e["loc"][-1] == "orden_id" for e in body["details"]["errors"])

    def test_rejects_unknown_items(self, client):
        response = client.post("/api/v1/scl90", json={"orden_id": "ord-1", "item91": 1})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["message"] == "Request validation failed"
        assert body["details"]["errors"]


class TestCalificar:
    def test_scores_assessment(self, client, repository):
        som_items = {"item1": "1", "item4": "1"}
        repository.assessments["ord-1"] = {"orden_id": "ord-1", "numero_id": "5", **som_items}
        repository.intake_genders["5"] = "Hombre"

        response = client.post("/api/v1/scl90/ord-1/calificar")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["orden_id"] == "ord-1"
        assert body["genero"] == "masculino"
        assert body["genero_por_defecto"] is False
        assert body["resultado"]["SOM"] == 0.17
        assert body["resultado"]["ISP"] == 2
        assert body["interpretacion"]["SOM"] == "MEDIO"
        assert body["baremos"]["SOM"] == {"pc50": 0.17, "pc85": 0.67}
        assert repository.assessments["ord-1"]["interpretacion"]["SOM"] == "MEDIO"

    def test_gender_fallback_is_reported(self, client, repository):
        repository.assessments["ord-1"] = {"orden_id": "ord-1", "numero_id": "5"}
        repository.intake_genders["5"] = "Otro"

        body = client.post("/api/v1/scl90/ord-1/calificar").json()

        assert body["genero"] == "masculino"
        assert body["genero_por_defecto"] is True
        assert body["resultado"]["IGSP"] == 0
        assert body["resultado"]["PSDI"] == 0

    def test_missing_assessment(self, client):
        response = client.post("/api/v1/scl90/ord-x/calificar")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "Prueba SCL-90 no encontrada"
