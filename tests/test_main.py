import uuid
from unittest.mock import AsyncMock

from villa.core.settings import settings
from villa.main import MEMORY_DEGRADED_BYTES, overall_status, resolve_correlation_id


def test_read_main(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == settings.project_name
    assert data["version"] == settings.version
    assert data["docs"] == "/docs"
    assert data["redoc"] == "/redoc"
    assert data["status"] == "operational"
    assert data["api_prefix"] == settings.prefix
    assert data["features"] == ["auth", "profile", "posts", "users", "islanders"]


def test_health_check_healthy_response(client, container, monkeypatch):
    monkeypatch.setattr(container.store, "ping", AsyncMock(return_value=True))

    request_id = str(uuid.uuid4())
    response = client.get("/health", headers={"X-Request-ID": request_id})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["dependencies"]["document_store"] == "connected"
    assert data["correlation_id"] == request_id
    assert response.headers["X-Correlation-ID"] == request_id


def test_health_check_store_unreachable(client, container, monkeypatch):
    monkeypatch.setattr(container.store, "ping", AsyncMock(return_value=False))

    response = client.get("/health")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["dependencies"]["document_store"] == "unreachable"


def test_invalid_request_id_is_regenerated(client):
    response = client.get("/", headers={"X-Request-ID": "not-a-uuid"})

    correlation_id = response.headers["X-Correlation-ID"]
    assert correlation_id != "not-a-uuid"
    assert uuid.UUID(correlation_id)


def test_error_response_carries_correlation_id(client):
    request_id = str(uuid.uuid4())
    response = client.get(
        f"{settings.prefix}/profile", headers={"X-Request-ID": request_id}
    )

    assert response.status_code == 401
    body = response.json()
    assert body["error"] is True
    assert body["correlation_id"] == request_id
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_metrics_exposed(client):
    client.get(f"{settings.prefix}/islanders")

    response = client.get("/metrics/")

    assert response.status_code == 200
    assert "villa_store_operations_total" in response.text


def test_overall_status():
    assert overall_status(True, 100) == "healthy"
    assert overall_status(True, MEMORY_DEGRADED_BYTES + 1) == "degraded"
    assert overall_status(False, 100) == "unhealthy"


def test_resolve_correlation_id():
    request_id = str(uuid.uuid4())

    assert resolve_correlation_id(request_id) == (request_id, "client")
    assert resolve_correlation_id(None)[1] == "generated"
    assert resolve_correlation_id("junk")[1] == "regenerated"
