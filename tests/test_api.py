"""HTTP API end to end with in-memory SQLite and a mocked Radarr."""

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from media_relay.config import Config
from media_relay.container import build_container
from media_relay.db.database import make_engine
from media_relay.db.models import Base
from media_relay.db.seed import sync_from_config
from media_relay.main import create_app
from media_relay.utils.crypto import EncryptionService
from media_relay.utils.http_client import RobustHTTPClient


def radarr_handler(request):
    if request.url.path == "/api/v3/system/status":
        return httpx.Response(200, json={"version": "5.2.6"})
    if request.url.path == "/api/v3/movie" and request.method == "POST":
        return httpx.Response(201, json={"id": 1})
    if request.url.path == "/api/v3/movie":
        return httpx.Response(200, json=[{"tmdbId": 27205, "hasFile": True}])
    return httpx.Response(404)


@pytest.fixture
def app_setup(make_sender):
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    config = Config(
        security={"encryption_key": EncryptionService.generate_key()},
        monitoring={"enabled": False},
        approval={"mode": "manual"},
        services=[{"name": "radarr", "type": "radarr", "url": "http://radarr:7878", "api_key": "k"}],
    )
    http = RobustHTTPClient(max_retries=0, transport=httpx.MockTransport(radarr_handler))
    sender = make_sender()
    container = build_container(config, session_factory, http_client=http, sender=sender)
    sync_from_config(session_factory, config, container.encryption)
    return TestClient(create_app(container)), sender


def _create(client, **fields):
    body = {
        "contact": "+15550109999",
        "service_id": 1,
        "media_type": "movie",
        "title": "Inception",
        "year": 2010,
        "tmdb_id": 27205,
    }
    body.update(fields)
    return client.post("/api/requests", json=body)


def test_create_pending_request(app_setup):
    client, sender = app_setup

    response = _create(client)

    assert response.status_code == 200
    assert response.json()["status"] == "PENDING"
    listed = client.get("/api/requests", params={"status": "PENDING"}).json()
    assert len(listed) == 1
    assert listed[0]["contact"] == "******9999"
    assert sender.sent[0][0] == "+15550109999"


def test_approve_then_monitor(app_setup):
    client, sender = app_setup
    request_id = _create(client).json()["request_id"]

    approved = client.post(f"/api/requests/{request_id}/approve")
    assert approved.status_code == 200
    assert approved.json()["status"] == "SUBMITTED"

    run = client.post("/api/monitoring/run")
    assert run.json()["started"] is True

    detail = client.get(f"/api/requests/{request_id}").json()
    assert detail["status"] == "APPROVED"
    assert "is now available" in sender.sent[-1][1]


def test_approve_twice_is_bad_request(app_setup):
    client, _ = app_setup
    request_id = _create(client).json()["request_id"]
    client.post(f"/api/requests/{request_id}/reject", json={"reason": "duplicate"})

    response = client.post(f"/api/requests/{request_id}/approve")

    assert response.status_code == 400
    assert "PENDING or FAILED" in response.json()["detail"]


def test_reject_and_patch(app_setup):
    client, _ = app_setup
    request_id = _create(client).json()["request_id"]

    rejected = client.post(f"/api/requests/{request_id}/reject", json={})
    assert rejected.json()["status"] == "REJECTED"
    assert rejected.json()["admin_notes"] == "Request rejected by administrator"

    patched = client.patch(f"/api/requests/{request_id}", json={"admin_notes": "reviewed"})
    assert patched.json()["admin_notes"] == "reviewed"


def test_unknown_request_is_404(app_setup):
    client, _ = app_setup

    assert client.get("/api/requests/99").status_code == 404
    assert client.post("/api/requests/99/reject", json={}).status_code == 404


def test_unknown_service(app_setup):
    client, _ = app_setup

    response = _create(client, service_id=42)

    assert response.json()["status"] == "FAILED"
    assert response.json()["error_message"] == "Service configuration not found"


def test_diagnostics(app_setup):
    client, _ = app_setup

    data = client.get("/api/diagnostics").json()

    assert data["services"][0]["connected"] is True
    assert data["services"][0]["version"] == "5.2.6"
    assert data["monitoring"]["running"] is False
