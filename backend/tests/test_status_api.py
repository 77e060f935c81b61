from fastapi.testclient import TestClient

import app.main as main_module
from app.main import app
from app.models import StatusRecord
from app.relay import Relay
from app.services import ConfigurationMissingError, UpstreamUnreachableError


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


def _install_relay(monkeypatch, query, clock=None, ttl_ms=15000) -> Relay:
    relay = Relay(query, ttl_ms=ttl_ms, clock=clock or FakeClock())
    monkeypatch.setattr(main_module, "relay", relay)
    return relay


def _record() -> StatusRecord:
    return StatusRecord(
        name="Iron Front",
        map="Everon",
        numplayers=12,
        maxplayers=64,
        ping=40,
        connect="1.2.3.4:2001",
        password=False,
        queryPort=17777,
        version="1.2.0.76",
    )


def test_health_reports_ok():
    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["service"] == "tfb-arma-status-api"
    assert isinstance(payload["time"], int)


def test_status_success_payload_and_cache_header(monkeypatch):
    calls = []

    async def query():
        calls.append(1)
        return _record()

    clock = FakeClock()
    _install_relay(monkeypatch, query, clock=clock)
    client = TestClient(app)

    first = client.get("/api/status")
    clock.now += 5000
    second = client.get("/api/status")

    assert first.status_code == 200
    assert first.headers["cache-control"] == "public, max-age=15"
    assert second.headers["cache-control"] == "public, max-age=10"
    assert len(calls) == 1

    payload = second.json()
    assert payload == {
        "ok": True,
        "timestamp": 1_700_000_000_000,
        "state": {
            "name": "Iron Front",
            "map": "Everon",
            "password": False,
            "numplayers": 12,
            "maxplayers": 64,
            "ping": 40.0,
            "connect": "1.2.3.4:2001",
            "queryPort": 17777,
            "version": "1.2.0.76",
        },
    }


def test_arma_alias_serves_same_cache(monkeypatch):
    calls = []

    async def query():
        calls.append(1)
        return _record()

    _install_relay(monkeypatch, query)
    client = TestClient(app)

    assert client.get("/api/status").json()["ok"] is True
    assert client.get("/api/arma").json()["ok"] is True
    assert len(calls) == 1


def test_unreachable_upstream_is_payload_error(monkeypatch):
    calls = []

    async def query():
        calls.append(1)
        raise UpstreamUnreachableError("1.2.3.4:17777 unreachable")

    _install_relay(monkeypatch, query)
    client = TestClient(app)

    for _ in range(3):
        response = client.get("/api/status")
        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        payload = response.json()
        assert payload["ok"] is False
        assert payload["error"] == "UpstreamUnreachable"
        assert payload["timestamp"] == 1_700_000_000_000
    assert len(calls) == 3


def test_missing_host_is_reported_not_raised(monkeypatch):
    async def query():
        raise ConfigurationMissingError("Missing ARMA_HOST env var")

    _install_relay(monkeypatch, query)
    client = TestClient(app)
    response = client.get("/api/status")

    assert response.status_code == 200
    assert response.json()["error"] == "ConfigurationMissing"


def test_status_includes_raw_when_present(monkeypatch):
    async def query():
        return _record().model_copy(update={"raw": {"bot_count": 0}})

    _install_relay(monkeypatch, query)
    client = TestClient(app)
    state = client.get("/api/status").json()["state"]

    assert state["raw"] == {"bot_count": 0}


def test_status_allows_cross_origin_get(monkeypatch):
    async def query():
        return _record()

    _install_relay(monkeypatch, query)
    client = TestClient(app)
    response = client.get("/api/status", headers={"Origin": "https://example.com"})

    assert response.status_code == 200
    assert response.headers.get("access-control-allow-origin") in {"*", "https://example.com"}
