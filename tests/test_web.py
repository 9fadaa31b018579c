"""Integration tests for the web dashboard endpoints."""

import pytest
from fastapi.testclient import TestClient

from signal_overlay.config import Config
from signal_overlay.models import SIGNAL_TIMING
from signal_overlay.overlay import OverlaySession
from signal_overlay.web import DashboardAnnouncer, WebDashboardServer, local_ipv4_addresses
from signal_overlay.web import mdns


@pytest.fixture
def server():
    session = OverlaySession(tick_interval=0.05)
    return WebDashboardServer(session, register_mdns=False)


@pytest.fixture
def client(server):
    """Test client running the app lifespan (session start/stop)."""
    with TestClient(server.app) as test_client:
        yield test_client


def receive_until(ws, predicate, limit=200):
    for _ in range(limit):
        message = ws.receive_json()
        if predicate(message):
            return message
    raise AssertionError("expected message never arrived")


class TestRestEndpoints:

    def test_dashboard_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Signal Overlay" in response.text

    def test_timing(self, client):
        response = client.get("/api/timing")
        assert response.json() == SIGNAL_TIMING.to_dict()

    def test_signals_after_startup(self, client):
        data = client.get("/api/signals").json()

        assert data["generation"] == 1
        assert [s["id"] for s in data["signals"]] == [
            "demo_signal_1", "demo_signal_2", "demo_signal_3", "demo_signal_4",
        ]
        assert data["signals"][0]["lat"] == pytest.approx(Config.FALLBACK_ANCHOR.lat + 0.001)

    def test_reseed_bumps_generation(self, client):
        response = client.post("/api/reseed")

        assert response.status_code == 200
        assert response.json()["signal_count"] == 4
        assert response.json()["generation"] == 2
        assert client.get("/api/signals").json()["generation"] == 2


class TestLifespan:

    def test_session_stopped_on_shutdown(self, server):
        with TestClient(server.app):
            assert server.session.running
            assert server.session.scheduler.is_running

        assert not server.session.running
        assert server.session.registry.is_empty
        assert not server.session.event_bus.is_running


class TestWebSocket:

    def test_config_then_snapshot(self, client):
        with client.websocket_connect("/ws") as ws:
            config = ws.receive_json()
            assert config["type"] == "config"
            assert config["timing"] == SIGNAL_TIMING.to_dict()
            assert config["anchor"] == {
                "lat": Config.FALLBACK_ANCHOR.lat,
                "lng": Config.FALLBACK_ANCHOR.lng,
            }

            assert ws.receive_json()["type"] == "snapshot"

    def test_streams_ticking_markers(self, client):
        with client.websocket_connect("/ws") as ws:
            snapshot = receive_until(
                ws, lambda m: m["type"] == "snapshot" and m["tick"] >= 1 and len(m["markers"]) == 4
            )

        marker = snapshot["markers"][0]
        assert marker["id"] == "demo_signal_1"
        assert marker["countdown"] == 22 - snapshot["tick"]
        assert set(marker) >= {"color", "icon", "urgent", "blinking", "walk_dot"}

    def test_reseed_message_starts_new_generation(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "reseed"})
            snapshot = receive_until(
                ws, lambda m: m["type"] == "snapshot" and m["generation"] == 2
            )

        assert len(snapshot["markers"]) == 4

    def test_unknown_messages_ignored(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("not json")
            ws.send_json({"type": "ping"})
            ws.send_json(["odd"])
            assert receive_until(ws, lambda m: m["type"] == "snapshot")

        assert client.get("/api/signals").json()["generation"] == 1


class TestMdns:

    def test_local_addresses_exclude_loopback(self):
        addresses = local_ipv4_addresses()

        assert all(not a.startswith("127.") for a in addresses)
        assert len(addresses) == len(set(addresses))

    def test_announcer_without_address_skips_registration(self, monkeypatch):
        monkeypatch.setattr(mdns, "local_ipv4_addresses", lambda: [])
        announcer = DashboardAnnouncer("signals", 8080)

        assert not announcer.register()
        assert not announcer.registered
        announcer.close()
