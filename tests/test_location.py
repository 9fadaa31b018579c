"""Tests for anchor resolution."""

import pytest
from aiohttp import test_utils, web

from signal_overlay.config import Config
from signal_overlay.location import default_provider, fetch_location, parse_location, resolve_anchor
from signal_overlay.models import LatLng


class TestParseLocation:

    def test_success(self):
        data = {"success": True, "latitude": 52.52, "longitude": 13.405}
        assert parse_location(data) == LatLng(52.52, 13.405)

    @pytest.mark.parametrize("data", [
        {"success": False, "message": "Reserved range"},
        {"success": True},
        {"success": True, "latitude": "abc", "longitude": 1.0},
        {"success": True, "latitude": 120.0, "longitude": 1.0},
        {},
    ])
    def test_unusable(self, data):
        assert parse_location(data) is None


class TestResolveAnchor:

    @pytest.mark.asyncio
    async def test_no_provider_uses_fallback(self):
        assert await resolve_anchor(None) == Config.FALLBACK_ANCHOR

    @pytest.mark.asyncio
    async def test_provider_location_used(self):
        async def provider():
            return LatLng(1.0, 2.0)

        assert await resolve_anchor(provider) == LatLng(1.0, 2.0)

    @pytest.mark.asyncio
    async def test_no_location_uses_fallback(self):
        async def provider():
            return None

        assert await resolve_anchor(provider) == LatLng(28.7041, 77.1025)

    @pytest.mark.asyncio
    async def test_failing_provider_uses_fallback(self):
        async def provider():
            raise ConnectionError("no network")

        assert await resolve_anchor(provider) == Config.FALLBACK_ANCHOR


class TestDefaultProvider:

    @pytest.mark.asyncio
    async def test_fixed_anchor_wins(self, monkeypatch):
        monkeypatch.setattr(Config, "ANCHOR_LAT", "40.0")
        monkeypatch.setattr(Config, "ANCHOR_LNG", "-74.0")
        monkeypatch.setattr(Config, "LOCATION_ENABLED", True)

        provider = default_provider()
        assert await provider() == LatLng(40.0, -74.0)

    def test_disabled_without_anchor(self, monkeypatch):
        monkeypatch.setattr(Config, "ANCHOR_LAT", None)
        monkeypatch.setattr(Config, "ANCHOR_LNG", None)
        monkeypatch.setattr(Config, "LOCATION_ENABLED", False)

        assert default_provider() is None

    def test_geolocation_when_enabled(self, monkeypatch):
        monkeypatch.setattr(Config, "ANCHOR_LAT", None)
        monkeypatch.setattr(Config, "ANCHOR_LNG", None)
        monkeypatch.setattr(Config, "LOCATION_ENABLED", True)

        assert callable(default_provider())


class TestFetchLocation:

    async def serve(self, handler):
        app = web.Application()
        app.router.add_get("/", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        return server

    @pytest.mark.asyncio
    async def test_fetches_coordinates(self, monkeypatch):
        async def handler(request):
            return web.json_response({"success": True, "latitude": 48.85, "longitude": 2.35})

        server = await self.serve(handler)
        monkeypatch.setattr(Config, "LOCATION_URL", str(server.make_url("/")))
        try:
            assert await fetch_location(timeout=2.0) == LatLng(48.85, 2.35)
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self, monkeypatch):
        async def handler(request):
            return web.Response(status=503)

        server = await self.serve(handler)
        monkeypatch.setattr(Config, "LOCATION_URL", str(server.make_url("/")))
        try:
            assert await fetch_location(timeout=2.0) is None
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_unreachable_returns_none(self, monkeypatch):
        monkeypatch.setattr(Config, "LOCATION_URL", "http://127.0.0.1:1/")
        assert await fetch_location(timeout=2.0) is None
