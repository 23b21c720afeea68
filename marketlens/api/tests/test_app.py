"""
Tests for the application wiring in main.py.
"""

from fastapi.testclient import TestClient

import main
from marketlens.ebay import MarketLensService


def test_health_and_lifespan():
    with TestClient(main.app) as client:
        assert isinstance(main.app.state.service, MarketLensService)

        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

        root = client.get("/").json()
        assert root["documentation"] == "/docs"


def test_router_mounted_under_prefix():
    paths = {route.path for route in main.app.routes}
    assert f"{main.settings.API_PREFIX}/search" in paths
    assert f"{main.settings.API_PREFIX}/config" in paths
    assert f"{main.settings.API_PREFIX}/config/details" in paths


def test_unknown_route_error_body():
    with TestClient(main.app) as client:
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert "error" in response.json()
