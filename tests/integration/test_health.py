"""Integration tests for GET /health."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from errors import register_error_handlers
from routes.health_routes import router as health_router


def _build_test_app(store_ok: bool = True) -> FastAPI:
    """
    Build a minimal FastAPI app with a mocked store injected via lifespan.
    No real network connections are made.
    """
    mock_store = AsyncMock()
    if not store_ok:
        mock_store.ping.side_effect = Exception("connection refused")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = mock_store
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health_router)
    return app


class TestHealthEndpoint:
    def test_healthy_when_store_ok(self):
        app = _build_test_app(store_ok=True)
        with TestClient(app) as client:
            resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["checks"]["store"] == "ok"

    def test_unhealthy_when_store_fails(self):
        app = _build_test_app(store_ok=False)
        with TestClient(app) as client:
            resp = client.get("/health")
        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "unhealthy"
        assert body["checks"]["store"] == "error"

    def test_response_shape(self):
        app = _build_test_app()
        with TestClient(app) as client:
            resp = client.get("/health")
        body = resp.json()
        assert set(body) == {"status", "checks"}
        assert "store" in body["checks"]
