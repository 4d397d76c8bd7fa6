"""
PadPress Backend — Rate Limiter Tests
======================================

What we test:
    ✅ Requests over the window limit get the 503 busy answer
    ✅ /health is never limited
    ✅ The assembled app sheds load with the same plain-text answer
"""

import pytest
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from httpx import ASGITransport, AsyncClient

from app.middleware.rate_limit import RateLimitMiddleware
from app.responder import BUSY_MESSAGE


def _app(max_requests: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window=60)

    @app.get("/ping")
    async def ping():
        return PlainTextResponse("pong")

    @app.get("/health")
    async def health():
        return PlainTextResponse("ok")

    return app


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_busy_after_limit(self):
        transport = ASGITransport(app=_app(max_requests=2))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.get("/ping")).status_code == 200
            assert (await client.get("/ping")).status_code == 200
            response = await client.get("/ping")

        assert response.status_code == 503
        assert response.text == BUSY_MESSAGE
        assert int(response.headers["retry-after"]) >= 1

    @pytest.mark.asyncio
    async def test_health_exempt(self):
        transport = ASGITransport(app=_app(max_requests=1))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            for _ in range(3):
                assert (await client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_app_answers_busy_in_plain_text(self, test_settings):
        from app.main import create_app

        app = create_app(test_settings.model_copy(update={"rate_limit_requests": 10}))
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            for _ in range(10):
                assert (await client.get("/does/not/exist")).status_code == 404
            response = await client.get("/does/not/exist")

        assert response.status_code == 503
        assert response.text == BUSY_MESSAGE
        assert response.headers["content-type"].startswith("text/plain")
