"""
tests/unit/test_server.py - HTTP surface tests.
"""

import aiohttp.test_utils as aiohttp_test
import httpx
import pytest

from conftest import make_target

from monitoring.render import MetricsRenderer
from monitoring.server import MetricsServer, create_app
from monitoring.store import ObservationStore


@pytest.fixture
def renderer():
    store = ObservationStore((make_target(0), make_target(1)))
    store.write_observation(0, balance="2.5", nonce=3)
    return MetricsRenderer(store, prefix="t_")


class TestMetricsRoute:

    @pytest.mark.asyncio
    async def test_metrics_returns_text(self, renderer):
        async with aiohttp_test.TestClient(aiohttp_test.TestServer(create_app(renderer))) as client:
            resp = await client.get("/metrics")
            body = await resp.text()

        assert resp.status == 200
        assert resp.content_type == "text/plain"
        assert body == renderer.render()
        assert 't_eth_balance{name="wallet0"' in body

    @pytest.mark.asyncio
    async def test_render_failure_still_200(self, renderer):
        class BrokenRenderer(MetricsRenderer):
            def render(self):
                raise RuntimeError("bug")

        app = create_app(BrokenRenderer(renderer.store))
        async with aiohttp_test.TestClient(aiohttp_test.TestServer(app)) as client:
            resp = await client.get("/metrics")

        assert resp.status == 200

    @pytest.mark.asyncio
    async def test_unknown_route_is_404(self, renderer):
        async with aiohttp_test.TestClient(aiohttp_test.TestServer(create_app(renderer))) as client:
            resp = await client.get("/nope")

        assert resp.status == 404


class TestMetricsServer:

    @pytest.mark.asyncio
    async def test_start_serve_stop(self, renderer):
        port = aiohttp_test.unused_port()
        server = MetricsServer(renderer, port=port)

        await server.start()
        try:
            async with httpx.AsyncClient(trust_env=False) as client:
                resp = await client.get(f"http://127.0.0.1:{port}/metrics")
        finally:
            await server.stop()

        assert resp.status_code == 200
        assert resp.text == renderer.render()
