"""
monitoring/server.py - HTTP surface.

GET /metrics always answers 200 with text/plain exposition text, whatever
the state of the last sweep.
"""

from typing import Optional

from aiohttp import web

from core.constants import DEFAULT_LISTEN_HOST, METRICS_ROUTE
from core.logging import get_logger
from monitoring.render import MetricsRenderer

logger = get_logger(__name__)

RENDERER_KEY = web.AppKey("renderer", MetricsRenderer)


async def metrics_handler(request: web.Request) -> web.Response:
    renderer = request.app[RENDERER_KEY]
    try:
        body = renderer.render()
    except Exception:
        logger.exception("Failed to render metrics")
        body = ""
    return web.Response(text=body, content_type="text/plain")


def create_app(renderer: MetricsRenderer) -> web.Application:
    app = web.Application()
    app[RENDERER_KEY] = renderer
    app.router.add_get(METRICS_ROUTE, metrics_handler)
    return app


class MetricsServer:
    """Serves the metrics route on host:port until stopped."""

    def __init__(
        self,
        renderer: MetricsRenderer,
        port: int,
        host: str = DEFAULT_LISTEN_HOST,
    ):
        self.renderer = renderer
        self.port = port
        self.host = host
        self._runner: Optional[web.AppRunner] = None

    async def start(self) -> None:
        app = create_app(self.renderer)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host=self.host, port=self.port)
        await site.start()
        logger.info(
            f"Serving {METRICS_ROUTE} on {self.host}:{self.port}",
            extra={"context": {"host": self.host, "port": self.port}},
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
