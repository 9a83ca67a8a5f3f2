"""
Health endpoint for RagaBot
Serves GET /health for deployment liveness checks
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import psutil
from aiohttp import web

from config.settings import HEALTH_PORT, VERSION

logger = logging.getLogger('bot')


class HealthServer:
    """Minimal aiohttp app reporting process uptime and memory"""

    def __init__(self, port: int = HEALTH_PORT, host: str = '0.0.0.0', *,
                 stats_provider: Callable[[], Dict[str, Any]] = None, version: str = VERSION):
        self.port = port
        self.host = host
        self.version = version
        self.stats_provider = stats_provider
        self.started_at = time.monotonic()
        self._process = psutil.Process()
        self._runner: Optional[web.AppRunner] = None

        self.app = web.Application()
        self.app.router.add_get('/health', self.handle_health)

    def snapshot(self) -> Dict[str, Any]:
        memory = self._process.memory_info()
        payload = {
            'status': 'ok',
            'uptime': round(time.monotonic() - self.started_at, 1),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'memory': {
                'rss_mb': round(memory.rss / (1024 * 1024), 2),
                'percent': round(self._process.memory_percent(), 2),
            },
            'version': self.version,
        }
        if self.stats_provider is not None:
            payload.update(self.stats_provider())
        return payload

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response(self.snapshot())

    async def start(self):
        if self._runner is not None:
            return
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host=self.host, port=self.port)
        await site.start()
        logger.info(f"🏥 Health endpoint listening on {self.host}:{self.port}/health")

    async def close(self):
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
