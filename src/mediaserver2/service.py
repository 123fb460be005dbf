"""Assembles registry, endpoints, providers and transport into one server."""

import logging
from typing import Iterable, List, Optional

from aiohttp import web

from .events import EventBus
from .models.config import Config
from .providers.manager import ProviderManager
from .providers.registry import ProviderRegistry, sanitize
from .server.endpoint import Endpoint, EndpointTable
from .server.http import create_app, run_server

logger = logging.getLogger(__name__)


class MediaServer:
    """A running set of published backends."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.bus = EventBus()
        self.registry = ProviderRegistry(allow_duplicates=config.server.allow_duplicates)
        self.endpoints = EndpointTable(self.registry, self.bus, config.server.effective_limit)
        self.manager = ProviderManager(self.registry, config.plugin_dirs)
        self._runner: Optional[web.AppRunner] = None

    async def load_providers(self, plugin_names: Optional[Iterable[str]] = None) -> List[str]:
        """Discover and publish backends.

        Returns:
            Endpoint names that were published
        """
        self.manager.discover_providers()
        published = await self.manager.load(self.config, plugin_names)
        if not published:
            logger.warning("No providers were published")
        return published

    def endpoint(self, source_id: str) -> Optional[Endpoint]:
        """Endpoint serving the backend with the given source id or endpoint name."""
        return self.endpoints.get(sanitize(source_id))

    async def start(self, plugin_names: Optional[Iterable[str]] = None,
                    host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Publish backends and start the network transport."""
        await self.load_providers(plugin_names)
        app = create_app(self.endpoints, self.bus)
        self._runner = await run_server(
            app,
            host or self.config.server.host,
            port if port is not None else self.config.server.port,
        )

    async def stop(self) -> None:
        """Stop the transport and unpublish every backend."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        await self.manager.shutdown()
