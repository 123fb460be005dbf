"""Registry of active backends and their endpoint names."""

import logging
import re
from typing import Dict, Iterator, List, Optional

from .base import Backend, SupportedOps
from .hooks import RegistryEvent, RegistryHooks

logger = logging.getLogger(__name__)

SERVICE_PREFIX = "org.gnome.UPnP.MediaServer2."
PATH_PREFIX = "/org/gnome/UPnP/MediaServer2/"

_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def sanitize(source_id: str) -> str:
    """Make a backend id usable as an endpoint name.

    Every character outside ``[A-Za-z0-9_]`` becomes ``_``.
    """
    return _UNSAFE.sub("_", source_id)


def service_name(endpoint_name: str) -> str:
    return SERVICE_PREFIX + endpoint_name


def object_path(endpoint_name: str) -> str:
    return PATH_PREFIX + endpoint_name


class ProviderRegistry:
    """Tracks which backends are published and under which endpoint name.

    Observers subscribe through :attr:`hooks` to create and destroy their
    endpoints. Unless duplicates are allowed, a backend whose display name
    is already registered is skipped.
    """

    def __init__(self, allow_duplicates: bool = False) -> None:
        self.allow_duplicates = allow_duplicates
        self.hooks = RegistryHooks()
        self._backends: Dict[str, Backend] = {}
        self._provider_names: List[str] = []

    def __contains__(self, endpoint_name: str) -> bool:
        return endpoint_name in self._backends

    def __len__(self) -> int:
        return len(self._backends)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._backends))

    def lookup(self, endpoint_name: str) -> Optional[Backend]:
        """Backend served under ``endpoint_name``, if any."""
        return self._backends.get(endpoint_name)

    def endpoint_names(self) -> List[str]:
        return sorted(self._backends)

    async def add(self, backend: Backend) -> Optional[str]:
        """Register a backend and notify observers.

        Returns:
            The endpoint name, or None if the backend was skipped or its
            endpoint could not be created
        """
        supported = backend.supported_operations()
        if not (supported & SupportedOps.BROWSE and supported & SupportedOps.RESOLVE):
            logger.debug(f"{backend.source_id} source does not support either browse or resolve")
            return None

        if not self.allow_duplicates and backend.name in self._provider_names:
            logger.debug(f"Skipping {backend.source_id} [{backend.name}] source")
            return None

        endpoint_name = sanitize(backend.source_id)
        if endpoint_name in self._backends:
            logger.warning(f"Cannot register {endpoint_name}: name already taken")
            return None

        logger.debug(f"Registering {backend.source_id} [{backend.name}] source")
        context = await self.hooks.emit(
            RegistryEvent.PROVIDER_ADDED,
            backend=backend,
            endpoint_name=endpoint_name,
        )
        if context.error is not None:
            logger.warning(f"Cannot register {endpoint_name}: {context.error}")
            return None

        self._backends[endpoint_name] = backend
        if not self.allow_duplicates:
            self._provider_names.append(backend.name)
        logger.info(f"Registered {backend.name} as {service_name(endpoint_name)}")
        return endpoint_name

    async def remove(self, backend: Backend) -> None:
        """Unregister a backend and notify observers."""
        endpoint_name = sanitize(backend.source_id)
        if self._backends.get(endpoint_name) is not backend:
            return

        del self._backends[endpoint_name]
        if not self.allow_duplicates and backend.name in self._provider_names:
            self._provider_names.remove(backend.name)

        await self.hooks.emit(
            RegistryEvent.PROVIDER_REMOVED,
            backend=backend,
            endpoint_name=endpoint_name,
        )
        logger.info(f"Unregistered {service_name(endpoint_name)}")
