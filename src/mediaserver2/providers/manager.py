"""Provider manager for discovering, loading and publishing backends."""

import importlib
import importlib.util
import inspect
import logging
import pkgutil
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Iterable, List, Optional, Type

import jsonschema

from ..models.config import Config
from .base import Backend, BackendInfo
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)

BUILTINS_PACKAGE = f"{__package__}.builtins"


class ProviderManager:
    """Manages backend discovery, loading, and lifecycle."""

    def __init__(self, registry: ProviderRegistry, plugin_dirs: Optional[List[Path]] = None) -> None:
        """Initialize provider manager.

        Args:
            registry: Registry the loaded backends are published to
            plugin_dirs: Extra directories to search for backend modules
        """
        self.registry = registry
        self.plugin_dirs = list(plugin_dirs or [])
        self._backend_classes: Dict[str, Type[Backend]] = {}
        self._backends: List[Backend] = []

    @property
    def backends(self) -> List[Backend]:
        """Backends that are currently published."""
        return list(self._backends)

    def discover_providers(self) -> List[str]:
        """Discover backend plugins in the bundled package and plugin directories.

        Returns:
            Sorted list of plugin names found
        """
        builtins = importlib.import_module(BUILTINS_PACKAGE)
        for module_info in pkgutil.iter_modules(builtins.__path__):
            if module_info.name.startswith("_"):
                continue
            try:
                module = importlib.import_module(f"{BUILTINS_PACKAGE}.{module_info.name}")
            except Exception as e:
                logger.error(f"Failed to load bundled provider {module_info.name}: {e}")
                continue
            self._register_classes(module)

        for plugin_dir in self.plugin_dirs:
            if not plugin_dir.is_dir():
                logger.warning(f"Plugin directory not found: {plugin_dir}")
                continue

            for py_file in sorted(plugin_dir.glob("*.py")):
                if py_file.name.startswith("_"):
                    continue
                self._load_module_from_file(py_file, py_file.stem)

            for subdir in sorted(plugin_dir.iterdir()):
                init_file = subdir / "__init__.py"
                if subdir.is_dir() and not subdir.name.startswith("_") and init_file.exists():
                    self._load_module_from_file(init_file, subdir.name)

        return sorted(self._backend_classes)

    def _load_module_from_file(self, file_path: Path, module_name: str) -> None:
        """Load backend classes from a Python file outside the package."""
        try:
            spec = importlib.util.spec_from_file_location(f"mediaserver2_plugin_{module_name}", file_path)
            if spec is None or spec.loader is None:
                logger.warning(f"Could not load spec for provider module {module_name}")
                return

            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        except Exception as e:
            logger.error(f"Failed to load provider module {module_name} from {file_path}: {e}")
            return

        self._register_classes(module)

    def _register_classes(self, module: ModuleType) -> None:
        for name, obj in inspect.getmembers(module, inspect.isclass):
            if not issubclass(obj, Backend) or obj is Backend or inspect.isabstract(obj):
                continue
            if not obj.plugin_name:
                continue
            if obj.plugin_name in self._backend_classes and self._backend_classes[obj.plugin_name] is not obj:
                logger.warning(f"Provider {obj.plugin_name} from {module.__name__} shadows an earlier one")
            self._backend_classes[obj.plugin_name] = obj
            logger.debug(f"Loaded provider class: {obj.plugin_name} ({module.__name__}.{name})")

    def register_class(self, backend_class: Type[Backend]) -> None:
        """Make a backend class available without discovery."""
        if not backend_class.plugin_name:
            raise ValueError(f"{backend_class.__name__} has no plugin_name")
        self._backend_classes[backend_class.plugin_name] = backend_class

    def get_class(self, plugin_name: str) -> Optional[Type[Backend]]:
        return self._backend_classes.get(plugin_name)

    def list_providers(self) -> Dict[str, BackendInfo]:
        """Info of every discovered plugin, by plugin name."""
        providers_info = {}
        for name, backend_class in sorted(self._backend_classes.items()):
            try:
                providers_info[name] = backend_class().info
            except Exception as e:
                logger.warning(f"Could not get info for provider {name}: {e}")
        return providers_info

    def validate_provider_config(self, plugin_name: str, config: Dict[str, Any]) -> List[str]:
        """Validate one config entry against the plugin's schema.

        Returns:
            List of validation error messages
        """
        backend_class = self._backend_classes.get(plugin_name)
        if backend_class is None:
            return [f"Provider {plugin_name} not found"]

        validator = jsonschema.Draft7Validator(backend_class.config_schema)
        errors = []
        for error in validator.iter_errors(config):
            path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
            errors.append(f"{path}: {error.message}")
        return errors

    def create_backend(self, plugin_name: str, config: Optional[Dict[str, Any]] = None,
                       source_id: Optional[str] = None) -> Optional[Backend]:
        """Instantiate and initialize one backend.

        Returns:
            The backend, or None if its config is invalid or it failed to start
        """
        backend_class = self._backend_classes.get(plugin_name)
        if backend_class is None:
            logger.error(f"Provider {plugin_name} not found")
            return None

        config = config or {}
        errors = self.validate_provider_config(plugin_name, config)
        if errors:
            logger.error(f"Invalid configuration for provider {plugin_name}: {'; '.join(errors)}")
            return None

        try:
            backend = backend_class(config, source_id=source_id)
            backend.initialize()
        except Exception as e:
            logger.error(f"Failed to initialize provider {plugin_name}: {e}")
            return None

        return backend

    async def load(self, config: Config, plugin_names: Optional[Iterable[str]] = None) -> List[str]:
        """Create the requested backends and publish them.

        Args:
            config: Server configuration holding the provider entries
            plugin_names: Plugins to load; defaults to the configured list,
                or every discovered plugin when none is configured

        Returns:
            Endpoint names of the backends that were published
        """
        names = list(plugin_names or config.providers or sorted(self._backend_classes))
        published = []

        for plugin_name in names:
            for index, entry in enumerate(config.configs_for(plugin_name)):
                source_id = None
                if index and "source_id" not in entry:
                    source_id = f"{plugin_name}-{index}"

                backend = self.create_backend(plugin_name, entry, source_id=source_id)
                if backend is None:
                    continue

                endpoint_name = await self.registry.add(backend)
                if endpoint_name is None:
                    backend.cleanup()
                    continue

                self._backends.append(backend)
                published.append(endpoint_name)

        return published

    async def shutdown(self) -> None:
        """Unpublish every backend and release its resources."""
        while self._backends:
            backend = self._backends.pop()
            await self.registry.remove(backend)
            try:
                backend.cleanup()
            except Exception as e:
                logger.error(f"Error cleaning up provider {backend.source_id}: {e}")
