"""Configuration model for the media server bridge."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "mediaserver2"
CONFIG_FILE_NAME = "mediaserver2.json"

# Largest value a 32-bit signed count can carry on the wire
MAX_LIMIT = 2**31 - 1

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "server": {
            "type": "object",
            "properties": {
                "host": {"type": "string", "minLength": 1},
                "port": {"type": "integer", "minimum": 0, "maximum": 65535},
                "limit": {"type": "integer", "minimum": 0},
                "allow_duplicates": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "providers": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
        },
        "plugin_dirs": {
            "type": "array",
            "items": {"type": "string"},
        },
        "provider_config": {
            "type": "object",
            "additionalProperties": {
                "oneOf": [
                    {"type": "object"},
                    {"type": "array", "items": {"type": "object"}},
                ]
            },
        },
    },
    "additionalProperties": False,
}


@dataclass
class ServerConfig:
    """Configuration for the protocol server."""
    host: str = "127.0.0.1"
    port: int = 8200
    limit: int = 0  # 0 = unlimited
    allow_duplicates: bool = False

    @property
    def effective_limit(self) -> int:
        """Global cap on nodes returned by one listing or search."""
        limit = min(max(self.limit, 0), MAX_LIMIT)
        return MAX_LIMIT if limit == 0 else limit


@dataclass
class Config:
    """Main configuration model."""
    server: ServerConfig = field(default_factory=ServerConfig)
    providers: List[str] = field(default_factory=list)
    plugin_dirs: List[Path] = field(default_factory=list)
    provider_config: Dict[str, Union[Dict[str, Any], List[Dict[str, Any]]]] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "Config":
        """Create a default configuration."""
        return cls()

    def configs_for(self, plugin_name: str) -> List[Dict[str, Any]]:
        """Return the config entries of a plugin, one per backend instance."""
        entry = self.provider_config.get(plugin_name)
        if entry is None:
            return [{}]
        if isinstance(entry, dict):
            return [entry]
        return list(entry) or [{}]


def default_config_path() -> Path:
    """Location of the per-user configuration file."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def validate_config_data(config_data: Any) -> List[str]:
    """Validate raw configuration data against the config schema.

    Returns:
        List of validation error messages
    """
    validator = jsonschema.Draft7Validator(CONFIG_SCHEMA)
    errors = []
    for error in sorted(validator.iter_errors(config_data), key=lambda e: list(e.absolute_path)):
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        errors.append(f"Validation error at {path}: {error.message}")
    return errors


def _config_to_dict(config: Config) -> Dict[str, Any]:
    return {
        "server": {
            "host": config.server.host,
            "port": config.server.port,
            "limit": config.server.limit,
            "allow_duplicates": config.server.allow_duplicates,
        },
        "providers": list(config.providers),
        "plugin_dirs": [str(p) for p in config.plugin_dirs],
        "provider_config": config.provider_config,
    }


def _dict_to_config(data: Dict[str, Any]) -> Config:
    return Config(
        server=ServerConfig(**data.get("server", {})),
        providers=list(data.get("providers", [])),
        plugin_dirs=[Path(p).expanduser() for p in data.get("plugin_dirs", [])],
        provider_config=dict(data.get("provider_config", {})),
    )


def load_config(config_path: Path) -> Config:
    """Load configuration from JSON file.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    try:
        with open(config_path, 'r') as f:
            config_data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {config_path}: {e}") from e

    errors = validate_config_data(config_data)
    if errors:
        raise ConfigurationError(f"Invalid config file {config_path}: {'; '.join(errors)}")

    return _dict_to_config(config_data)


def load_config_or_default(config_path: Optional[Path] = None) -> Config:
    """Load the given (or per-user) config file, falling back to defaults if it is missing."""
    path = config_path or default_config_path()
    if not path.exists():
        logger.warning(f"Unable to load configuration. {path} does not exist")
        return Config.default()
    return load_config(path)


def save_config(config: Config, config_path: Path) -> None:
    """Save configuration to JSON file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        json.dump(_config_to_dict(config), f, indent=2)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = Config(
        provider_config={
            "filesystem": {"root": str(Path.home() / "Music"), "name": "Music"},
        }
    )
    save_config(default_config, config_path)
