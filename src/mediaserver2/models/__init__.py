"""Data models for the media server bridge."""

from .media import MediaKind, MediaNode, MetadataKey
from .config import Config, ServerConfig, load_config, save_config

__all__ = [
    "MediaKind",
    "MediaNode",
    "MetadataKey",
    "Config",
    "ServerConfig",
    "load_config",
    "save_config",
]
