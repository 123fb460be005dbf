"""Content backends and their registry."""

from .base import Backend, BackendInfo, Operation, SupportedOps
from .hooks import RegistryEvent, RegistryHooks
from .manager import ProviderManager
from .registry import ProviderRegistry

__all__ = [
    'Backend',
    'BackendInfo',
    'Operation',
    'SupportedOps',
    'RegistryEvent',
    'RegistryHooks',
    'ProviderManager',
    'ProviderRegistry',
]
