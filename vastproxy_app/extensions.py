"""
Application singletons: the source registry and the type mapping manager.

Both are created lazily the first time they are asked for, from the
settings in config.py, and shared by every request thread.
"""

import threading
from typing import Optional

from sources import SourceRegistry, SourceRegistryError
from sources.category_fetcher import CategoryFetcher
from type_mapping import ConfigStore, ConfigStoreError, TypeMappingManager

from .config import Settings, get_settings
from .log import log

_lock = threading.Lock()
_registry: Optional[SourceRegistry] = None
_manager: Optional[TypeMappingManager] = None


def build_registry(settings: Settings) -> SourceRegistry:
    registry = SourceRegistry(settings.sources_config_file)
    try:
        registry.load()
    except SourceRegistryError as e:
        log(f"⚠️ Sources config unavailable, starting with no sources: {e}")
    return registry


def build_manager(settings: Settings) -> TypeMappingManager:
    manager = TypeMappingManager(
        ConfigStore(settings.type_mapping_file),
        fetcher=CategoryFetcher(timeout=settings.fetch_timeout),
    )
    try:
        manager.load_or_initialize()
    except ConfigStoreError as e:
        # Serve an empty index; the next admin write replaces the file
        log(f"❌ Type mapping not loaded, starting empty: {e}")
    return manager


def get_registry() -> SourceRegistry:
    global _registry
    with _lock:
        if _registry is None:
            _registry = build_registry(get_settings())
        return _registry


def get_type_mapping_manager() -> TypeMappingManager:
    global _manager
    with _lock:
        if _manager is None:
            _manager = build_manager(get_settings())
        return _manager


def install(registry: Optional[SourceRegistry] = None, manager: Optional[TypeMappingManager] = None) -> None:
    """Replace the singletons (used by create_app(test_config) and tests)."""
    global _registry, _manager
    with _lock:
        _registry = registry
        _manager = manager
