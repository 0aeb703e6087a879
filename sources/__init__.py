"""
================================================================================
VastProxy - Source Registry
================================================================================
Holds the configured listing sources (config/sources.json):

    {
      "sources": {
        "ffzy": {"name": "非凡资源", "url": "https://...", "is_default": true, "enabled": true}
      }
    }

The registry is read-mostly. reload() builds a new list and swaps it in
under the lock; readers get a copy.
================================================================================
"""

import json
import os
import threading
from typing import Any, Dict, List, Optional

from .base import SourceCategory, VideoSource, set_log_callback, source_log

__all__ = [
    "SourceCategory", "SourceRegistry", "SourceRegistryError", "VideoSource",
    "get_source_registry", "set_log_callback", "source_log",
]


class SourceRegistryError(Exception):
    """sources.json is missing or malformed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason} ({path})")


def parse_sources(data: Any, path: str = "<memory>") -> List[VideoSource]:
    """Build VideoSource objects from a decoded sources.json document."""
    if not isinstance(data, dict) or not isinstance(data.get("sources"), dict):
        raise SourceRegistryError(path, "No 'sources' section found in config file")

    sources = []
    for code, entry in data["sources"].items():
        if not isinstance(entry, dict):
            raise SourceRegistryError(path, f"Source '{code}' must be a JSON object")
        sources.append(VideoSource(
            code=code,
            name=str(entry.get("name") or code),
            url=str(entry.get("url") or ""),
            is_default=bool(entry.get("is_default", False)),
            enabled=bool(entry.get("enabled", False)),
        ))
    return sources


class SourceRegistry:
    """
    Configured listing sources, in file order.

    Usage:
        registry = SourceRegistry("config/sources.json")
        registry.load()
        for source in registry.enabled_sources():
            ...
    """

    def __init__(self, config_path: Optional[str] = None, sources: Optional[List[VideoSource]] = None):
        self.config_path = config_path
        self._sources: List[VideoSource] = list(sources or [])
        self._lock = threading.Lock()

    def load(self) -> int:
        """(Re)read sources.json. Returns the number of sources loaded."""
        if not self.config_path:
            raise SourceRegistryError("<unset>", "No sources config path configured")
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except UnicodeDecodeError as e:
            raise SourceRegistryError(self.config_path, f"Sources config is not valid UTF-8: {e}") from e
        except OSError as e:
            raise SourceRegistryError(self.config_path, f"Failed to read sources config: {e}") from e
        except json.JSONDecodeError as e:
            raise SourceRegistryError(self.config_path, f"Malformed sources config: {e}") from e

        sources = parse_sources(data, self.config_path)
        with self._lock:
            self._sources = sources
        source_log(f"📚 Loaded {len(sources)} sources from {os.path.basename(self.config_path)}")
        return len(sources)

    @property
    def sources(self) -> List[VideoSource]:
        with self._lock:
            return list(self._sources)

    def enabled_sources(self) -> List[VideoSource]:
        return [s for s in self.sources if s.enabled]

    def get(self, code: str) -> Optional[VideoSource]:
        for source in self.sources:
            if source.code == code:
                return source
        return None

    @property
    def default_source(self) -> Optional[VideoSource]:
        for source in self.sources:
            if source.is_default:
                return source
        return None

    def to_list(self) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in self.sources]


# =============================================================================
# GLOBAL SINGLETON
# =============================================================================

_registry: Optional[SourceRegistry] = None
_registry_lock = threading.Lock()


def get_source_registry(config_path: Optional[str] = None) -> SourceRegistry:
    """Get or create the global SourceRegistry instance."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = SourceRegistry(config_path)
            if config_path and os.path.exists(config_path):
                _registry.load()
        return _registry
