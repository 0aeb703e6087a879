"""
================================================================================
VastProxy - Source Definitions
================================================================================
Shared types for the content sources we aggregate.

A source is a third-party listing API (the usual "?ac=videolist" style CMS
endpoint). Each one files its content under its own numeric categories; the
type_mapping package translates those into global types.
================================================================================
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


# =============================================================================
# LOGGING CALLBACK (avoids circular imports)
# =============================================================================

# Global logger callback - set by the app factory on startup
_log_callback: Optional[Callable[[str], None]] = None


def set_log_callback(callback: Optional[Callable[[str], None]]) -> None:
    """Set the logging callback function. Called by create_app() on startup."""
    global _log_callback
    _log_callback = callback


def source_log(msg: str) -> None:
    """Log a message using the registered callback or fallback to print."""
    if _log_callback:
        _log_callback(msg)
    else:
        print(msg)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class VideoSource:
    """One configured source from sources.json."""
    code: str                        # Unique key, e.g. "ffzy"
    name: str                        # Display name
    url: str                         # Listing API base URL
    is_default: bool = False
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary for API responses."""
        return {
            "code": self.code,
            "name": self.name,
            "url": self.url,
            "is_default": self.is_default,
            "enabled": self.enabled
        }


@dataclass
class SourceCategory:
    """
    A raw category record as a source's API reports it.

    type_pid (parent id) is kept for logging only; categories are treated
    as a flat list.
    """
    type_id: int
    type_name: str
    type_pid: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_id": self.type_id,
            "type_name": self.type_name,
            "type_pid": self.type_pid
        }
