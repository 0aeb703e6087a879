"""
Exceptions raised by the type mapping core.

Store and fetch failures carry enough context (path, source code) to be
logged on their own. Lookups never raise; a miss is a normal ``None``.
"""

from typing import Optional


class TypeMappingError(Exception):
    """Base class for every type mapping failure."""


# =============================================================================
# CONFIG STORE
# =============================================================================

class ConfigStoreError(TypeMappingError):
    """Reading or writing the mapping document failed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason} ({path})")


class ConfigReadError(ConfigStoreError):
    """The mapping file could not be read."""


class ConfigParseError(ConfigStoreError):
    """The mapping file is not a valid mapping document."""


class ConfigWriteError(ConfigStoreError):
    """The mapping file could not be written."""


class ConfigSerializeError(ConfigStoreError):
    """The document could not be encoded as JSON."""


# =============================================================================
# FETCH ADAPTER
# =============================================================================

class FetchError(TypeMappingError):
    """A source's category list could not be fetched or parsed."""

    def __init__(self, source_code: str, reason: str, status_code: Optional[int] = None):
        self.source_code = source_code
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch types for '{source_code}': {reason}")


# =============================================================================
# ADMIN OPERATIONS
# =============================================================================

class ReferentialIntegrityError(TypeMappingError):
    """A global type is referenced where it must not be, or is missing."""

    def __init__(self, global_type: str, message: str):
        self.global_type = global_type
        super().__init__(message)


class MappingConflictError(TypeMappingError):
    """The entity being created already exists."""


class MappingNotFoundError(TypeMappingError):
    """The entity being changed does not exist."""


class MappingValidationError(TypeMappingError):
    """A payload is missing fields or has malformed values."""
