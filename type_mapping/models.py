"""
================================================================================
VastProxy - Type Mapping Models
================================================================================
Data classes for the persisted mapping document.

The JSON shape on disk:

    {
      "version": "1.0",
      "description": "...",
      "last_updated": "2024-01-01T00:00:00Z",
      "global_types": {"movie": {"id": "movie", "name": "电影", ...}},
      "source_mappings": {
        "ffzy": {"name": "...", "enabled": true,
                 "type_list": [{"id": 1, "name": "电影", "global_type": "movie"}]}
      }
    }

Every class converts with to_dict()/from_dict(). from_dict() accepts the
loosely typed JSON that sources and admins hand us (numeric strings for ids,
missing optional fields) and raises MappingValidationError for anything it
cannot make sense of.
================================================================================
"""

import copy
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import MappingValidationError


DEFAULT_VERSION = "1.0"


def _as_int(value: Any, field_name: str) -> int:
    """Coerce an int, integral float or numeric string to int."""
    if isinstance(value, bool):
        raise MappingValidationError(f"Field '{field_name}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise MappingValidationError(f"Field '{field_name}' must be an integer")


def _as_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise MappingValidationError(f"Field '{field_name}' must be a boolean")
    return value


def _as_str(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MappingValidationError(f"Field '{field_name}' must be a string")
    return value


def _as_object(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise MappingValidationError(f"{what} must be a JSON object")
    return value


@dataclass
class GlobalType:
    """A canonical, source-independent category (movie, tv, ...)."""
    id: str
    name: str
    description: str = ""
    priority: int = 0
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "priority": self.priority,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GlobalType":
        data = _as_object(data, "Global type")
        return cls(
            id=_as_str(data.get("id"), "id"),
            name=_as_str(data.get("name"), "name"),
            description=_as_str(data.get("description"), "description"),
            priority=_as_int(data.get("priority", 0), "priority"),
            enabled=_as_bool(data.get("enabled"), "enabled", True),
        )


@dataclass
class SourceType:
    """A category as one source reports it. Empty global_type = unmapped."""
    id: int
    name: str
    global_type: str = ""

    @property
    def is_mapped(self) -> bool:
        return bool(self.global_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "global_type": self.global_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceType":
        data = _as_object(data, "Source type")
        if "id" not in data:
            raise MappingValidationError("Missing required field: id")
        return cls(
            id=_as_int(data["id"], "id"),
            name=_as_str(data.get("name"), "name"),
            global_type=_as_str(data.get("global_type"), "global_type"),
        )


@dataclass
class SourceMapping:
    """All native categories of one source, in the order the source lists them."""
    name: str
    enabled: bool = True
    type_list: List[SourceType] = field(default_factory=list)

    def find(self, type_id: int) -> Optional[SourceType]:
        for source_type in self.type_list:
            if source_type.id == type_id:
                return source_type
        return None

    def duplicate_ids(self) -> List[int]:
        """Type ids that appear more than once, in first-seen order."""
        counts = Counter(t.id for t in self.type_list)
        seen = []
        for source_type in self.type_list:
            if counts[source_type.id] > 1 and source_type.id not in seen:
                seen.append(source_type.id)
        return seen

    @property
    def mapped_count(self) -> int:
        return sum(1 for t in self.type_list if t.is_mapped)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "type_list": [t.to_dict() for t in self.type_list],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceMapping":
        data = _as_object(data, "Source mapping")
        raw_types = data.get("type_list") or []
        if not isinstance(raw_types, list):
            raise MappingValidationError("Field 'type_list' must be a list")
        return cls(
            name=_as_str(data.get("name"), "name"),
            enabled=_as_bool(data.get("enabled"), "enabled", True),
            type_list=[SourceType.from_dict(item) for item in raw_types],
        )


@dataclass
class MappingDocument:
    """
    The whole persisted state: global types plus every source's type list.

    This is the single source of truth. The lookup indices are derived from
    it and rebuilt whenever it changes.
    """
    version: str = DEFAULT_VERSION
    description: str = ""
    last_updated: str = ""
    global_types: Dict[str, GlobalType] = field(default_factory=dict)
    source_mappings: Dict[str, SourceMapping] = field(default_factory=dict)

    def copy(self) -> "MappingDocument":
        return copy.deepcopy(self)

    def references_to(self, global_type_id: str) -> List[str]:
        """Source codes whose type list points at the given global type."""
        return [
            code for code, mapping in self.source_mappings.items()
            if any(t.global_type == global_type_id for t in mapping.type_list)
        ]

    def unknown_global_types(self, mapping: SourceMapping) -> List[str]:
        """Non-empty global_type values in ``mapping`` with no GlobalType."""
        missing = []
        for source_type in mapping.type_list:
            code = source_type.global_type
            if code and code not in self.global_types and code not in missing:
                missing.append(code)
        return missing

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "description": self.description,
            "last_updated": self.last_updated,
            "global_types": {k: v.to_dict() for k, v in self.global_types.items()},
            "source_mappings": {k: v.to_dict() for k, v in self.source_mappings.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MappingDocument":
        data = _as_object(data, "Mapping document")
        raw_globals = _as_object(data.get("global_types") or {}, "global_types")
        raw_sources = _as_object(data.get("source_mappings") or {}, "source_mappings")

        global_types = {}
        for key, value in raw_globals.items():
            global_type = GlobalType.from_dict(value)
            # The map key is authoritative; older files sometimes omit "id"
            global_type.id = global_type.id or key
            global_types[key] = global_type

        return cls(
            version=_as_str(data.get("version"), "version") or DEFAULT_VERSION,
            description=_as_str(data.get("description"), "description"),
            last_updated=str(data.get("last_updated") or ""),
            global_types=global_types,
            source_mappings={k: SourceMapping.from_dict(v) for k, v in raw_sources.items()},
        )
