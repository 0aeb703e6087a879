"""
================================================================================
VastProxy - Mapping Index
================================================================================
O(1) lookups between a source's native category ids and global types.

Three views are derived from one MappingDocument:

    forward:  (source_code, source_type_id) -> global_type
    reverse:  (source_code, global_type)    -> [source_type_id, ...]
    names:    (source_code, source_type_id) -> source type name

All three plus the document live in one immutable _Snapshot. rebuild()
builds a complete new snapshot off to the side and publishes it with a
single reference assignment, so a reader that grabbed the snapshot once
answers every question from the same document. Readers never take a lock.

Writers are serialized by TypeMappingManager, not here.
================================================================================
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .models import MappingDocument


@dataclass(frozen=True)
class _Snapshot:
    document: MappingDocument
    forward: Mapping[str, Mapping[int, str]] = field(default_factory=dict)
    reverse: Mapping[str, Mapping[str, Tuple[int, ...]]] = field(default_factory=dict)
    names: Mapping[str, Mapping[int, str]] = field(default_factory=dict)


def _build_snapshot(document: MappingDocument) -> _Snapshot:
    """Build all three views in a single pass over a private copy of ``document``."""
    document = document.copy()
    forward: Dict[str, Mapping[int, str]] = {}
    reverse: Dict[str, Mapping[str, Tuple[int, ...]]] = {}
    names: Dict[str, Mapping[int, str]] = {}

    for source_code, mapping in document.source_mappings.items():
        source_forward: Dict[int, str] = {}
        source_names: Dict[int, str] = {}
        source_reverse: Dict[str, List[int]] = {}

        for source_type in mapping.type_list:
            source_forward[source_type.id] = source_type.global_type
            source_names[source_type.id] = source_type.name
            # Unmapped types collect under "" so callers can list them
            source_reverse.setdefault(source_type.global_type, []).append(source_type.id)

        forward[source_code] = MappingProxyType(source_forward)
        names[source_code] = MappingProxyType(source_names)
        reverse[source_code] = MappingProxyType(
            {code: tuple(ids) for code, ids in source_reverse.items()}
        )

    return _Snapshot(
        document=document,
        forward=MappingProxyType(forward),
        reverse=MappingProxyType(reverse),
        names=MappingProxyType(names),
    )


class MappingIndex:
    """
    Lock-free reader side of the type mapping.

    Usage:
        index = MappingIndex()
        index.rebuild(document)
        index.lookup_global_type("ffzy", 6)          # -> "movie"
        index.lookup_source_type_ids("ffzy", "tv")   # -> [13, 14, 15]
    """

    def __init__(self, document: Optional[MappingDocument] = None):
        self._snapshot = _build_snapshot(document or MappingDocument())

    def rebuild(self, document: MappingDocument) -> None:
        """Replace every view at once. Readers see fully old or fully new."""
        snapshot = _build_snapshot(document)
        self._snapshot = snapshot

    # =========================================================================
    # LOOKUPS (never raise, None means not found)
    # =========================================================================

    def lookup_global_type(self, source_code: str, source_type_id: int) -> Optional[str]:
        source_forward = self._snapshot.forward.get(source_code)
        if source_forward is None:
            return None
        return source_forward.get(source_type_id)

    def lookup_source_type_ids(self, source_code: str, global_type: str) -> Optional[List[int]]:
        source_reverse = self._snapshot.reverse.get(source_code)
        if source_reverse is None:
            return None
        ids = source_reverse.get(global_type)
        return list(ids) if ids is not None else None

    def lookup_name(self, source_code: str, source_type_id: int) -> Optional[str]:
        source_names = self._snapshot.names.get(source_code)
        if source_names is None:
            return None
        return source_names.get(source_type_id)

    def lookup_entry(self, source_code: str, source_type_id: int) -> Optional[Tuple[str, str]]:
        """(global_type, name) for one native id, answered from one snapshot."""
        snapshot = self._snapshot
        source_forward = snapshot.forward.get(source_code)
        if source_forward is None or source_type_id not in source_forward:
            return None
        name = snapshot.names[source_code].get(source_type_id, "")
        return source_forward[source_type_id], name

    def global_type_names(self) -> Dict[str, str]:
        return {k: v.name for k, v in self._snapshot.document.global_types.items()}

    def lookup_entries(self, source_code: str, global_type: str) -> Optional[List[Tuple[int, str]]]:
        """(id, name) pairs for a global type, answered from one snapshot."""
        snapshot = self._snapshot
        ids = snapshot.reverse.get(source_code, {}).get(global_type)
        if ids is None:
            return None
        names = snapshot.names.get(source_code, {})
        return [(type_id, names.get(type_id, "")) for type_id in ids]

    def has_source(self, source_code: str) -> bool:
        return source_code in self._snapshot.forward

    def source_codes(self) -> List[str]:
        return list(self._snapshot.forward.keys())

    def get_document(self) -> MappingDocument:
        """Deep copy of the document the current views were built from."""
        return self._snapshot.document.copy()
