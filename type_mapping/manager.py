"""
================================================================================
VastProxy - Type Mapping Manager
================================================================================
Owns the mapping document and keeps it, the lookup index and the file on
disk in step.

THE WRITE PATH (commit):
  1. Take the writer lock
  2. Copy the current document
  3. Let the caller mutate the copy (all existence checks happen here,
     inside the lock)
  4. Save the copy through the ConfigStore
  5. Only if the save succeeded: adopt it and rebuild the index

If any step raises, the previous document and index stay authoritative.

THE READ PATH never touches the writer lock; see MappingIndex.

Admin operations return an OperationResult instead of raising, so the HTTP
layer can turn them straight into responses.
================================================================================
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from .classifier import Classifier, KeywordClassifier
from .errors import (
    ConfigStoreError, FetchError, MappingConflictError, MappingNotFoundError,
    MappingValidationError, ReferentialIntegrityError, TypeMappingError,
)
from .index import MappingIndex
from .models import GlobalType, MappingDocument, SourceMapping
from .store import ConfigStore
from .sync import SyncOrchestrator

logger = logging.getLogger(__name__)

T = TypeVar("T")

# error_code values reported by failed operations
NOT_FOUND = "not_found"
CONFLICT = "conflict"
INVALID = "invalid"
INTEGRITY = "integrity"
STORAGE = "storage"
FETCH = "fetch"

_ERROR_CODES = (
    (MappingNotFoundError, NOT_FOUND),
    (MappingConflictError, CONFLICT),
    (MappingValidationError, INVALID),
    (ReferentialIntegrityError, INTEGRITY),
    (ConfigStoreError, STORAGE),
    (FetchError, FETCH),
)


@dataclass
class OperationResult:
    """Outcome of an admin operation: success flag, human message, payload."""
    success: bool
    message: str
    data: Any = None
    error_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            body["data"] = self.data
        return body

    @classmethod
    def failed(cls, error: TypeMappingError) -> "OperationResult":
        code = INVALID
        for error_type, error_code in _ERROR_CODES:
            if isinstance(error, error_type):
                code = error_code
                break
        return cls(success=False, message=str(error), error_code=code)


class TypeMappingManager:
    """
    Thread-safe owner of the type mapping.

    Usage:
        manager = TypeMappingManager(ConfigStore("config/type_mapping.json"))
        manager.load()
        manager.lookup_global_type("ffzy", 6)        # -> "movie"
        manager.create_global_type({"id": "kids", "name": "少儿"})
    """

    def __init__(
        self,
        store: ConfigStore,
        classifier: Optional[Classifier] = None,
        fetcher: Any = None,
    ):
        self.store = store
        self.classifier = classifier or KeywordClassifier()
        self.index = MappingIndex()
        self._document = MappingDocument()
        self._write_lock = threading.RLock()
        self.orchestrator = SyncOrchestrator(self, fetcher=fetcher, classifier=self.classifier)

    # =========================================================================
    # LOADING & COMMITTING
    # =========================================================================

    def load(self) -> MappingDocument:
        """
        Read the document from disk and rebuild the index.

        Raises ConfigReadError / ConfigParseError; on failure the current
        state is kept.
        """
        with self._write_lock:
            document = self.store.load()
            for code, mapping in document.source_mappings.items():
                missing = document.unknown_global_types(mapping)
                if missing:
                    logger.warning(f"⚠️ Source '{code}' references unknown global types: {missing}")
            self._adopt(document)

        logger.info(
            f"✅ Type mapping loaded: {len(document.global_types)} global types, "
            f"{len(document.source_mappings)} source mappings"
        )
        return self.get_document()

    def load_or_initialize(self) -> MappingDocument:
        """load() if the file exists, otherwise start from an empty document."""
        if not self.store.exists():
            logger.info(f"ℹ️ No type mapping file at {self.store.path}, starting empty")
            with self._write_lock:
                self._adopt(MappingDocument())
            return self.get_document()
        return self.load()

    def commit(self, mutate: Callable[[MappingDocument], T]) -> T:
        """
        Apply ``mutate`` to a copy of the document, persist it, then publish it.

        ``mutate`` runs under the writer lock and may raise to abort; nothing
        is saved or published in that case.
        """
        with self._write_lock:
            working = self._document.copy()
            result = mutate(working)
            for code, mapping in working.source_mappings.items():
                duplicates = mapping.duplicate_ids()
                if duplicates:
                    raise MappingValidationError(
                        f"Source '{code}' lists type ids more than once: {duplicates}"
                    )
            saved = self.store.save(working)
            self._adopt(saved)
            return result

    def _adopt(self, document: MappingDocument) -> None:
        self._document = document
        self.index.rebuild(document)

    def _run(self, mutate: Callable[[MappingDocument], Any], message: str) -> OperationResult:
        try:
            data = self.commit(mutate)
        except TypeMappingError as e:
            logger.warning(f"⚠️ {e}")
            return OperationResult.failed(e)
        return OperationResult(success=True, message=message, data=data)

    # =========================================================================
    # LOOKUPS (lock-free, None means not found)
    # =========================================================================

    def lookup_global_type(self, source_code: str, source_type_id: int) -> Optional[str]:
        return self.index.lookup_global_type(source_code, source_type_id)

    def lookup_source_type_ids(self, source_code: str, global_type: str) -> Optional[List[int]]:
        return self.index.lookup_source_type_ids(source_code, global_type)

    def lookup_name(self, source_code: str, source_type_id: int) -> Optional[str]:
        return self.index.lookup_name(source_code, source_type_id)

    def get_document(self) -> MappingDocument:
        return self.index.get_document()

    def has_source(self, source_code: str) -> bool:
        return self.index.has_source(source_code)

    def describe_source_type(self, source_code: str, source_type_id: int) -> Optional[Dict[str, Any]]:
        entry = self.index.lookup_entry(source_code, source_type_id)
        if entry is None:
            return None
        global_type, name = entry
        return {
            "source_code": source_code,
            "source_type_id": source_type_id,
            "source_type_name": name,
            "global_type": global_type,
        }

    def describe_global_type(self, source_code: str, global_type: str) -> Optional[Dict[str, Any]]:
        entries = self.index.lookup_entries(source_code, global_type)
        if entries is None:
            return None
        return {
            "source_code": source_code,
            "global_type": global_type,
            "source_types": [{"id": type_id, "name": name} for type_id, name in entries],
        }

    def annotate_items(self, source_code: str, items: Iterable[Any]) -> List[Any]:
        """
        Attach global_type / global_type_name to listing items.

        Items are the loosely typed dicts a source's listing endpoint returns;
        each is copied, never modified in place. Unknown ids get "";
        anything that is not a dict is passed through as is.
        """
        names = self.index.global_type_names()
        annotated = []
        for item in items:
            if not isinstance(item, dict):
                annotated.append(item)
                continue
            enriched = dict(item)
            global_type = ""
            try:
                type_id = int(item.get("type_id"))
            except (TypeError, ValueError):
                type_id = None
            if type_id is not None:
                global_type = self.index.lookup_global_type(source_code, type_id) or ""
            enriched["global_type"] = global_type
            enriched["global_type_name"] = names.get(global_type, "")
            annotated.append(enriched)
        return annotated

    # =========================================================================
    # GLOBAL TYPES
    # =========================================================================

    def list_global_types(self) -> OperationResult:
        document = self.get_document()
        data = {k: v.to_dict() for k, v in document.global_types.items()}
        return OperationResult(success=True, message="OK", data=data)

    def get_global_type(self, type_id: str) -> OperationResult:
        global_type = self.get_document().global_types.get(type_id)
        if global_type is None:
            return OperationResult.failed(MappingNotFoundError(f"Global type '{type_id}' not found"))
        return OperationResult(success=True, message="OK", data=global_type.to_dict())

    @staticmethod
    def _parse_global_type(payload: Any) -> GlobalType:
        global_type = GlobalType.from_dict(payload)
        if not global_type.id or not global_type.name:
            raise MappingValidationError("Missing required fields: id and name")
        return global_type

    def create_global_type(self, payload: Any) -> OperationResult:
        def mutate(document: MappingDocument) -> Dict[str, Any]:
            global_type = self._parse_global_type(payload)
            if global_type.id in document.global_types:
                raise MappingConflictError(f"Global type '{global_type.id}' already exists")
            document.global_types[global_type.id] = global_type
            return global_type.to_dict()

        return self._run(mutate, "Global type created successfully")

    def update_global_type(self, payload: Any) -> OperationResult:
        def mutate(document: MappingDocument) -> Dict[str, Any]:
            global_type = self._parse_global_type(payload)
            if global_type.id not in document.global_types:
                raise MappingNotFoundError(f"Global type '{global_type.id}' not found")
            document.global_types[global_type.id] = global_type
            return global_type.to_dict()

        return self._run(mutate, "Global type updated successfully")

    def delete_global_type(self, type_id: str) -> OperationResult:
        def mutate(document: MappingDocument) -> None:
            if not type_id:
                raise MappingValidationError("Missing type ID")
            if type_id not in document.global_types:
                raise MappingNotFoundError(f"Global type '{type_id}' not found")
            users = document.references_to(type_id)
            if users:
                raise ReferentialIntegrityError(
                    type_id,
                    f"Cannot delete global type '{type_id}': used by source mappings {users}",
                )
            del document.global_types[type_id]

        return self._run(mutate, "Global type deleted successfully")

    # =========================================================================
    # SOURCE MAPPINGS
    # =========================================================================

    def list_source_mappings(self) -> OperationResult:
        document = self.get_document()
        data = {k: v.to_dict() for k, v in document.source_mappings.items()}
        return OperationResult(success=True, message="OK", data=data)

    def get_source_mapping(self, source_code: str) -> OperationResult:
        mapping = self.get_document().source_mappings.get(source_code)
        if mapping is None:
            return OperationResult.failed(MappingNotFoundError(f"Source '{source_code}' not found"))
        return OperationResult(success=True, message="OK", data=mapping.to_dict())

    @staticmethod
    def _parse_source_mapping(document: MappingDocument, source_code: str, payload: Any) -> SourceMapping:
        if not source_code:
            raise MappingValidationError("Missing source code")
        mapping = SourceMapping.from_dict(payload)
        mapping.name = mapping.name or source_code
        duplicates = mapping.duplicate_ids()
        if duplicates:
            raise MappingValidationError(f"Duplicate source type ids: {duplicates}")
        missing = document.unknown_global_types(mapping)
        if missing:
            raise ReferentialIntegrityError(missing[0], f"Global type '{missing[0]}' not found")
        return mapping

    def create_source_mapping(self, source_code: str, payload: Any) -> OperationResult:
        def mutate(document: MappingDocument) -> Dict[str, Any]:
            if source_code in document.source_mappings:
                raise MappingConflictError(f"Source mapping '{source_code}' already exists")
            mapping = self._parse_source_mapping(document, source_code, payload)
            document.source_mappings[source_code] = mapping
            return mapping.to_dict()

        return self._run(mutate, "Source mapping created successfully")

    def update_source_mapping(self, source_code: str, payload: Any) -> OperationResult:
        def mutate(document: MappingDocument) -> Dict[str, Any]:
            if source_code not in document.source_mappings:
                raise MappingNotFoundError(f"Source mapping '{source_code}' not found")
            mapping = self._parse_source_mapping(document, source_code, payload)
            document.source_mappings[source_code] = mapping
            return mapping.to_dict()

        return self._run(mutate, "Source mapping updated successfully")

    def delete_source_mapping(self, source_code: str) -> OperationResult:
        def mutate(document: MappingDocument) -> None:
            if source_code not in document.source_mappings:
                raise MappingNotFoundError(f"Source mapping '{source_code}' not found")
            del document.source_mappings[source_code]

        return self._run(mutate, "Source mapping deleted successfully")

    # =========================================================================
    # SYNC
    # =========================================================================

    def auto_fetch(self, source_code: str, source_url: str) -> OperationResult:
        """Discover a source's categories and merge them into its mapping."""
        if not source_code or not source_url:
            return OperationResult.failed(MappingValidationError("Missing source_code or source_url"))
        try:
            report = self.orchestrator.sync_source(source_code, source_url)
        except TypeMappingError as e:
            logger.warning(f"❌ Auto fetch for {source_code} failed: {e}")
            return OperationResult.failed(e)
        return OperationResult(
            success=True,
            message="Auto fetch source types successfully",
            data=report.to_dict(),
        )

    def initialize_all(self, sources: Iterable[Any]) -> OperationResult:
        """Create mappings for every enabled source that has none yet."""
        report = self.orchestrator.initialize_all(sources)
        message = (
            f"Initialized {len(report.initialized)} sources, "
            f"skipped {len(report.skipped)}, failed {len(report.failed)}"
        )
        return OperationResult(success=True, message=message, data=report.to_dict())
