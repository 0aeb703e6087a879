"""
Type mapping: translates each source's native category ids into global types.

- models.py: the persisted document (global types + per-source type lists)
- store.py: JSON load/save
- classifier.py: keyword heuristic for new categories
- index.py: lock-free lookup views
- manager.py: writer lock, commit discipline and admin operations
- sync.py: fetch -> classify -> merge -> commit
"""

from .classifier import Classifier, KeywordClassifier
from .errors import (
    ConfigParseError, ConfigReadError, ConfigSerializeError, ConfigStoreError,
    ConfigWriteError, FetchError, MappingConflictError, MappingNotFoundError,
    MappingValidationError, ReferentialIntegrityError, TypeMappingError,
)
from .index import MappingIndex
from .manager import OperationResult, TypeMappingManager
from .models import GlobalType, MappingDocument, SourceMapping, SourceType
from .store import ConfigStore
from .sync import BatchReport, SyncOrchestrator, SyncReport

__all__ = [
    "BatchReport", "Classifier", "ConfigParseError", "ConfigReadError",
    "ConfigSerializeError", "ConfigStore", "ConfigStoreError", "ConfigWriteError",
    "FetchError", "GlobalType", "KeywordClassifier", "MappingConflictError",
    "MappingDocument", "MappingIndex", "MappingNotFoundError",
    "MappingValidationError", "OperationResult", "ReferentialIntegrityError",
    "SourceMapping", "SourceType", "SyncOrchestrator", "SyncReport",
    "TypeMappingError", "TypeMappingManager",
]
