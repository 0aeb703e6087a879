"""
================================================================================
VastProxy - Type Sync
================================================================================
Reconciles a source's live category list with its stored mapping.

    fetch ──> diff ──> classify new ──> merge ──> commit (save + rebuild)

- Categories already in the mapping are carried over untouched, so a manual
  mapping is never overwritten by a sync.
- New categories are appended in the order the source reported them.
- The fetch runs outside the writer lock; the diff/merge runs inside it
  against the then-current mapping.
- A classifier result naming a global type that does not exist is dropped
  (the entry stays unmapped) so the document never references a missing
  global type.
================================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from .classifier import Classifier, KeywordClassifier
from .errors import FetchError, TypeMappingError
from .models import MappingDocument, SourceMapping, SourceType

if TYPE_CHECKING:
    from .manager import TypeMappingManager

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    source_code: str
    discovered: int = 0
    added: int = 0
    classified: int = 0
    unmapped: int = 0
    mapping: Optional[SourceMapping] = None

    @property
    def type_count(self) -> int:
        return len(self.mapping.type_list) if self.mapping else 0

    @property
    def mapped_count(self) -> int:
        return self.mapping.mapped_count if self.mapping else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_code": self.source_code,
            "discovered": self.discovered,
            "added": self.added,
            "classified": self.classified,
            "unmapped": self.unmapped,
            "type_count": self.type_count,
            "mapped_count": self.mapped_count,
            "mapping": self.mapping.to_dict() if self.mapping else None,
        }


@dataclass
class BatchReport:
    initialized: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)
    total_sources: int = 0
    total_types: int = 0
    total_mapped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initialized": list(self.initialized),
            "skipped": dict(self.skipped),
            "failed": dict(self.failed),
            "total_sources": self.total_sources,
            "total_types": self.total_types,
            "total_mapped": self.total_mapped,
        }


class SyncOrchestrator:
    """Runs single-source syncs and the initialize-all batch."""

    def __init__(
        self,
        manager: "TypeMappingManager",
        fetcher: Any = None,
        classifier: Optional[Classifier] = None,
    ):
        self.manager = manager
        self.fetcher = fetcher
        self.classifier = classifier or KeywordClassifier()

    def sync_source(
        self,
        source_code: str,
        source_url: str,
        display_name: Optional[str] = None,
    ) -> SyncReport:
        """
        Fetch, classify and commit one source's categories.

        Raises FetchError if the source cannot be read and ConfigStoreError
        if the result cannot be saved; the stored mapping is unchanged in
        both cases.
        """
        if self.fetcher is None:
            raise FetchError(source_code, "No category fetcher configured")

        categories = self.fetcher.fetch(source_code, source_url)
        logger.info(f"📋 Source {source_code} has {len(categories)} types")

        def merge(document: MappingDocument) -> SyncReport:
            report = SyncReport(source_code=source_code, discovered=len(categories))
            current = document.source_mappings.get(source_code)
            if current is None:
                current = SourceMapping(name=display_name or source_code, enabled=True)

            type_list = list(current.type_list)
            known_ids = {t.id for t in type_list}
            new_types = []
            for category in categories:
                if category.type_id in known_ids:
                    continue
                known_ids.add(category.type_id)
                new_types.append(self._classify(document, source_code, category.type_id, category.type_name))

            if new_types:
                logger.info(f"🔍 {len(new_types)} new types for {source_code}")

            report.added = len(new_types)
            report.classified = sum(1 for t in new_types if t.is_mapped)
            report.unmapped = report.added - report.classified

            merged = SourceMapping(
                name=display_name or current.name,
                enabled=current.enabled,
                type_list=type_list + new_types,
            )
            document.source_mappings[source_code] = merged
            report.mapping = merged
            return report

        report = self.manager.commit(merge)
        logger.info(
            f"✅ Synced {source_code}: {report.type_count} types, "
            f"{report.mapped_count} mapped, {report.added} new"
        )
        return report

    def _classify(self, document: MappingDocument, source_code: str, type_id: int, name: str) -> SourceType:
        global_type = self.classifier.classify(name)
        if global_type and global_type not in document.global_types:
            logger.warning(
                f"⚠️ Classifier suggested unknown global type '{global_type}' "
                f"for {name} (ID:{type_id}), leaving it unmapped"
            )
            global_type = ""
        if global_type:
            logger.info(f"🔗 [{source_code}] {name} (ID:{type_id}) -> {global_type}")
        else:
            logger.info(f"⚠️ [{source_code}] could not map {name} (ID:{type_id})")
        return SourceType(id=type_id, name=name, global_type=global_type)

    def initialize_all(self, sources: Iterable[Any]) -> BatchReport:
        """
        Sync every enabled source that has no mapping yet.

        ``sources`` are VideoSource-like objects (code, name, url, enabled).
        One source failing never stops the others.
        """
        report = BatchReport()
        sources = list(sources)
        logger.info(f"📋 Initializing type mappings for {len(sources)} configured sources")

        for source in sources:
            if not source.enabled:
                logger.info(f"ℹ️ Source {source.code} is disabled, skipping")
                report.skipped[source.code] = "disabled"
                continue
            if self.manager.has_source(source.code):
                logger.info(f"ℹ️ Source {source.code} already has a mapping, skipping")
                report.skipped[source.code] = "already mapped"
                continue

            logger.info(f"🔄 Initializing source: {source.code} ({source.name})")
            try:
                self.sync_source(source.code, source.url, display_name=source.name)
            except TypeMappingError as e:
                logger.warning(f"❌ Source {source.code} failed to initialize: {e}")
                report.failed[source.code] = str(e)
                continue
            except Exception as e:
                logger.exception(f"❌ Unexpected error initializing {source.code}")
                report.failed[source.code] = f"Unexpected error: {e}"
                continue
            report.initialized.append(source.code)

        document = self.manager.get_document()
        report.total_sources = len(document.source_mappings)
        for mapping in document.source_mappings.values():
            report.total_types += len(mapping.type_list)
            report.total_mapped += mapping.mapped_count
        return report
