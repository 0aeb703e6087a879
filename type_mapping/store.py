"""Flat-file JSON persistence for the mapping document."""

import json
import logging
import os
import tempfile
import time
from typing import Optional

from .errors import (
    ConfigParseError, ConfigReadError, ConfigSerializeError, ConfigWriteError,
    MappingValidationError,
)
from .models import MappingDocument

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
FILE_MODE = 0o644


def utc_timestamp(now: Optional[float] = None) -> str:
    return time.strftime(TIMESTAMP_FORMAT, time.gmtime(now))


class ConfigStore:
    """
    Loads and saves the mapping document.

    The store does no locking of its own; TypeMappingManager serializes every
    call that can write. save() always rewrites the whole file.
    """

    def __init__(self, path: str, indent: int = 2):
        self.path = path
        self.indent = indent

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def load(self) -> MappingDocument:
        """Read and parse the document. Raises ConfigReadError / ConfigParseError."""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = f.read()
        except UnicodeDecodeError as e:
            raise ConfigParseError(self.path, f"File is not valid UTF-8: {e}") from e
        except OSError as e:
            raise ConfigReadError(self.path, f"Failed to read type mapping file: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigParseError(self.path, f"Malformed JSON: {e}") from e

        try:
            document = MappingDocument.from_dict(data)
        except MappingValidationError as e:
            raise ConfigParseError(self.path, f"Invalid mapping document: {e}") from e

        for code, mapping in document.source_mappings.items():
            duplicates = mapping.duplicate_ids()
            if duplicates:
                raise ConfigParseError(
                    self.path,
                    f"Source '{code}' lists type ids more than once: {duplicates}",
                )
        return document

    def save(self, document: MappingDocument) -> MappingDocument:
        """
        Stamp last_updated and write the document.

        The caller's object is left untouched; the stamped copy that reached
        disk is returned so the caller can adopt it once the write succeeded.
        """
        stamped = document.copy()
        stamped.last_updated = utc_timestamp()

        try:
            payload = json.dumps(stamped.to_dict(), indent=self.indent, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise ConfigSerializeError(self.path, f"Failed to serialize config: {e}") from e

        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".type_mapping.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
                f.write("\n")
            os.chmod(tmp_path, FILE_MODE)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ConfigWriteError(self.path, f"Failed to save config file: {e}") from e

        logger.debug(f"💾 Saved type mapping to {self.path}")
        return stamped
