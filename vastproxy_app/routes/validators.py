"""Lightweight request validation helpers."""

import re
from typing import Any, Dict, Optional, Tuple

# Safe characters for source codes (alphanumeric, dash, underscore)
SOURCE_CODE_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')

MAX_CODE_LENGTH = 64


def validate_source_code(source_code: Optional[str]) -> Optional[str]:
    """
    Validate a source code against the safe character pattern.

    Returns:
        None if valid, or error message string.
    """
    if not source_code:
        return "Missing source code"
    if len(source_code) > MAX_CODE_LENGTH:
        return f"Source code exceeds max length {MAX_CODE_LENGTH}"
    if not SOURCE_CODE_PATTERN.match(source_code):
        return "Invalid source code format"
    return None


def validate_url(url: Optional[str]) -> Optional[str]:
    """Only absolute http(s) URLs are accepted as source URLs."""
    if not url:
        return "Missing source URL"
    if not url.startswith(('http://', 'https://')):
        return "Source URL must start with http:// or https://"
    return None


def parse_type_id(value: Any) -> Tuple[Optional[int], Optional[str]]:
    """
    Parse a source type id query parameter.

    Returns:
        Tuple of (type_id_or_none, error_or_none)
    """
    try:
        return int(value), None
    except (ValueError, TypeError):
        return None, "Invalid source type ID"


def json_object(payload: Any) -> Optional[Dict[str, Any]]:
    """Return ``payload`` if it is a JSON object, else None."""
    return payload if isinstance(payload, dict) else None
