"""
================================================================================
VastProxy - Category Fetcher
================================================================================
Discovers a source's native category list.

Listing APIs answer a bare GET on their base URL with a document like:

    {"code": 1, "class": [{"type_id": 1, "type_name": "电影", "type_pid": 0}, ...],
     "list": [...]}

Only the "class" array is used here. Ids arrive as ints, floats or numeric
strings depending on the CMS; records without a positive id or a name are
dropped.
================================================================================
"""

from typing import Any, Dict, List, Optional

import requests

from type_mapping.errors import FetchError

from .base import SourceCategory, source_log
from .http_client import DEFAULT_HEADERS, create_session

DEFAULT_TIMEOUT = 30


def _get_int(record: Dict[str, Any], key: str) -> int:
    value = record.get(key)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _get_str(record: Dict[str, Any], key: str) -> str:
    value = record.get(key)
    return value.strip() if isinstance(value, str) else ""


def parse_categories(source_code: str, payload: Any) -> List[SourceCategory]:
    """
    Extract category records from a listing API response.

    Raises FetchError when the payload is not an object or yields no usable
    category.
    """
    if not isinstance(payload, dict):
        raise FetchError(source_code, f"Expected a JSON object, got {type(payload).__name__}")

    categories: List[SourceCategory] = []
    raw_class = payload.get("class")
    if isinstance(raw_class, list):
        for item in raw_class:
            if not isinstance(item, dict):
                continue
            type_id = _get_int(item, "type_id")
            type_name = _get_str(item, "type_name")
            if type_id <= 0 or not type_name:
                continue
            type_pid = _get_int(item, "type_pid")
            if type_pid > 0:
                source_log(f"📋 [{source_code}] {type_name} (ID:{type_id}) -> parent {type_pid}")
            categories.append(SourceCategory(type_id=type_id, type_name=type_name, type_pid=type_pid))

    if not categories:
        raise FetchError(
            source_code,
            f"No category data found, response keys: {sorted(payload.keys())}"
        )
    return categories


class CategoryFetcher:
    """
    Fetches category lists over HTTP.

    Usage:
        fetcher = CategoryFetcher()
        categories = fetcher.fetch("ffzy", "https://api.example.com/api.php/provide/vod/")
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT):
        self.session = session or create_session()
        self.timeout = timeout

    def fetch(self, source_code: str, source_url: str) -> List[SourceCategory]:
        """One GET to the source's base URL. Raises FetchError on any failure."""
        request_url = (source_url or "").strip().rstrip("/")
        if not request_url:
            raise FetchError(source_code, "Missing source URL")

        try:
            response = self.session.get(request_url, headers=DEFAULT_HEADERS, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(source_code, f"Request failed: {e}") from e

        if response.status_code != 200:
            raise FetchError(source_code, f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(source_code, f"Invalid JSON: {e}") from e

        categories = parse_categories(source_code, payload)
        source_log(f"📋 Source {source_code} reported {len(categories)} categories")
        return categories

