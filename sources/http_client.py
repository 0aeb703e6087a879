"""Shared HTTP session for talking to source APIs."""

import requests
from requests.adapters import HTTPAdapter

# Listing APIs are commonly fronted by CDNs that reject non-browser agents
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
}


def create_session(pool_connections: int = 10, pool_maxsize: int = 20) -> requests.Session:
    """Create a requests session with browser headers and connection pooling."""
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)

    # No transport retries: a failed fetch is reported, never retried
    adapter = HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=0
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
