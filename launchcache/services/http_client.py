"""Shared HTTP client and fetcher capabilities backed by httpx.

A fetcher is a zero-argument coroutine function returning a JSON-serializable
value.  Unlike a best-effort API helper, fetchers raise ``FetchError`` on any
failure so the subscription controller can surface it to the consumer.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from launchcache.config import get_settings

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]

# Module-level shared client (created lazily, lives for the process lifetime)
_client: httpx.AsyncClient | None = None


class FetchError(Exception):
    """A remote fetch failed (transport error or non-2xx status)."""

    def __init__(self, message: str, *, url: str = "", status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


def get_shared_client() -> httpx.AsyncClient:
    """Return a shared httpx.AsyncClient, creating it on first call."""
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(timeout=get_settings().http_timeout)
    return _client


async def close_shared_client() -> None:
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
    _client = None


def api_headers(extra: dict[str, str] | None = None) -> dict[str, str]:
    """Build request headers, adding Authorization when a token is configured."""
    settings = get_settings()
    headers: dict[str, str] = {"Accept": "application/json"}
    if settings.api_token:
        headers["Authorization"] = f"Bearer {settings.api_token}"
    if extra:
        headers.update(extra)
    return headers


def _resolve(url: str) -> str:
    base = get_settings().api_base_url
    if base and not url.startswith(("http://", "https://")):
        return f"{base.rstrip('/')}/{url.lstrip('/')}"
    return url


async def _get_json(
    url: str, params: dict[str, str] | None, headers: dict[str, str]
) -> Any:
    client = get_shared_client()
    try:
        resp = await client.get(url, headers=headers, params=params)
    except httpx.HTTPError as e:
        logger.warning("Request to %s failed: %s", url, e)
        raise FetchError(f"Request to {url} failed: {e}", url=url) from e

    if not resp.is_success:
        logger.warning("API %d for %s", resp.status_code, url)
        raise FetchError(
            f"API returned {resp.status_code} for {url}",
            url=url,
            status_code=resp.status_code,
        )
    try:
        return resp.json()
    except ValueError as e:
        raise FetchError(f"Invalid JSON from {url}", url=url) from e


def json_fetcher(
    url: str,
    params: dict[str, str] | None = None,
    *,
    headers: dict[str, str] | None = None,
    response_key: str | None = None,
) -> Fetcher:
    """Build a fetcher that GETs *url* and returns the parsed JSON body.

    When *response_key* is given, the value at that key is returned instead
    (missing key yields an empty list).
    """
    full_url = _resolve(url)

    async def fetch() -> Any:
        data = await _get_json(full_url, params, api_headers(headers))
        if response_key is None:
            return data
        if not isinstance(data, dict):
            raise FetchError(f"Expected an object from {full_url}", url=full_url)
        return data.get(response_key, [])

    return fetch


def paginated_fetcher(
    url: str,
    params: dict[str, str] | None = None,
    *,
    headers: dict[str, str] | None = None,
    per_page: int = 100,
    max_pages: int | None = None,
) -> Fetcher:
    """Build a fetcher that walks ``page=1..N`` and concatenates list results.

    Paging stops at the first short (or empty) page, or after *max_pages*.
    Any page failing fails the whole fetch; partial results are never
    returned because they would be persisted as if complete.
    """
    full_url = _resolve(url)

    async def fetch() -> list[Any]:
        all_items: list[Any] = []
        page = 1
        while True:
            page_params = {**(params or {}), "per_page": str(per_page), "page": str(page)}
            items = await _get_json(full_url, page_params, api_headers(headers))
            if not isinstance(items, list):
                raise FetchError(
                    f"Expected a list from {full_url} (page {page})", url=full_url
                )
            all_items.extend(items)
            if len(items) < per_page:
                break
            if max_pages is not None and page >= max_pages:
                break
            page += 1
        return all_items

    return fetch
