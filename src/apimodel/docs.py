"""Fetch ``externalDocs`` URLs for use as item documentation.

Uses :mod:`httpx` to download the documentation and :mod:`diskcache` to keep
it on the filesystem with a configurable time-to-live, so that repeated
conversions of the same document do not hit the network again.

Cache keys are SHA-256 hashes of the URL.

See Also:
    :class:`~apimodel.models.DocsCacheConfig` -- the Pydantic model that
    controls ``enabled`` and ``ttl_seconds``.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional

import diskcache
import httpx

from apimodel.exceptions import ParseItemError
from apimodel.models import DocsCacheConfig
from apimodel.output import debug


class DocsFetcher:
    """Fetches documentation bodies, optionally through a disk cache.

    Args:
        cache_dir: Root directory for the cache. A ``docs/`` subdirectory
            is created inside it.
        config: Cache configuration (``enabled`` flag and ``ttl_seconds``).
        timeout: Request timeout in seconds.
        client: HTTP client to use; one is created when omitted.

    Example::

        from apimodel.docs import DocsFetcher
        from apimodel.models import DocsCacheConfig

        fetcher = DocsFetcher("/tmp/apimodel-cache", DocsCacheConfig())
        text = fetcher.fetch("https://example.com/pet.md", "Pet")
    """

    def __init__(
        self,
        cache_dir: str | Path,
        config: Optional[DocsCacheConfig] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or DocsCacheConfig()
        self._cache_dir = Path(cache_dir)
        self._cache: Optional[diskcache.Cache] = None
        if self._config.enabled:
            self._cache = diskcache.Cache(str(self._cache_dir / "docs"))
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    @staticmethod
    def _make_key(url: str) -> str:
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

    def fetch(self, url: str, name: Optional[str] = None) -> str:
        """Return the documentation text at *url*.

        Args:
            url: The ``externalDocs.url`` value.
            name: Name of the schema or operation being documented; used in
                error messages only.

        Returns:
            The response body as text.

        Raises:
            ParseItemError: If the documentation cannot be fetched. The
                underlying :mod:`httpx` error is chained.
        """
        key = self._make_key(url)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                debug(f"Documentation cache hit for {url}")
                return cached

        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ParseItemError(
                f"HTTP {exc.response.status_code} fetching documentation from {url}", name
            ) from exc
        except httpx.RequestError as exc:
            raise ParseItemError(f"failed to fetch documentation from {url}: {exc}", name) from exc

        text = response.text
        if self._cache is not None:
            self._cache.set(key, text, expire=self._config.ttl_seconds)
        return text

    def clear(self) -> None:
        """Remove all cached documentation."""
        if self._cache is not None:
            self._cache.clear()

    def close(self) -> None:
        """Close the HTTP client and the underlying :class:`diskcache.Cache`."""
        self._client.close()
        if self._cache is not None:
            self._cache.close()
