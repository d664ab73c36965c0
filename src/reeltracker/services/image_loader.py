"""Poster and hero image loading backed by the content caches."""

import asyncio
import logging
from collections.abc import Iterable
from urllib.parse import urlparse

import httpx

from reeltracker.cache import DataCache, LRUMemoryCache
from reeltracker.config import settings

logger = logging.getLogger(__name__)


class ImageLoader:
    """
    Loads image bytes by URL, consulting caches before the network.

    Lookup order is the in-process LRU, then the disk cache, then an HTTP
    download. Downloads are written to both caches. Only HTTPS URLs on the
    configured image hosts are fetched, and redirects are not followed.
    """

    def __init__(
        self,
        disk_cache: DataCache,
        memory_cache: LRUMemoryCache[bytes] | None = None,
        timeout: float | None = None,
        allowed_hosts: Iterable[str] | None = None,
    ) -> None:
        self.disk_cache = disk_cache
        self.memory_cache = memory_cache or LRUMemoryCache(maxsize=settings.memory_cache_size)
        self.timeout = timeout or settings.request_timeout
        hosts = settings.image_hosts if allowed_hosts is None else allowed_hosts
        self.allowed_hosts = frozenset(host.lower() for host in hosts)

    def is_allowed(self, url: str) -> bool:
        """Whether ``url`` is an HTTPS URL on one of the allowed image hosts."""
        parsed = urlparse(url)
        return parsed.scheme == "https" and (parsed.hostname or "") in self.allowed_hosts

    async def load(self, url: str) -> bytes | None:
        """
        Get image bytes for ``url``.

        Args:
            url: Absolute image URL

        Returns:
            Image bytes, or None if the URL is empty, not on an allowed host,
            or the download fails
        """
        if not url:
            return None
        if not self.is_allowed(url):
            logger.warning(f"Refusing image from disallowed host: {url}")
            return None

        cached = self.memory_cache.get(url)
        if cached is not None:
            return cached

        data = await self.disk_cache.aget(url)
        if data is not None:
            self.memory_cache.put(url, data)
            return data

        data = await self._download(url)
        if data is None:
            return None

        self.disk_cache.put(url, data)
        self.memory_cache.put(url, data)
        return data

    async def preload(self, urls: Iterable[str]) -> int:
        """
        Warm the caches for a batch of URLs.

        Returns:
            Number of images that loaded
        """
        results = await asyncio.gather(*(self.load(url) for url in dict.fromkeys(urls) if url))
        return sum(1 for result in results if result is not None)

    def clear_memory(self) -> None:
        self.memory_cache.clear()

    async def _download(self, url: str) -> bytes | None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=False) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            logger.warning(f"Image download failed with HTTP {e.response.status_code}: {url}")
            return None
        except httpx.HTTPError as e:
            logger.warning(f"Image download failed for {url}: {e}")
            return None
