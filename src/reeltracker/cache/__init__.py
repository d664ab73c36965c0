"""Content caches: disk-backed blob cache and in-process LRU."""

from pathlib import Path

from reeltracker.cache.data_cache import DataCache, hash_key
from reeltracker.cache.lru import LRUMemoryCache
from reeltracker.config import Settings


def build_image_cache(settings: Settings) -> DataCache:
    """Create the long-lived cache for poster and hero images."""
    directory: Path | None = settings.cache_dir / "images" if settings.cache_dir else None
    return DataCache(
        directory,
        ttl_seconds=settings.image_cache_ttl_days * 24 * 60 * 60,
        max_disk_bytes=settings.image_cache_max_bytes,
        name="images",
    )


def build_payload_cache(settings: Settings) -> DataCache:
    """Create the short-lived cache for catalog API responses."""
    directory: Path | None = settings.cache_dir / "payloads" if settings.cache_dir else None
    return DataCache(
        directory,
        ttl_seconds=settings.payload_cache_ttl_hours * 60 * 60,
        max_disk_bytes=settings.payload_cache_max_bytes,
        name="payloads",
    )


__all__ = [
    "DataCache",
    "LRUMemoryCache",
    "build_image_cache",
    "build_payload_cache",
    "hash_key",
]
