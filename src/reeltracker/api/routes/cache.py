"""Content cache maintenance endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends

from reeltracker.cache import DataCache
from reeltracker.dependencies import get_caches, get_image_loader
from reeltracker.services.image_loader import ImageLoader
from reeltracker.tasks.cache_maintenance import purge_expired_caches

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/cache/purge")
async def purge_cache(caches: list[DataCache] = Depends(get_caches)) -> dict[str, int]:
    """Remove expired entries from every content cache."""
    removed = await asyncio.to_thread(purge_expired_caches, *caches)
    return {"removed": removed}


@router.delete("/cache")
async def clear_cache(
    caches: list[DataCache] = Depends(get_caches),
    loader: ImageLoader = Depends(get_image_loader),
) -> dict[str, str]:
    """Empty every content cache, including in-process images."""
    for cache in caches:
        await asyncio.to_thread(cache.clear_all)
    loader.clear_memory()
    logger.info("All content caches cleared")
    return {"status": "cleared"}
