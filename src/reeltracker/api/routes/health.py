"""Health check endpoint."""

from fastapi import APIRouter, Depends

from reeltracker.cache import DataCache
from reeltracker.dependencies import get_caches

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check(caches: list[DataCache] = Depends(get_caches)) -> dict:
    """
    Health check endpoint.

    Returns:
        Status message plus whether each content cache is persisting to disk
    """
    return {
        "status": "ok",
        "caches": {cache.name: "disk" if cache.is_disk_enabled else "memory" for cache in caches},
    }
