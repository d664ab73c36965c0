"""FastAPI dependency providers for collaborators built at startup."""

from fastapi import Request

from reeltracker.cache import DataCache
from reeltracker.services.amc_client import AMCClient
from reeltracker.services.image_loader import ImageLoader
from reeltracker.services.limited_run import LimitedRunFeed, LimitedRunService


def get_amc_client(request: Request) -> AMCClient:
    return request.app.state.amc_client


def get_limited_run_service(request: Request) -> LimitedRunService:
    return request.app.state.limited_run_service


def get_feed(request: Request) -> LimitedRunFeed:
    return request.app.state.feed


def get_image_loader(request: Request) -> ImageLoader:
    return request.app.state.image_loader


def get_caches(request: Request) -> list[DataCache]:
    """
    Dependency for routes that maintain the content caches.

    Usage:
        @router.post("/cache/purge")
        async def purge(caches: list[DataCache] = Depends(get_caches)):
            ...
    """
    return list(request.app.state.caches)
