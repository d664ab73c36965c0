"""Cached image endpoint."""

import mimetypes
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from reeltracker.dependencies import get_image_loader
from reeltracker.services.image_loader import ImageLoader

router = APIRouter()


@router.get("/images")
async def get_image(
    url: str = Query(..., description="Absolute image URL"),
    loader: ImageLoader = Depends(get_image_loader),
) -> Response:
    """Serve image bytes from the cache, downloading them on a miss."""
    if not loader.is_allowed(url):
        raise HTTPException(status_code=400, detail="Image host not allowed")

    data = await loader.load(url)
    if data is None:
        raise HTTPException(status_code=404, detail="Image unavailable")

    media_type, _ = mimetypes.guess_type(urlparse(url).path)
    return Response(content=data, media_type=media_type or "application/octet-stream")
