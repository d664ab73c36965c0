"""Movie catalog endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from reeltracker.dependencies import get_amc_client, get_limited_run_service
from reeltracker.schemas import MovieRecord
from reeltracker.services.amc_client import AMCAPIError, AMCClient, BadResponseError
from reeltracker.services.limited_run import LimitedRunError, LimitedRunService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/movies", response_model=list[MovieRecord])
async def get_window_movies(
    service: LimitedRunService = Depends(get_limited_run_service),
) -> list[MovieRecord]:
    """Movies in the current release window, including advance-ticket titles."""
    try:
        return await service.fetch_window_movies()
    except LimitedRunError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.get("/movies/{movie_id}", response_model=MovieRecord)
async def get_movie(
    movie_id: int,
    client: AMCClient = Depends(get_amc_client),
) -> MovieRecord:
    """
    Full catalog record for one movie.

    Returns 404 when the catalog does not know the movie.
    """
    try:
        return await client.fetch_movie(movie_id)
    except BadResponseError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Movie not found") from e
        raise HTTPException(status_code=502, detail=str(e)) from e
    except AMCAPIError as e:
        logger.error(f"Movie {movie_id} lookup failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e
