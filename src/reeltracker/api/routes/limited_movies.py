"""Limited-run movie list and single-client feed endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from reeltracker.dependencies import get_feed, get_limited_run_service
from reeltracker.schemas import (
    ClassifiedMovie,
    FeedRequest,
    FeedState,
    FeedStatus,
    LimitedMoviesResponse,
    ReleaseType,
    SortOption,
)
from reeltracker.services.classifier import sort_by_next_showing
from reeltracker.services.limited_run import (
    LimitedRunError,
    LimitedRunFeed,
    LimitedRunService,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def filter_and_sort(
    movies: list[ClassifiedMovie],
    release_types: set[ReleaseType] | None = None,
    a_list_only: bool = False,
    sort: SortOption = SortOption.NEXT_SHOWING,
) -> list[ClassifiedMovie]:
    """
    Apply release-type and A-List filters, then order the list.

    Args:
        movies: Classified movies
        release_types: Types to keep (all when None or empty)
        a_list_only: Keep only A-List eligible movies
        sort: Ordering to apply

    Returns:
        Filtered, sorted list
    """
    visible = [
        movie
        for movie in movies
        if (not release_types or movie.release_type in release_types)
        and (not a_list_only or movie.available_for_a_list)
    ]

    if sort == SortOption.ALPHABETICAL:
        return sorted(visible, key=lambda m: (m.name.casefold(), m.id))
    if sort == SortOption.REMAINING_SHOWINGS:
        return sorted(visible, key=lambda m: (-m.total_count, m.name.casefold(), m.id))
    return sort_by_next_showing(visible)


@router.get("/limited-movies", response_model=LimitedMoviesResponse)
async def get_limited_movies(
    theatre_id: list[int] = Query(default=[], description="Theatre IDs to include"),
    release_type: list[ReleaseType] = Query(default=[], description="Release types to keep"),
    a_list_only: bool = Query(False, description="Only A-List eligible movies"),
    sort: SortOption = Query(SortOption.NEXT_SHOWING, description="Sort order"),
    service: LimitedRunService = Depends(get_limited_run_service),
) -> LimitedMoviesResponse:
    """
    Classified limited-run movies for a set of theatres.

    With no theatres selected nothing is fetched and the status is
    ``no_theatres``. A terminal fetch failure returns 502.
    """
    theatre_ids = sorted(set(theatre_id))
    if not theatre_ids:
        return LimitedMoviesResponse(
            status=FeedStatus.NO_THEATRES, theatre_ids=[], movies=[], total=0
        )

    try:
        movies = await service.fetch_limited_movies(theatre_ids)
    except LimitedRunError as e:
        logger.error(f"Limited movies unavailable for {theatre_ids}: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e

    visible = filter_and_sort(movies, set(release_type), a_list_only, sort)
    return LimitedMoviesResponse(
        status=FeedStatus.LOADED,
        theatre_ids=theatre_ids,
        movies=visible,
        total=len(visible),
    )


@router.get("/feed", response_model=FeedState)
async def get_feed_state(feed: LimitedRunFeed = Depends(get_feed)) -> FeedState:
    """Latest published state of the feed."""
    return feed.state


@router.put("/feed", response_model=FeedState)
async def refresh_feed(
    payload: FeedRequest,
    feed: LimitedRunFeed = Depends(get_feed),
) -> FeedState:
    """
    Reload the feed for a new theatre selection.

    If another refresh supersedes this one before it finishes, the feed's
    current state is returned instead of this request's stale result.
    """
    state = await feed.refresh(payload.theatre_ids)
    return state if state is not None else feed.state
