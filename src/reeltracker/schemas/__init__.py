"""Pydantic schemas for catalog payloads and API responses."""

from reeltracker.schemas.amc import (
    Attribute,
    MediaContainer,
    MovieRecord,
    MoviesResponse,
    ShowtimeRecord,
    ShowtimesResponse,
    TheatreRecord,
    TheatresResponse,
)
from reeltracker.schemas.limited_movie import (
    ClassifiedMovie,
    FeedRequest,
    FeedState,
    FeedStatus,
    LimitedMoviesResponse,
    ReleaseType,
    SortOption,
)

__all__ = [
    "Attribute",
    "MediaContainer",
    "MovieRecord",
    "MoviesResponse",
    "ShowtimeRecord",
    "ShowtimesResponse",
    "TheatreRecord",
    "TheatresResponse",
    "ClassifiedMovie",
    "FeedRequest",
    "FeedState",
    "FeedStatus",
    "LimitedMoviesResponse",
    "ReleaseType",
    "SortOption",
]
