"""Pydantic schemas for classified limited-run movies."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ReleaseType(StrEnum):
    """Classification bucket for a movie, in rule-priority order."""

    LIVE = "Live"
    SENSORY_FRIENDLY = "Sensory-Friendly"
    SPECIAL_EVENT = "Special Event"
    LEAVING_SOON = "Leaving Soon"
    LIMITED_RUN = "Limited Run"


class SortOption(StrEnum):
    ALPHABETICAL = "alphabetical"
    NEXT_SHOWING = "next_showing"
    REMAINING_SHOWINGS = "remaining_showings"


class FeedStatus(StrEnum):
    IDLE = "idle"
    NO_THEATRES = "no_theatres"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class ClassifiedMovie(BaseModel):
    """A movie with its showing statistics and exactly one release type."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    slug: str | None = None
    synopsis: str | None = None
    run_time: int | None = None
    mpaa_rating: str | None = None
    release_date: datetime | None = None
    poster_url: str = ""
    hero_url: str = ""
    trailer_url: str | None = None

    total_count: int  # future showings across all theatres
    min_count: int
    max_count: int
    next_showing: datetime | None = None
    next_showing_url: str = ""
    theatre_ids: list[int] = Field(default_factory=list)

    available_for_a_list: bool = False
    release_type: ReleaseType


class LimitedMoviesResponse(BaseModel):
    """Response for the limited-movies endpoint."""

    status: FeedStatus
    theatre_ids: list[int]
    movies: list[ClassifiedMovie]
    total: int


class FeedState(BaseModel):
    """Snapshot of the single-client feed."""

    status: FeedStatus = FeedStatus.IDLE
    theatre_ids: list[int] = Field(default_factory=list)
    movies: list[ClassifiedMovie] = Field(default_factory=list)
    error: str | None = None
    generation: int = 0


class FeedRequest(BaseModel):
    theatre_ids: list[int]
