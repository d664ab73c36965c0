"""Shared test fixtures."""

from collections.abc import Callable
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI

from reeltracker.api.routes import cache, health, images, limited_movies, movies, theatres
from reeltracker.schemas import MovieRecord, ShowtimeRecord


@pytest.fixture
def test_app() -> FastAPI:
    """Minimal FastAPI app without the scheduler lifespan, for API tests."""
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(limited_movies.router, prefix="/api")
    app.include_router(movies.router, prefix="/api")
    app.include_router(theatres.router, prefix="/api")
    app.include_router(images.router, prefix="/api")
    app.include_router(cache.router, prefix="/api")
    return app


class FakeClock:
    """Mutable wall clock returning epoch seconds."""

    def __init__(self, now: float = 1_750_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def now() -> datetime:
    """Reference instant used across aggregation and classification tests."""
    return datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def build_movie(
    id: int,
    name: str = "",
    release_date: str | None = "2025-05-01T00:00:00Z",
    attributes: list[str] | None = None,
    a_list: bool = False,
    poster: str | None = None,
) -> MovieRecord:
    data = {
        "id": id,
        "name": name or f"Movie {id}",
        "slug": f"movie-{id}",
        "releaseDateUtc": release_date,
        "attributes": [{"code": code, "name": code} for code in attributes or []],
        "availableForAList": a_list,
    }
    if poster:
        data["media"] = {"posterDynamic": poster}
    return MovieRecord.model_validate(data)


def build_showtime(
    id: int,
    movie_id: int,
    theatre_id: int,
    local: str | None,
    utc: str | None = None,
    purchase_url: str = "",
) -> ShowtimeRecord:
    return ShowtimeRecord.model_validate(
        {
            "id": id,
            "theatreId": theatre_id,
            "movieId": movie_id,
            "showDateTimeLocal": local,
            "showDateTimeUtc": utc,
            "purchaseUrl": purchase_url or f"https://amc.test/buy/{id}",
        }
    )


@pytest.fixture
def make_movie() -> Callable[..., MovieRecord]:
    """Factory for catalog movie records in their wire shape."""
    return build_movie


@pytest.fixture
def make_showtime() -> Callable[..., ShowtimeRecord]:
    """Factory for catalog showtime records in their wire shape."""
    return build_showtime
