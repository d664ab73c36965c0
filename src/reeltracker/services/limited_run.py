"""Fetch, aggregate and classify limited-run movies across theatres."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo

from reeltracker.config import settings
from reeltracker.schemas.amc import MovieRecord, ShowtimeRecord
from reeltracker.schemas.limited_movie import ClassifiedMovie, FeedState, FeedStatus
from reeltracker.services.amc_client import AMCAPIError, AMCClient
from reeltracker.services.classifier import ClassificationRules, classify_movies
from reeltracker.services.showtime_aggregator import TaggedShowtime, aggregate_showtimes
from reeltracker.utils.timezones import local_zone as system_zone

logger = logging.getLogger(__name__)


class LimitedRunError(Exception):
    """A fetch failed badly enough that no meaningful result can be produced."""


@dataclass
class TheatreFetchResult:
    """Outcome of fetching one theatre's listing."""

    theatre_id: int
    showtimes: list[ShowtimeRecord] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LimitedRunService:
    """
    Builds the classified limited-run list for a set of theatres.

    A run fans out one showtime fetch per theatre alongside a time-zone
    lookup, aggregates the results per movie, batch-fetches metadata for
    the movies that still have future showings and classifies them.

    Partial failures degrade: a failed theatre contributes no showings, a
    failed time-zone lookup leaves those theatres on the local zone, and a
    failed metadata batch drops its movies. Only when every theatre fetch
    (or every metadata batch) fails is ``LimitedRunError`` raised.
    """

    def __init__(
        self,
        client: AMCClient,
        rules: ClassificationRules | None = None,
        showtimes_page_size: int | None = None,
        movies_batch_size: int | None = None,
        local_zone: tzinfo | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize the service.

        Args:
            client: Catalog API client
            rules: Classification thresholds (uses settings if not provided)
            showtimes_page_size: Page size for per-theatre listings
            movies_batch_size: Maximum IDs per movie metadata request
            local_zone: Zone for theatres with no resolved time zone (uses
                settings, then the system zone, if not provided)
            clock: Returns the current aware datetime
        """
        self.client = client
        self.rules = rules or ClassificationRules.from_settings(settings)
        self.showtimes_page_size = showtimes_page_size or settings.showtimes_page_size
        self.movies_batch_size = movies_batch_size or settings.movies_batch_size
        self.local_zone = local_zone or system_zone(settings.local_time_zone)
        self.clock = clock

    # ------------------------------------------------------------------
    # Fetch phase
    # ------------------------------------------------------------------

    async def _fetch_theatre(self, theatre_id: int) -> TheatreFetchResult:
        try:
            showtimes = await self.client.fetch_all_showtimes(
                theatre_id, page_size=self.showtimes_page_size
            )
        except AMCAPIError as e:
            logger.warning(f"Showtime fetch failed for theatre {theatre_id}: {e}")
            return TheatreFetchResult(theatre_id=theatre_id, error=e)
        logger.debug(f"Fetched {len(showtimes)} showtimes for theatre {theatre_id}")
        return TheatreFetchResult(theatre_id=theatre_id, showtimes=showtimes)

    async def fetch_showtimes(self, theatre_ids: Iterable[int]) -> list[TheatreFetchResult]:
        """Fetch every theatre's listing concurrently, one result per theatre."""
        return list(
            await asyncio.gather(*(self._fetch_theatre(theatre_id) for theatre_id in theatre_ids))
        )

    async def fetch_time_zones(self, theatre_ids: Iterable[int]) -> dict[int, str]:
        """Resolve theatre time zones, degrading to an empty map on failure."""
        try:
            return await self.client.fetch_time_zones(theatre_ids)
        except AMCAPIError as e:
            logger.warning(f"Time zone lookup failed, using local zone for all theatres: {e}")
            return {}

    # ------------------------------------------------------------------
    # Movie metadata phase
    # ------------------------------------------------------------------

    async def _fetch_movie_batch(self, ids: list[int]) -> list[MovieRecord] | None:
        try:
            response = await self.client.fetch_movies_by_ids(ids, page_size=len(ids))
        except AMCAPIError as e:
            logger.warning(f"Movie metadata fetch failed for {len(ids)} movies: {e}")
            return None
        return response.embedded.movies

    async def fetch_movies(self, movie_ids: Iterable[int]) -> list[MovieRecord]:
        """
        Batch-fetch movie metadata.

        Raises:
            LimitedRunError: Every batch failed
        """
        ids = list(dict.fromkeys(movie_ids))
        if not ids:
            return []

        size = self.movies_batch_size
        batches = [ids[i : i + size] for i in range(0, len(ids), size)]
        results = await asyncio.gather(*(self._fetch_movie_batch(batch) for batch in batches))

        if all(result is None for result in results):
            raise LimitedRunError(f"Movie metadata unavailable for all {len(ids)} movies")
        return [movie for result in results if result for movie in result]

    # ------------------------------------------------------------------
    # One-stop fetch
    # ------------------------------------------------------------------

    async def fetch_limited_movies(self, theatre_ids: Iterable[int]) -> list[ClassifiedMovie]:
        """
        Fetch, aggregate and classify movies for the given theatres.

        Args:
            theatre_ids: Theatre IDs to include

        Returns:
            Classified movies sorted by next showing (empty if no theatres)

        Raises:
            LimitedRunError: Every theatre fetch or every metadata batch failed
        """
        ids = list(dict.fromkeys(theatre_ids))
        if not ids:
            return []

        now = self.clock()
        results, time_zones = await asyncio.gather(
            self.fetch_showtimes(ids),
            self.fetch_time_zones(ids),
        )

        failed = [r.theatre_id for r in results if not r.ok]
        if len(failed) == len(results):
            raise LimitedRunError(f"Showtime fetch failed for every theatre: {failed}")
        if failed:
            logger.warning(f"Continuing without showtimes for theatres {failed}")

        tagged = [
            TaggedShowtime(theatre_id=result.theatre_id, showtime=showtime)
            for result in results
            for showtime in result.showtimes
        ]
        aggregates = aggregate_showtimes(tagged, time_zones, now, self.local_zone)
        logger.info(
            f"Aggregated {len(tagged)} showtimes into {len(aggregates)} movies "
            f"across {len(ids)} theatres"
        )

        movies = await self.fetch_movies(aggregates)
        classified = classify_movies(movies, aggregates, self.rules, now)
        logger.info(f"Classified {len(classified)} of {len(movies)} movies")
        return classified

    # ------------------------------------------------------------------
    # Date-window movie queries
    # ------------------------------------------------------------------

    async def fetch_window_movies(
        self,
        lookback_days: int | None = None,
        lookahead_days: int | None = None,
        page_size: int | None = None,
    ) -> list[MovieRecord]:
        """
        Fetch movies in the current release window plus advance-ticket titles.

        Regular titles come first; advance titles already present are skipped.

        Raises:
            LimitedRunError: Both window queries failed
        """
        today: date = self.clock().date()
        if lookback_days is None:
            lookback_days = settings.movie_window_lookback_days
        if lookahead_days is None:
            lookahead_days = settings.movie_window_lookahead_days
        start = today - timedelta(days=lookback_days)
        end = today + timedelta(days=lookahead_days)
        size = page_size or settings.window_page_size

        regular, advance = await asyncio.gather(
            self.client.fetch_movies(start, end, page_size=size),
            self.client.fetch_advance_ticket_movies(today, end, page_size=size),
            return_exceptions=True,
        )

        merged: dict[int, MovieRecord] = {}
        errors: list[BaseException] = []
        for label, outcome in (("regular", regular), ("advance", advance)):
            if isinstance(outcome, AMCAPIError):
                logger.warning(f"{label.capitalize()} movie window fetch failed: {outcome}")
                errors.append(outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            for movie in outcome.embedded.movies:
                merged.setdefault(movie.id, movie)

        if len(errors) == 2:
            raise LimitedRunError("Both movie window queries failed")
        return list(merged.values())


class LimitedRunFeed:
    """
    Holds the latest classified list for a single client.

    Each ``refresh`` starts a new generation. A refresh whose generation has
    been superseded by the time its fetch completes does not publish its
    result, so a slow request for an old theatre set never overwrites a newer one.
    """

    def __init__(self, service: LimitedRunService) -> None:
        self.service = service
        self._generation = 0
        self.state = FeedState()

    @property
    def generation(self) -> int:
        return self._generation

    async def refresh(self, theatre_ids: Iterable[int]) -> FeedState | None:
        """
        Reload the feed for ``theatre_ids``.

        Returns:
            The published state, or None if a newer refresh superseded this one
        """
        self._generation += 1
        generation = self._generation
        ids = sorted(set(theatre_ids))

        if not ids:
            self.state = FeedState(status=FeedStatus.NO_THEATRES, generation=generation)
            return self.state

        self.state = FeedState(
            status=FeedStatus.LOADING, theatre_ids=ids, generation=generation
        )
        try:
            movies = await self.service.fetch_limited_movies(ids)
            result = FeedState(
                status=FeedStatus.LOADED,
                theatre_ids=ids,
                movies=movies,
                generation=generation,
            )
        except LimitedRunError as e:
            logger.error(f"Limited-run load failed for theatres {ids}: {e}")
            result = FeedState(
                status=FeedStatus.FAILED,
                theatre_ids=ids,
                error=str(e),
                generation=generation,
            )

        if generation != self._generation:
            logger.debug(f"Discarding stale feed result (generation {generation})")
            return None

        self.state = result
        return result
