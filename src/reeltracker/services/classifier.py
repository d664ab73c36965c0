"""Release-type classification for movies with showing aggregates."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from reeltracker.config import Settings
from reeltracker.schemas.amc import MovieRecord
from reeltracker.schemas.limited_movie import ClassifiedMovie, ReleaseType
from reeltracker.services.showtime_aggregator import MovieAggregate
from reeltracker.utils.timezones import days_between, parse_timestamp

logger = logging.getLogger(__name__)

_NEVER = datetime.max.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ClassificationRules:
    """
    Thresholds for the release-type rule chain.

    Rules are evaluated in order and the first match wins:

    1. Live: an attribute code contains "live"
    2. Sensory-Friendly: an attribute code contains "sensory"
    3. Special Event: released at most ``special_event_max_days`` ago and
       the busiest theatre has at most ``special_event_threshold`` showings
    4. Leaving Soon: released more than ``standard_threshold`` days ago and
       the quietest theatre has at most ``standard_threshold`` showings
    5. Limited Run: released at most ``standard_threshold`` days ago and
       the quietest theatre has at most ``standard_threshold`` showings

    With ``inclusive_count_threshold`` off, "at most" becomes "fewer than"
    for the showing counts.
    """

    standard_threshold: int = 10
    special_event_threshold: int = 5
    special_event_max_days: int = 1
    inclusive_count_threshold: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClassificationRules":
        return cls(
            standard_threshold=settings.standard_threshold,
            special_event_threshold=settings.special_event_threshold,
            special_event_max_days=settings.special_event_max_days,
            inclusive_count_threshold=settings.inclusive_count_threshold,
        )

    def count_within(self, count: int, threshold: int) -> bool:
        if self.inclusive_count_threshold:
            return count <= threshold
        return count < threshold


def has_attribute(movie: MovieRecord, needle: str) -> bool:
    """Whether any attribute code contains ``needle``, ignoring case."""
    needle = needle.lower()
    return any(needle in attribute.code.lower() for attribute in movie.attributes)


def days_since_release(movie: MovieRecord, now: datetime) -> int | None:
    """Whole days since release, or None if the release date is missing or invalid."""
    released = parse_timestamp(movie.release_date_utc)
    if released is None:
        return None
    return days_between(released, now)


def determine_release_type(
    movie: MovieRecord,
    aggregate: MovieAggregate,
    rules: ClassificationRules,
    now: datetime,
) -> ReleaseType | None:
    """
    Apply the rule chain to one movie.

    Returns:
        The first matching release type, or None if no rule matches
    """
    if has_attribute(movie, "live"):
        return ReleaseType.LIVE
    if has_attribute(movie, "sensory"):
        return ReleaseType.SENSORY_FRIENDLY

    age = days_since_release(movie, now)
    if age is None:
        return None

    threshold = rules.standard_threshold
    if age <= rules.special_event_max_days and rules.count_within(
        aggregate.max_count, rules.special_event_threshold
    ):
        return ReleaseType.SPECIAL_EVENT
    if age > threshold and rules.count_within(aggregate.min_count, threshold):
        return ReleaseType.LEAVING_SOON
    if age <= threshold and rules.count_within(aggregate.min_count, threshold):
        return ReleaseType.LIMITED_RUN
    return None


def build_classified_movie(
    movie: MovieRecord, aggregate: MovieAggregate, release_type: ReleaseType
) -> ClassifiedMovie:
    return ClassifiedMovie(
        id=movie.id,
        name=movie.name,
        slug=movie.slug,
        synopsis=movie.synopsis,
        run_time=movie.run_time,
        mpaa_rating=movie.mpaa_rating,
        release_date=parse_timestamp(movie.release_date_utc),
        poster_url=movie.poster_url,
        hero_url=movie.hero_url,
        trailer_url=movie.trailer_url,
        total_count=aggregate.total_count,
        min_count=aggregate.min_count,
        max_count=aggregate.max_count,
        next_showing=aggregate.next_showing,
        next_showing_url=aggregate.next_showing_url,
        theatre_ids=sorted(aggregate.theatre_ids),
        available_for_a_list=movie.available_for_a_list,
        release_type=release_type,
    )


def sort_by_next_showing(movies: Iterable[ClassifiedMovie]) -> list[ClassifiedMovie]:
    """Soonest first; movies without a next showing go last, ties by name."""
    return sorted(
        movies,
        key=lambda m: (m.next_showing or _NEVER, m.name.casefold(), m.id),
    )


def classify_movies(
    movies: Iterable[MovieRecord],
    aggregates: Mapping[int, MovieAggregate],
    rules: ClassificationRules,
    now: datetime,
) -> list[ClassifiedMovie]:
    """
    Classify every movie that has an aggregate.

    Movies without an aggregate, or that match no rule, are dropped.

    Returns:
        Classified movies sorted by next showing
    """
    classified: list[ClassifiedMovie] = []
    seen: set[int] = set()
    for movie in movies:
        aggregate = aggregates.get(movie.id)
        if aggregate is None or movie.id in seen:
            continue
        seen.add(movie.id)

        release_type = determine_release_type(movie, aggregate, rules, now)
        if release_type is None:
            logger.debug(f"No release type for '{movie.name}' ({movie.id}); dropping")
            continue
        classified.append(build_classified_movie(movie, aggregate, release_type))

    return sort_by_next_showing(classified)
