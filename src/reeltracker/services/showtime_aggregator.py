"""Per-movie aggregation of showtimes collected across theatres."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, tzinfo

from reeltracker.schemas.amc import ShowtimeRecord
from reeltracker.utils.timezones import parse_showtime, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaggedShowtime:
    """A showtime plus the theatre whose listing it came from."""

    theatre_id: int
    showtime: ShowtimeRecord


@dataclass
class MovieAggregate:
    """
    Showing statistics for one movie across the requested theatres.

    Only showings at or after the aggregation's "now" are counted.
    """

    movie_id: int
    theatre_counts: dict[int, int] = field(default_factory=dict)
    next_showing: datetime | None = None
    next_showing_url: str = ""

    @property
    def total_count(self) -> int:
        return sum(self.theatre_counts.values())

    @property
    def min_count(self) -> int:
        return min(self.theatre_counts.values(), default=0)

    @property
    def max_count(self) -> int:
        return max(self.theatre_counts.values(), default=0)

    @property
    def theatre_ids(self) -> frozenset[int]:
        return frozenset(self.theatre_counts)


def showtime_instant(
    tagged: TaggedShowtime,
    time_zones: Mapping[int, str],
    local_zone: tzinfo | None = None,
) -> datetime | None:
    """
    Absolute instant of a showing.

    The local-time string is read in the originating theatre's zone; the UTC
    string is only used when the local one is missing or unparsable.
    """
    showtime = tagged.showtime
    instant = parse_showtime(
        showtime.show_date_time_local, tagged.theatre_id, time_zones, local_zone
    )
    if instant is None:
        instant = parse_timestamp(showtime.show_date_time_utc)
    return instant


def aggregate_showtimes(
    tagged: Iterable[TaggedShowtime],
    time_zones: Mapping[int, str],
    now: datetime,
    local_zone: tzinfo | None = None,
) -> dict[int, MovieAggregate]:
    """
    Group showtimes by movie and compute per-movie statistics.

    Args:
        tagged: Showtimes tagged with their originating theatre
        time_zones: Theatre ID to IANA zone name
        now: Aware reference instant; earlier showings are ignored
        local_zone: Zone for theatres missing from ``time_zones``

    Returns:
        Aggregates keyed by movie ID, in first-seen order. Movies without a
        single future showing are left out.
    """
    aggregates: dict[int, MovieAggregate] = {}
    skipped = 0

    for entry in tagged:
        movie_id = entry.showtime.movie_id
        aggregate = aggregates.setdefault(movie_id, MovieAggregate(movie_id=movie_id))

        instant = showtime_instant(entry, time_zones, local_zone)
        if instant is None:
            skipped += 1
            continue
        if instant < now:
            continue

        counts = aggregate.theatre_counts
        counts[entry.theatre_id] = counts.get(entry.theatre_id, 0) + 1

        # Strict comparison keeps the first-seen link on equal instants
        if aggregate.next_showing is None or instant < aggregate.next_showing:
            aggregate.next_showing = instant
            aggregate.next_showing_url = entry.showtime.purchase_url

    if skipped:
        logger.warning(f"Skipped {skipped} showtimes with unparsable timestamps")

    return {
        movie_id: aggregate
        for movie_id, aggregate in aggregates.items()
        if aggregate.total_count > 0
    }
