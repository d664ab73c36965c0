"""Tests for release-type classification."""

from datetime import datetime, timezone

import pytest

from reeltracker.config import Settings
from reeltracker.schemas import ReleaseType
from reeltracker.services.classifier import (
    ClassificationRules,
    build_classified_movie,
    classify_movies,
    days_since_release,
    determine_release_type,
    has_attribute,
    sort_by_next_showing,
)
from reeltracker.services.showtime_aggregator import MovieAggregate

RULES = ClassificationRules()


def aggregate(movie_id: int = 1, next_showing: datetime | None = None, **counts: int):
    """Aggregate with per-theatre counts given as ``t<id>=<count>``."""
    return MovieAggregate(
        movie_id=movie_id,
        theatre_counts={int(k[1:]): v for k, v in counts.items()},
        next_showing=next_showing,
        next_showing_url=f"https://amc.test/buy/{movie_id}" if next_showing else "",
    )


class TestClassificationRules:
    def test_from_settings(self) -> None:
        settings = Settings(
            standard_threshold=7,
            special_event_threshold=3,
            special_event_max_days=2,
            inclusive_count_threshold=False,
        )
        rules = ClassificationRules.from_settings(settings)
        assert rules == ClassificationRules(7, 3, 2, False)

    def test_count_within_inclusive(self) -> None:
        assert RULES.count_within(10, 10)
        assert not RULES.count_within(11, 10)

    def test_count_within_exclusive(self) -> None:
        rules = ClassificationRules(inclusive_count_threshold=False)
        assert rules.count_within(9, 10)
        assert not rules.count_within(10, 10)


class TestHasAttribute:
    def test_substring_match_ignores_case(self, make_movie) -> None:
        movie = make_movie(1, attributes=["MetOpera_LiveEvent"])
        assert has_attribute(movie, "live")
        assert not has_attribute(movie, "sensory")

    def test_no_attributes(self, make_movie) -> None:
        assert not has_attribute(make_movie(1), "live")


class TestDaysSinceRelease:
    def test_whole_days(self, make_movie, now) -> None:
        movie = make_movie(1, release_date="2025-05-12T12:00:00Z")
        assert days_since_release(movie, now) == 20

    def test_missing_date(self, make_movie, now) -> None:
        assert days_since_release(make_movie(1, release_date=None), now) is None

    def test_invalid_date(self, make_movie, now) -> None:
        assert days_since_release(make_movie(1, release_date="not-a-date"), now) is None


class TestDetermineReleaseType:
    def test_live_takes_precedence(self, make_movie, now) -> None:
        movie = make_movie(1, attributes=["SENSORYFRIENDLY", "LIVEBROADCAST"])
        assert determine_release_type(movie, aggregate(t1=50), RULES, now) == ReleaseType.LIVE

    def test_live_without_release_date(self, make_movie, now) -> None:
        movie = make_movie(1, release_date=None, attributes=["LIVE"])
        assert determine_release_type(movie, aggregate(t1=50), RULES, now) == ReleaseType.LIVE

    def test_sensory_friendly(self, make_movie, now) -> None:
        movie = make_movie(1, attributes=["SensoryFriendly"])
        assert (
            determine_release_type(movie, aggregate(t1=50), RULES, now)
            == ReleaseType.SENSORY_FRIENDLY
        )

    def test_special_event(self, make_movie, now) -> None:
        movie = make_movie(1, release_date="2025-06-01T00:00:00Z")
        assert (
            determine_release_type(movie, aggregate(t1=3, t2=5), RULES, now)
            == ReleaseType.SPECIAL_EVENT
        )

    def test_busy_new_release_is_limited_run_not_special(self, make_movie, now) -> None:
        movie = make_movie(1, release_date="2025-06-01T00:00:00Z")
        assert (
            determine_release_type(movie, aggregate(t1=2, t2=6), RULES, now)
            == ReleaseType.LIMITED_RUN
        )

    def test_unreleased_movie_can_be_special_event(self, make_movie, now) -> None:
        movie = make_movie(1, release_date="2025-06-20T00:00:00Z")
        assert (
            determine_release_type(movie, aggregate(t1=1), RULES, now)
            == ReleaseType.SPECIAL_EVENT
        )

    def test_leaving_soon(self, make_movie, now) -> None:
        movie = make_movie(1, release_date="2025-05-12T12:00:00Z")
        assert (
            determine_release_type(movie, aggregate(t1=4, t2=30), RULES, now)
            == ReleaseType.LEAVING_SOON
        )

    def test_limited_run(self, make_movie, now) -> None:
        movie = make_movie(1, release_date="2025-05-30T12:00:00Z")
        assert (
            determine_release_type(movie, aggregate(t1=3, t2=12), RULES, now)
            == ReleaseType.LIMITED_RUN
        )

    def test_wide_release_matches_nothing(self, make_movie, now) -> None:
        movie = make_movie(1, release_date="2025-05-12T12:00:00Z")
        assert determine_release_type(movie, aggregate(t1=25, t2=30), RULES, now) is None

    def test_missing_release_date_matches_nothing(self, make_movie, now) -> None:
        movie = make_movie(1, release_date=None)
        assert determine_release_type(movie, aggregate(t1=1), RULES, now) is None

    @pytest.mark.parametrize(
        ("inclusive", "expected"),
        [(True, ReleaseType.LIMITED_RUN), (False, None)],
    )
    def test_count_at_threshold(self, make_movie, now, inclusive, expected) -> None:
        rules = ClassificationRules(inclusive_count_threshold=inclusive)
        movie = make_movie(1, release_date="2025-05-28T12:00:00Z")
        assert determine_release_type(movie, aggregate(t1=10, t2=40), rules, now) == expected


class TestBuildClassifiedMovie:
    def test_copies_metadata_and_statistics(self, make_movie) -> None:
        next_showing = datetime(2025, 6, 2, 0, 0, tzinfo=timezone.utc)
        movie = make_movie(
            7,
            name="Stop Making Sense",
            a_list=True,
            poster="https://img.test/poster.jpg",
        )
        classified = build_classified_movie(
            movie, aggregate(7, next_showing, t3=2, t1=5), ReleaseType.LIMITED_RUN
        )

        assert classified.name == "Stop Making Sense"
        assert classified.total_count == 7
        assert classified.min_count == 2
        assert classified.max_count == 5
        assert classified.theatre_ids == [1, 3]
        assert classified.next_showing == next_showing
        assert classified.next_showing_url == "https://amc.test/buy/7"
        assert classified.poster_url == "https://img.test/poster.jpg"
        assert classified.available_for_a_list is True
        assert classified.release_date == datetime(2025, 5, 1, tzinfo=timezone.utc)


class TestClassifyMovies:
    def test_drops_unmatched_and_unaggregated(self, make_movie, now) -> None:
        movies = [
            make_movie(1, release_date="2025-05-30T12:00:00Z"),
            make_movie(2, release_date="2025-05-30T12:00:00Z"),
            make_movie(3, release_date="2025-05-12T12:00:00Z"),
        ]
        aggregates = {1: aggregate(1, t1=2), 3: aggregate(3, t1=40)}

        result = classify_movies(movies, aggregates, RULES, now)

        assert [m.id for m in result] == [1]

    def test_duplicate_movies_classified_once(self, make_movie, now) -> None:
        movie = make_movie(1, release_date="2025-05-30T12:00:00Z")
        result = classify_movies([movie, movie], {1: aggregate(1, t1=2)}, RULES, now)
        assert len(result) == 1

    def test_each_movie_has_exactly_one_type(self, make_movie, now) -> None:
        movies = [
            make_movie(1, attributes=["LIVE", "SENSORY"]),
            make_movie(2, release_date="2025-05-12T12:00:00Z"),
        ]
        aggregates = {1: aggregate(1, t1=1), 2: aggregate(2, t1=1)}

        result = {m.id: m.release_type for m in classify_movies(movies, aggregates, RULES, now)}

        assert result == {1: ReleaseType.LIVE, 2: ReleaseType.LEAVING_SOON}


class TestSortByNextShowing:
    def test_soonest_first_then_name(self, make_movie) -> None:
        early = datetime(2025, 6, 2, tzinfo=timezone.utc)
        late = datetime(2025, 6, 3, tzinfo=timezone.utc)
        movies = [
            build_classified_movie(make_movie(1, "Zodiac"), aggregate(1, late, t1=1), ReleaseType.LIMITED_RUN),
            build_classified_movie(make_movie(2, "alien"), aggregate(2, late, t1=1), ReleaseType.LIMITED_RUN),
            build_classified_movie(make_movie(3, "Brazil"), aggregate(3, early, t1=1), ReleaseType.LIMITED_RUN),
        ]

        assert [m.name for m in sort_by_next_showing(movies)] == ["Brazil", "alien", "Zodiac"]

    def test_missing_next_showing_sorts_last(self, make_movie) -> None:
        soon = datetime(2025, 6, 2, tzinfo=timezone.utc)
        movies = [
            build_classified_movie(make_movie(1, "A"), aggregate(1, None, t1=1), ReleaseType.LIVE),
            build_classified_movie(make_movie(2, "B"), aggregate(2, soon, t1=1), ReleaseType.LIVE),
        ]

        assert [m.id for m in sort_by_next_showing(movies)] == [2, 1]
