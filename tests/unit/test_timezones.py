"""Tests for timezone-aware timestamp parsing."""

import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from reeltracker.utils.timezones import (
    _system_zone_name,
    days_between,
    load_zone,
    local_zone,
    parse_showtime,
    parse_timestamp,
    resolve_zone,
)

EASTERN = "America/New_York"
PACIFIC = "America/Los_Angeles"


class TestLoadZone:
    def test_loads_known_zone(self) -> None:
        zone = load_zone(EASTERN)
        assert zone is not None
        assert datetime(2025, 1, 15, tzinfo=zone).utcoffset() == timedelta(hours=-5)

    def test_returns_none_for_unknown_zone(self) -> None:
        assert load_zone("Mars/Olympus_Mons") is None

    def test_returns_none_for_empty_name(self) -> None:
        assert load_zone("") is None
        assert load_zone(None) is None

    def test_unknown_zone_warns_once(self, caplog: pytest.LogCaptureFixture) -> None:
        load_zone.cache_clear()
        with caplog.at_level(logging.WARNING, logger="reeltracker.utils.timezones"):
            for _ in range(3):
                parse_showtime("2025-06-01T20:00:00", 1, {1: "Atlantis/Lost_City"}, timezone.utc)

        warnings = [r for r in caplog.records if "Atlantis/Lost_City" in r.getMessage()]
        assert len(warnings) == 1


class TestLocalZone:
    def test_explicit_name_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TZ", PACIFIC)
        assert local_zone("Europe/Paris") == ZoneInfo("Europe/Paris")

    def test_tz_environment_variable(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.setenv("TZ", f":{EASTERN}")
        assert local_zone(localtime=tmp_path / "missing") == ZoneInfo(EASTERN)

    def test_system_link_is_dst_aware(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.delenv("TZ", raising=False)
        target = tmp_path / "zoneinfo" / "America" / "Chicago"
        target.parent.mkdir(parents=True)
        target.write_bytes(b"")
        link = tmp_path / "localtime"
        link.symlink_to(target)

        assert _system_zone_name(link) == "America/Chicago"
        zone = local_zone(localtime=link)
        assert datetime(2025, 1, 15, tzinfo=zone).utcoffset() == timedelta(hours=-6)
        assert datetime(2025, 7, 15, tzinfo=zone).utcoffset() == timedelta(hours=-5)

    def test_unlinked_file_has_no_name(self, tmp_path) -> None:
        plain = tmp_path / "localtime"
        plain.write_bytes(b"")
        assert _system_zone_name(plain) is None
        assert _system_zone_name(tmp_path / "missing") is None


class TestResolveZone:
    def test_uses_mapped_zone(self) -> None:
        zone = resolve_zone(1, {1: PACIFIC}, fallback=timezone.utc)
        assert datetime(2025, 1, 15, tzinfo=zone).utcoffset() == timedelta(hours=-8)

    def test_missing_theatre_uses_fallback(self) -> None:
        assert resolve_zone(2, {1: PACIFIC}, fallback=timezone.utc) is timezone.utc

    def test_unloadable_zone_uses_fallback(self) -> None:
        assert resolve_zone(1, {1: "Not/AZone"}, fallback=timezone.utc) is timezone.utc


class TestParseTimestamp:
    def test_trailing_z_is_utc(self) -> None:
        parsed = parse_timestamp("2025-06-01T10:00:00Z")
        assert parsed == datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)

    def test_explicit_offset_is_kept(self) -> None:
        parsed = parse_timestamp("2025-06-01T10:00:00-04:00")
        assert parsed == datetime(2025, 6, 1, 14, 0, tzinfo=timezone.utc)

    def test_naive_value_uses_supplied_zone(self) -> None:
        parsed = parse_timestamp("2025-01-15T10:00:00", load_zone(EASTERN))
        assert parsed == datetime(2025, 1, 15, 15, 0, tzinfo=timezone.utc)

    def test_result_is_utc(self) -> None:
        parsed = parse_timestamp("2025-06-01T10:00:00+02:00")
        assert parsed is not None
        assert parsed.tzinfo == timezone.utc

    def test_garbage_returns_none(self) -> None:
        assert parse_timestamp("next tuesday") is None
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None


class TestParseShowtime:
    def test_same_wall_clock_in_different_zones(self) -> None:
        # 19:00 in New York (UTC-5) is 00:00 UTC, 19:00 in LA (UTC-8) is 03:00 UTC
        zones = {1: EASTERN, 2: PACIFIC}
        east = parse_showtime("2025-01-15T19:00:00", 1, zones)
        west = parse_showtime("2025-01-15T19:00:00", 2, zones)

        assert east == datetime(2025, 1, 16, 0, 0, tzinfo=timezone.utc)
        assert west == datetime(2025, 1, 16, 3, 0, tzinfo=timezone.utc)
        assert west - east == timedelta(hours=3)

    def test_unknown_theatre_uses_fallback_zone(self) -> None:
        parsed = parse_showtime("2025-01-15T19:00:00", 99, {}, fallback=timezone.utc)
        assert parsed == datetime(2025, 1, 15, 19, 0, tzinfo=timezone.utc)


class TestDaysBetween:
    def test_whole_days(self) -> None:
        start = datetime(2025, 5, 1, tzinfo=timezone.utc)
        assert days_between(start, start + timedelta(days=20)) == 20

    def test_truncates_partial_days(self) -> None:
        start = datetime(2025, 5, 1, tzinfo=timezone.utc)
        assert days_between(start, start + timedelta(days=1, hours=23)) == 1

    def test_truncates_toward_zero_for_future_release(self) -> None:
        start = datetime(2025, 5, 2, tzinfo=timezone.utc)
        assert days_between(start, start - timedelta(hours=12)) == 0
        assert days_between(start, start - timedelta(days=2, hours=1)) == -2
