"""Timezone-aware parsing of catalog timestamps."""

import logging
import os
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

SYSTEM_LOCALTIME = Path("/etc/localtime")


def _system_zone_name(localtime: Path = SYSTEM_LOCALTIME) -> str | None:
    """IANA name behind the system localtime link, e.g. ".../zoneinfo/Europe/Paris"."""
    try:
        parts = localtime.resolve(strict=True).parts
    except OSError:
        return None
    if "zoneinfo" not in parts:
        return None
    return "/".join(parts[parts.index("zoneinfo") + 1 :]) or None


def local_zone(name: str | None = None, localtime: Path = SYSTEM_LOCALTIME) -> tzinfo:
    """
    Time zone of the running process as a DST-aware IANA zone.

    Resolution order: ``name``, the ``TZ`` environment variable, then the
    zone the system localtime file links to. Only when none of those names
    a loadable zone is the current fixed UTC offset returned, which does not
    follow DST changes.
    """
    for candidate in (name, os.environ.get("TZ", "").lstrip(":"), _system_zone_name(localtime)):
        zone = load_zone(candidate)
        if zone is not None:
            return zone
    return datetime.now().astimezone().tzinfo or timezone.utc


@lru_cache(maxsize=None)
def load_zone(name: str | None) -> tzinfo | None:
    """
    Load an IANA time zone by name.

    Results are memoized, so an unknown name is only reported once.

    Args:
        name: Zone identifier such as "America/New_York"

    Returns:
        The zone, or None if the name is empty or unknown
    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Unknown time zone '{name}': {e}")
        return None


def resolve_zone(
    theatre_id: int,
    zone_map: Mapping[int, str],
    fallback: tzinfo | None = None,
) -> tzinfo:
    """
    Pick the zone used to interpret a theatre's local timestamps.

    Falls back to ``fallback`` (the process's local zone when not given) if
    the theatre has no entry in ``zone_map`` or its entry cannot be loaded.
    """
    zone = load_zone(zone_map.get(theatre_id))
    if zone is not None:
        return zone
    return fallback or local_zone()


def parse_timestamp(value: str | None, zone: tzinfo = timezone.utc) -> datetime | None:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Strings without an offset are interpreted in ``zone``; strings that carry
    one (including a trailing "Z") keep it.

    Returns:
        Aware datetime in UTC, or None if the value is empty or unparsable
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(timezone.utc)


def parse_showtime(
    timestamp: str | None,
    theatre_id: int,
    zone_map: Mapping[int, str],
    fallback: tzinfo | None = None,
) -> datetime | None:
    """
    Convert a theatre-local showtime string to an absolute instant.

    Example:
        >>> zones = {1: "America/New_York"}
        >>> parse_showtime("2025-06-01T20:00:00", 1, zones).isoformat()
        '2025-06-02T00:00:00+00:00'
    """
    return parse_timestamp(timestamp, resolve_zone(theatre_id, zone_map, fallback))


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, truncated toward zero."""
    return int((end - start) / timedelta(days=1))
