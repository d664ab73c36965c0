"""Scheduled job that purges expired content cache entries."""

import logging

from reeltracker.cache import DataCache

logger = logging.getLogger(__name__)


def purge_expired_caches(*caches: DataCache) -> int:
    """Purge expired entries from every cache.

    Runs at startup and on the scheduler's interval. A failure in one cache
    is logged and does not stop the others.

    Returns:
        Total number of entries removed
    """
    total = 0
    for cache in caches:
        try:
            total += cache.purge_expired()
        except Exception as e:
            logger.error(f"Error purging cache '{cache.name}': {e}", exc_info=True)

    logger.info(f"Cache purge complete: {total} expired entries removed")
    return total
