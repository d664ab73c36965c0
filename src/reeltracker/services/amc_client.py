"""AMC Theatres catalog API client for showtimes, movies and theatres."""

import asyncio
import json
import logging
from collections.abc import Iterable
from datetime import date
from typing import Any, TypeVar
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from reeltracker.cache import DataCache
from reeltracker.config import settings
from reeltracker.schemas.amc import (
    MovieRecord,
    MoviesResponse,
    ShowtimeRecord,
    ShowtimesResponse,
    TheatreRecord,
    TheatresResponse,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AMCAPIError(Exception):
    """Base class for catalog API failures."""


class NetworkError(AMCAPIError):
    """Transport failure: connection refused, DNS, timeout."""


class BadResponseError(AMCAPIError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str = "") -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code} from {url}")


class DecodingError(AMCAPIError):
    """The response body did not match the expected schema."""


class InvalidRequestError(AMCAPIError):
    """The request could not be built (missing key, malformed URL)."""


class UnknownAPIError(AMCAPIError):
    """Any other HTTP client failure."""


def format_api_date(value: date | str) -> str:
    """AMC date path segments and query params use M-D-YY."""
    if isinstance(value, str):
        return value
    return f"{value.month}-{value.day}-{value:%y}"


class AMCClient:
    """
    Client for the AMC Theatres v2 API.

    Every fetch raises an ``AMCAPIError`` subclass on failure; callers decide
    whether a failure is partial or terminal. Movie and theatre lookups can be
    served from a payload cache, showtimes are always fetched live.
    """

    BASE_URL = "https://api.amctheatres.com/v2"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        payload_cache: DataCache | None = None,
    ) -> None:
        """
        Initialize AMC client.

        Args:
            api_key: AMC vendor key (uses settings if not provided)
            base_url: API root (uses settings if not provided)
            timeout: Per-request timeout in seconds
            payload_cache: Optional cache for catalog metadata responses
        """
        self.api_key = api_key or settings.amc_api_key
        self.base_url = (base_url or settings.amc_base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.payload_cache = payload_cache
        if not self.api_key:
            logger.warning("AMC vendor key not configured")

    # ------------------------------------------------------------------
    # Showtimes
    # ------------------------------------------------------------------

    async def fetch_showtimes(
        self,
        theatre_id: int,
        movie_id: int | None = None,
        show_date: date | str | None = None,
        page_number: int = 1,
        page_size: int = 20,
    ) -> ShowtimesResponse:
        """
        Fetch one page of showtimes for a theatre.

        Args:
            theatre_id: AMC theatre ID
            movie_id: Restrict to a single movie (optional)
            show_date: Restrict to a single day (optional)
            page_number: 1-based page index
            page_size: Showtimes per page

        Returns:
            Paged showtimes response
        """
        path = f"theatres/{theatre_id}/showtimes"
        if show_date is not None:
            path += f"/{format_api_date(show_date)}"
        params: dict[str, Any] = {"page-number": page_number, "page-size": page_size}
        if movie_id is not None:
            params["movie-id"] = movie_id
        return await self._get(path, ShowtimesResponse, params)

    async def fetch_all_showtimes(
        self, theatre_id: int, page_size: int | None = None
    ) -> list[ShowtimeRecord]:
        """Fetch a theatre's full listing as a single oversized page."""
        response = await self.fetch_showtimes(
            theatre_id, page_size=page_size or settings.showtimes_page_size
        )
        return response.embedded.showtimes

    # ------------------------------------------------------------------
    # Theatres
    # ------------------------------------------------------------------

    async def fetch_theatres(
        self,
        postal_code: str | None = None,
        page_number: int = 1,
        page_size: int = 20,
    ) -> TheatresResponse:
        """
        Fetch a page of theatres, optionally near a US postal code.

        The postal code is only sent when it is five digits.
        """
        params: dict[str, Any] = {"page-number": page_number, "page-size": page_size}
        if postal_code and len(postal_code) == 5 and postal_code.isdigit():
            params["postal-code"] = postal_code
        return await self._get("theatres", TheatresResponse, params)

    async def fetch_theatre(self, theatre_id: int) -> TheatreRecord:
        return await self._get(f"theatres/{theatre_id}", TheatreRecord, cache=True)

    async def fetch_time_zones(self, theatre_ids: Iterable[int]) -> dict[int, str]:
        """
        Resolve the time zone of each theatre.

        Theatres whose lookup fails, or that report no zone, are left out of
        the result.

        Returns:
            Mapping of theatre ID to IANA zone name
        """
        ids = list(dict.fromkeys(theatre_ids))
        results = await asyncio.gather(
            *(self.fetch_theatre(theatre_id) for theatre_id in ids),
            return_exceptions=True,
        )

        zones: dict[int, str] = {}
        for theatre_id, result in zip(ids, results):
            if isinstance(result, AMCAPIError):
                logger.warning(f"Time zone lookup failed for theatre {theatre_id}: {result}")
            elif isinstance(result, BaseException):
                raise result
            elif result.time_zone:
                zones[theatre_id] = result.time_zone
        return zones

    # ------------------------------------------------------------------
    # Movies
    # ------------------------------------------------------------------

    async def fetch_movie(self, movie_id: int) -> MovieRecord:
        return await self._get(f"movies/{movie_id}", MovieRecord, cache=True)

    async def fetch_movies_by_ids(
        self,
        ids: Iterable[int],
        page_number: int = 1,
        page_size: int | None = None,
    ) -> MoviesResponse:
        """
        Batch-fetch movies by ID.

        Args:
            ids: Movie IDs
            page_number: 1-based page index
            page_size: Movies per page (defaults to the number of IDs)
        """
        id_list = list(ids)
        if not id_list:
            raise InvalidRequestError("fetch_movies_by_ids requires at least one id")
        params: dict[str, Any] = {
            "ids": ",".join(str(i) for i in id_list),
            "page-number": page_number,
            "page-size": page_size or len(id_list),
        }
        return await self._get("movies", MoviesResponse, params, cache=True)

    async def fetch_movies(
        self,
        start_date: date | str,
        end_date: date | str,
        page_number: int = 1,
        page_size: int = 20,
    ) -> MoviesResponse:
        """Fetch movies playing within a date range."""
        return await self._get(
            "movies",
            MoviesResponse,
            self._window_params(start_date, end_date, page_number, page_size),
            cache=True,
        )

    async def fetch_advance_ticket_movies(
        self,
        start_date: date | str,
        end_date: date | str,
        page_number: int = 1,
        page_size: int = 20,
    ) -> MoviesResponse:
        """Fetch movies with advance tickets on sale within a date range."""
        return await self._get(
            "movies/views/advance",
            MoviesResponse,
            self._window_params(start_date, end_date, page_number, page_size),
            cache=True,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _window_params(
        self,
        start_date: date | str,
        end_date: date | str,
        page_number: int,
        page_size: int,
    ) -> dict[str, Any]:
        return {
            "start-date": format_api_date(start_date),
            "end-date": format_api_date(end_date),
            "page-number": page_number,
            "page-size": page_size,
        }

    def _cache_key(self, url: str, params: dict[str, Any] | None) -> str:
        """Build the payload cache key: URL plus sorted query string."""
        if not params:
            return url
        return f"{url}?{urlencode(sorted(params.items()))}"

    async def _get(
        self,
        path: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
        cache: bool = False,
    ) -> ModelT:
        """
        GET a catalog endpoint and decode it into ``model``.

        Raises:
            InvalidRequestError: No vendor key, or the URL is malformed
            NetworkError: Transport failure or timeout
            BadResponseError: Non-2xx status
            DecodingError: Body is not JSON or does not match ``model``
            UnknownAPIError: Any other HTTP client error
        """
        if not self.api_key:
            raise InvalidRequestError("AMC vendor key not configured")

        url = f"{self.base_url}/{path}"
        cache_key = self._cache_key(url, params) if cache and self.payload_cache else None

        if cache_key and self.payload_cache:
            cached = await self.payload_cache.aget(cache_key)
            if cached is not None:
                try:
                    return model.model_validate(json.loads(cached))
                except (ValueError, ValidationError) as e:
                    logger.warning(f"Discarding unreadable cached payload for {url}: {e}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"X-AMC-Vendor-Key": self.api_key},
            ) as client:
                response = await client.get(url, params=params)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidRequestError(f"Invalid request for {url}: {e}") from e
        except httpx.TransportError as e:
            logger.error(f"AMC API network error for {url}: {e}")
            raise NetworkError(str(e)) from e
        except httpx.HTTPError as e:
            raise UnknownAPIError(str(e)) from e

        if not 200 <= response.status_code < 300:
            logger.error(f"AMC API HTTP error: {response.status_code} for {url}")
            raise BadResponseError(response.status_code, url)

        try:
            data = response.json()
            decoded = model.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.error(f"AMC API decode error for {url}: {e}")
            raise DecodingError(str(e)) from e

        if cache_key and self.payload_cache:
            await self.payload_cache.aput(cache_key, json.dumps(data).encode("utf-8"))

        return decoded
