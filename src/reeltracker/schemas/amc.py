"""Pydantic models for AMC catalog API payloads."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AMCModel(BaseModel):
    """Base for catalog records: camelCase on the wire, immutable once decoded."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Attribute(AMCModel):
    """Screening attribute tag, e.g. ``{"code": "SENSORYFRIENDLY"}``."""

    code: str
    name: str = ""
    description: str | None = None


class MediaContainer(AMCModel):
    poster_dynamic: str | None = None
    hero_desktop_dynamic: str | None = None
    trailer_teaser_dynamic: str | None = None
    poster_thumbnail: str | None = Field(default=None, alias="posterDynamic180X74")


class MovieRecord(AMCModel):
    """Canonical movie metadata from the catalog."""

    id: int
    name: str
    slug: str | None = None
    synopsis: str | None = None
    run_time: int | None = None
    mpaa_rating: str | None = None
    release_date_utc: str | None = None
    attributes: list[Attribute] = Field(default_factory=list)
    available_for_a_list: bool = False
    media: MediaContainer | None = None

    @field_validator("attributes", mode="before")
    @classmethod
    def _null_attributes(cls, value):
        return [] if value is None else value

    @field_validator("available_for_a_list", mode="before")
    @classmethod
    def _null_a_list(cls, value):
        # The catalog sends null for titles that were never flagged
        return False if value is None else value

    @property
    def poster_url(self) -> str:
        """Thumbnail poster when present, else the full poster, else empty."""
        if self.media is None:
            return ""
        return self.media.poster_thumbnail or self.media.poster_dynamic or ""

    @property
    def hero_url(self) -> str:
        if self.media is None:
            return ""
        return self.media.hero_desktop_dynamic or self.media.poster_dynamic or ""

    @property
    def trailer_url(self) -> str | None:
        return self.media.trailer_teaser_dynamic if self.media else None


class ShowtimeRecord(AMCModel):
    """A single screening of one movie at one theatre."""

    id: int
    theatre_id: int
    movie_id: int
    show_date_time_utc: str | None = None
    show_date_time_local: str | None = None
    purchase_url: str = ""

    @field_validator("purchase_url", mode="before")
    @classmethod
    def _null_purchase_url(cls, value):
        return "" if value is None else value


class Location(AMCModel):
    latitude: float | None = None
    longitude: float | None = None
    postal_code: str | None = None


class TheatreRecord(AMCModel):
    id: int
    name: str
    time_zone: str | None = None
    location: Location | None = None


# ---------------------------------------------------------------------------
# Paged / embedded response envelopes
# ---------------------------------------------------------------------------


class Link(AMCModel):
    href: str


class Links(AMCModel):
    next: Link | None = None
    previous: Link | None = None


class EmbeddedMovies(AMCModel):
    movies: list[MovieRecord] = Field(default_factory=list)


class EmbeddedShowtimes(AMCModel):
    showtimes: list[ShowtimeRecord] = Field(default_factory=list)


class EmbeddedTheatres(AMCModel):
    theatres: list[TheatreRecord] = Field(default_factory=list)


class MoviesResponse(AMCModel):
    page_size: int
    page_number: int
    count: int = 0
    embedded: EmbeddedMovies = Field(default_factory=EmbeddedMovies, alias="_embedded")
    links: Links | None = Field(default=None, alias="_links")


class ShowtimesResponse(AMCModel):
    page_size: int
    page_number: int
    count: int = 0
    embedded: EmbeddedShowtimes = Field(default_factory=EmbeddedShowtimes, alias="_embedded")


class TheatresResponse(AMCModel):
    page_size: int
    page_number: int
    count: int = 0
    embedded: EmbeddedTheatres = Field(default_factory=EmbeddedTheatres, alias="_embedded")
    links: Links | None = Field(default=None, alias="_links")
