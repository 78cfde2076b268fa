"""Pydantic schemas for the unified showtime record."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Chain = Literal["cineville", "pathe"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys to match the frontend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        """Serialize to the wire format (camelCase, optional fields omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Poster(CamelModel):
    url: str


class Address(CamelModel):
    city: str | None = None


class Theater(CamelModel):
    name: str
    address: Address | None = None


class Film(CamelModel):
    """Film details attached to a showtime."""

    title: str
    slug: str
    poster: Poster | None = None
    duration: int = Field(default=0, ge=0)  # minutes, 0 if unknown
    directors: list[str] = Field(default_factory=list)


class FilmMetadata(CamelModel):
    """Supplementary film metadata looked up from TMDb."""

    poster: Poster | None = None
    directors: list[str] = Field(default_factory=list)
    duration: int = Field(default=0, ge=0)


class Show(CamelModel):
    """
    A single showtime from one cinema chain.

    Start and end times are always stored in UTC.
    """

    id: str
    start_date: datetime
    end_date: datetime
    ticketing_url: str
    film: Film
    theater: Theater
    chain: Chain

    @field_validator("start_date", "end_date")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("showtime timestamps must be timezone-aware")
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def check_order(self) -> "Show":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class ShowtimeList(BaseModel):
    data: list[Show]


class ShowtimesData(BaseModel):
    showtimes: ShowtimeList


class ShowtimesResponse(BaseModel):
    """Response envelope: ``{"data": {"showtimes": {"data": [...]}}}``."""

    data: ShowtimesData

    @classmethod
    def from_shows(cls, shows: list[Show]) -> "ShowtimesResponse":
        return cls(data=ShowtimesData(showtimes=ShowtimeList(data=shows)))

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
