"""Pydantic schemas for Cineville GraphQL responses.

Every response is either a success shape (``data``) or an error shape
(``errors``); the client decodes into these models and raises on errors.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GraphQLError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str


class CinevilleFilm(BaseModel):
    id: str
    title: str | None = None


class CinevilleFilmPage(BaseModel):
    data: list[CinevilleFilm] = Field(default_factory=list)


class CinevilleFilmsData(BaseModel):
    films: CinevilleFilmPage | None = None


class CinevilleFilmsResponse(BaseModel):
    data: CinevilleFilmsData | None = None
    errors: list[GraphQLError] | None = None


class CinevillePoster(BaseModel):
    url: str | None = None


class CinevilleShowFilm(BaseModel):
    title: str
    slug: str
    poster: CinevillePoster | None = None
    duration: int | None = None
    directors: list[str] | None = None


class CinevilleAddress(BaseModel):
    city: str | None = None


class CinevilleTheater(BaseModel):
    name: str
    address: CinevilleAddress | None = None


class CinevilleShowtime(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    start_date: datetime = Field(alias="startDate")
    end_date: datetime | None = Field(default=None, alias="endDate")
    ticketing_url: str | None = Field(default=None, alias="ticketingUrl")
    film: CinevilleShowFilm
    theater: CinevilleTheater


class CinevilleShowtimePage(BaseModel):
    # Kept raw so one malformed showtime does not reject the whole page
    data: list[dict] = Field(default_factory=list)


class CinevilleShowtimesData(BaseModel):
    showtimes: CinevilleShowtimePage | None = None


class CinevilleShowtimesResponse(BaseModel):
    data: CinevilleShowtimesData | None = None
    errors: list[GraphQLError] | None = None
