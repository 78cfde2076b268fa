"""Pydantic schemas for TMDb API responses."""

from pydantic import BaseModel, ConfigDict, Field


class TMDbSearchResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str | None = None
    poster_path: str | None = None
    release_date: str | None = None


class TMDbSearchResponse(BaseModel):
    results: list[TMDbSearchResult] = Field(default_factory=list)


class TMDbCrewMember(BaseModel):
    name: str
    job: str | None = None


class TMDbCredits(BaseModel):
    crew: list[TMDbCrewMember] = Field(default_factory=list)


class TMDbMovieDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str | None = None
    poster_path: str | None = None
    runtime: int | None = None
    credits: TMDbCredits = Field(default_factory=TMDbCredits)
