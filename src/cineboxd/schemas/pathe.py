"""Pydantic schemas for the Pathé zone and showtime API."""

from pydantic import BaseModel, ConfigDict, Field


class PatheZoneShow(BaseModel):
    """A film listed in a Pathé zone catalogue."""

    model_config = ConfigDict(extra="ignore")

    slug: str
    bookable: bool = False
    tags: list[str] = Field(default_factory=list)
    is_kids: bool = Field(default=False, alias="isKids")


class PatheZone(BaseModel):
    # Entries are validated one by one so a malformed film does not empty the catalogue
    shows: list[dict] = Field(default_factory=list)


class PatheShowtime(BaseModel):
    """A showtime for one film at one cinema on one date."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time: str  # local time, "2025-12-21 17:00:00"
    end_time: str | None = Field(default=None, alias="endTime")
    ref_cmd: str | None = Field(default=None, alias="refCmd")
    status: str | None = None
    version: str | None = None
    auditorium_name: str | None = Field(default=None, alias="auditoriumName")
    tags: list[str] = Field(default_factory=list)
