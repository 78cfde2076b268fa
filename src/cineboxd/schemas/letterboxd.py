"""Pydantic schemas for the Letterboxd list source."""

from pydantic import BaseModel, ConfigDict, RootModel


class ListEntry(BaseModel):
    """One film on a Letterboxd watchlist or custom list."""

    model_config = ConfigDict(extra="ignore")

    title: str


class ListResponse(RootModel[list[ListEntry]]):
    pass
