"""Pydantic schemas for the unified showtime model and upstream payloads."""

from cineboxd.schemas.show import (
    Address,
    Film,
    FilmMetadata,
    Poster,
    Show,
    ShowtimeList,
    ShowtimesData,
    ShowtimesResponse,
    Theater,
)

__all__ = [
    "Address",
    "Film",
    "FilmMetadata",
    "Poster",
    "Show",
    "ShowtimeList",
    "ShowtimesData",
    "ShowtimesResponse",
    "Theater",
]
