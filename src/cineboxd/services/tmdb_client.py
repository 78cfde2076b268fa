"""TMDb API client for fetching film metadata."""

import logging
from typing import Any

import httpx

from cineboxd.config import settings
from cineboxd.schemas.tmdb import (
    TMDbCredits,
    TMDbMovieDetails,
    TMDbSearchResponse,
    TMDbSearchResult,
)

logger = logging.getLogger(__name__)


class TMDbClient:
    """Client for The Movie Database (TMDb) API."""

    BASE_URL = "https://api.themoviedb.org/3"
    IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"

    def __init__(self, api_key: str | None = None, timeout: float | None = None) -> None:
        """
        Initialize TMDb client.

        Args:
            api_key: TMDb API key (uses settings if not provided)
            timeout: Request timeout in seconds (uses settings if not provided)
        """
        self.api_key = api_key if api_key is not None else settings.tmdb_api_key
        self.timeout = timeout or settings.request_timeout
        if not self.api_key:
            logger.warning("TMDb API key not configured, metadata enrichment disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def search_film(self, title: str) -> TMDbSearchResult | None:
        """
        Search for a film by title.

        Args:
            title: Film title

        Returns:
            First matching film result or None if there are no results

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
            pydantic.ValidationError: On a malformed response body
        """
        if not self.api_key:
            return None

        params: dict[str, Any] = {
            "api_key": self.api_key,
            "query": title,
            "language": "en-US",
            "page": 1,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(f"{self.BASE_URL}/search/movie", params=params)
            response.raise_for_status()
            data = TMDbSearchResponse.model_validate(response.json())

        if not data.results:
            logger.info(f"No TMDb results for: {title}")
            return None

        return data.results[0]

    async def get_film_details(self, tmdb_id: int) -> TMDbMovieDetails | None:
        """
        Get detailed film information including credits.

        Args:
            tmdb_id: TMDb film ID

        Returns:
            Film details including credits, or None without an API key

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
            pydantic.ValidationError: On a malformed response body
        """
        if not self.api_key:
            return None

        params = {
            "api_key": self.api_key,
            "append_to_response": "credits",
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(f"{self.BASE_URL}/movie/{tmdb_id}", params=params)
            response.raise_for_status()
            return TMDbMovieDetails.model_validate(response.json())

    def extract_directors(self, credits: TMDbCredits) -> list[str]:
        """
        Extract director names from TMDb credits.

        Args:
            credits: TMDb credits data

        Returns:
            List of director names, in billing order
        """
        return [person.name for person in credits.crew if person.job == "Director"]

    def poster_url(self, poster_path: str | None) -> str | None:
        """Build a full poster image URL from a TMDb poster path."""
        if not poster_path:
            return None
        return f"{self.IMAGE_BASE_URL}{poster_path}"
