"""Base interface for cinema chain adapters."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from cineboxd.schemas.show import FilmMetadata, Show
from cineboxd.services.metadata_enricher import MetadataEnricher

logger = logging.getLogger(__name__)


class BaseChain(ABC):
    """
    Abstract base class for cinema chain adapters.

    An adapter takes the raw titles of a watchlist and returns every upcoming
    showtime the chain has for those films, as unified Show records tagged
    with the chain name.
    """

    chain: str

    def __init__(self, enricher: MetadataEnricher) -> None:
        self.enricher = enricher

    @abstractmethod
    async def get_shows(self, titles: list[str]) -> list[Show]:
        """
        Fetch showtimes for the given watchlist titles.

        Args:
            titles: Raw watchlist titles

        Returns:
            Unified showtimes for matching films (empty if nothing matched)

        Raises:
            Adapters may raise on upstream failure; the aggregator isolates
            each chain so one failing chain never fails the whole request.
        """

    async def fetch_metadata(self, titles: Iterable[str]) -> dict[str, FilmMetadata | None]:
        """Look up enrichment metadata for distinct titles concurrently."""
        if not self.enricher.enabled:
            logger.info(f"{self.chain}: TMDb API key not set, skipping metadata enrichment")
            return {}

        unique_titles = list(dict.fromkeys(titles))
        if not unique_titles:
            return {}

        logger.info(f"{self.chain}: fetching TMDb metadata for {len(unique_titles)} films")
        results = await asyncio.gather(
            *[self.enricher.get_metadata(title) for title in unique_titles],
            return_exceptions=True,
        )

        metadata: dict[str, FilmMetadata | None] = {}
        for title, result in zip(unique_titles, results):
            if isinstance(result, Exception):
                logger.warning(f"{self.chain}: metadata lookup failed for '{title}': {result}")
                metadata[title] = None
            else:
                metadata[title] = result

        found = sum(1 for m in metadata.values() if m is not None)
        logger.info(f"{self.chain}: got TMDb metadata for {found} films")
        return metadata


def dedupe_shows(shows: Iterable[Show]) -> list[Show]:
    """Drop repeated showtime ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[Show] = []
    for show in shows:
        if show.id in seen:
            continue
        seen.add(show.id)
        unique.append(show)
    return unique
