"""Showtime aggregation: list lookup, chain fan-out, merge and cache."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from cineboxd.cache.chunked import ChunkedCache
from cineboxd.chains.base import BaseChain
from cineboxd.schemas.show import Show, ShowtimesResponse
from cineboxd.services.list_source import LetterboxdListClient
from cineboxd.services.metadata_enricher import MetadataEnricher

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    """Response payload plus whether it was served from the cache."""

    payload: dict[str, Any]
    cache_hit: bool

    @property
    def show_count(self) -> int:
        return len(self.payload["data"]["showtimes"]["data"])


class ShowtimeAggregator:
    """
    Builds the merged showtime list for a Letterboxd list.

    Flow on a cache miss:
    1. Fetch the list's film titles (errors propagate to the caller)
    2. Query every chain concurrently; a failing chain contributes nothing
    3. Concatenate the chains' results in registry order
    4. Store the response envelope in the cache
    """

    def __init__(
        self,
        cache: ChunkedCache,
        list_client: LetterboxdListClient,
        chains: list[BaseChain],
        schema_version: int,
        enricher: MetadataEnricher | None = None,
    ) -> None:
        """
        Args:
            cache: Showtime cache
            list_client: Letterboxd list client
            chains: Chain adapters, in merge order
            schema_version: Bumped whenever the Show shape changes so old
                cache entries are ignored
            enricher: Metadata enricher shared by the chains; its in-memory
                table is cleared at the start of every refresh
        """
        self.cache = cache
        self.list_client = list_client
        self.chains = chains
        self.schema_version = schema_version
        self.enricher = enricher

    def cache_key(self, list_path: str) -> str:
        return f"showtimes:v{self.schema_version}:{list_path}"

    async def get_showtimes(self, list_path: str) -> AggregationResult:
        """
        Get showtimes for a list, from the cache when possible.

        Raises:
            ListNotFoundError: The list does not exist
            ListFetchError: The list could not be fetched
        """
        cached = await self.cache.get(self.cache_key(list_path))
        if cached is not None:
            return AggregationResult(payload=cached, cache_hit=True)

        logger.info(f"Cache MISS for {list_path}")
        payload = await self.refresh(list_path)
        return AggregationResult(payload=payload, cache_hit=False)

    async def refresh(self, list_path: str) -> dict[str, Any]:
        """Fetch, merge and cache showtimes for a list, ignoring any cached value."""
        started = time.perf_counter()
        if self.enricher is not None:
            self.enricher.start_run()

        entries = await self.list_client.fetch_list(list_path)
        titles = [entry.title for entry in entries]
        logger.info(f"Fetching showtimes for {len(titles)} films from {list_path}")

        results = await asyncio.gather(
            *[chain.get_shows(titles) for chain in self.chains],
            return_exceptions=True,
        )

        shows: list[Show] = []
        counts: list[str] = []
        for chain, result in zip(self.chains, results):
            if isinstance(result, BaseException):
                logger.error(f"{chain.chain} fetch failed: {result}", exc_info=result)
                counts.append(f"{chain.chain}: failed")
                continue
            shows.extend(result)
            counts.append(f"{chain.chain}: {len(result)}")

        payload = ShowtimesResponse.from_shows(shows).to_json()
        await self.cache.set(self.cache_key(list_path), payload)

        elapsed = time.perf_counter() - started
        logger.info(
            f"Total: {len(shows)} showtimes for {list_path} ({', '.join(counts)}) "
            f"in {elapsed:.2f}s"
        )
        return payload
