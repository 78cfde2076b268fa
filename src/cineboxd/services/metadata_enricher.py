"""Film metadata enrichment backed by TMDb and the chunked cache."""

import logging

from cineboxd.cache.chunked import ChunkedCache
from cineboxd.schemas.show import Film, FilmMetadata, Poster
from cineboxd.services.tmdb_client import TMDbClient

logger = logging.getLogger(__name__)


class MetadataEnricher:
    """
    Looks up poster, directors and runtime for a film title.

    Uses a multi-stage lookup, stopping at the first hit:
    1. In-memory table for the current aggregation run (see ``start_run``)
    2. Persistent cache (long TTL, shared between runs)
    3. TMDb search + details

    "No match" results are cached too, so unknown titles are not searched
    again until the persistent entry expires. Lookup errors are not cached.
    """

    def __init__(self, tmdb_client: TMDbClient, cache: ChunkedCache | None = None) -> None:
        """
        Initialize metadata enricher.

        Args:
            tmdb_client: TMDb client; when it has no API key the enricher is disabled
            cache: Persistent metadata cache (optional)
        """
        self.tmdb_client = tmdb_client
        self.cache = cache
        self._memory: dict[str, FilmMetadata | None] = {}

    @property
    def enabled(self) -> bool:
        return self.tmdb_client.enabled

    def start_run(self) -> None:
        """Forget in-memory results so a new run re-reads the persistent cache."""
        self._memory.clear()

    async def get_metadata(self, title: str) -> FilmMetadata | None:
        """
        Get metadata for a film title.

        Args:
            title: Display title of the film

        Returns:
            Film metadata, or None if TMDb has no match, enrichment is
            disabled, or the lookup failed
        """
        if not self.enabled:
            return None

        key = self._cache_key(title)

        # Stage 1: lookup made earlier in this run
        if key in self._memory:
            return self._memory[key]

        # Stage 2: persistent cache
        cached = await self._get_cached(key)
        if cached is not None:
            metadata = cached[0]
            self._memory[key] = metadata
            return metadata

        # Stage 3: live TMDb lookup
        try:
            metadata = await self._lookup(title)
        except Exception as e:
            logger.warning(f"TMDb lookup failed for '{title}': {e}")
            return None

        self._memory[key] = metadata
        if self.cache is not None:
            await self.cache.set(
                key, {"metadata": metadata.to_json() if metadata else None}
            )
        return metadata

    async def _lookup(self, title: str) -> FilmMetadata | None:
        search_result = await self.tmdb_client.search_film(title)
        if not search_result:
            return None

        details = await self.tmdb_client.get_film_details(search_result.id)
        if not details:
            return None

        poster_url = self.tmdb_client.poster_url(details.poster_path)
        return FilmMetadata(
            poster=Poster(url=poster_url) if poster_url else None,
            directors=self.tmdb_client.extract_directors(details.credits),
            duration=max(details.runtime or 0, 0),
        )

    async def _get_cached(self, key: str) -> tuple[FilmMetadata | None] | None:
        """Return a 1-tuple holding the cached value, or None on a cache miss."""
        if self.cache is None:
            return None

        entry = await self.cache.get(key)
        if not isinstance(entry, dict) or "metadata" not in entry:
            return None

        raw = entry["metadata"]
        if raw is None:
            return (None,)
        try:
            return (FilmMetadata.model_validate(raw),)
        except ValueError as e:
            logger.warning(f"Discarding invalid cached metadata for '{key}': {e}")
            return None

    def _cache_key(self, title: str) -> str:
        return title.strip().lower()


def enrich_film(film: Film, metadata: FilmMetadata | None) -> Film:
    """
    Fill a film's missing poster, directors and duration from metadata.

    Values the chain already provided are never overwritten.

    Args:
        film: Film as returned by the chain
        metadata: Enrichment data (may be None)

    Returns:
        The same film if nothing changed, otherwise an updated copy
    """
    if metadata is None:
        return film

    updates: dict = {}
    if film.poster is None and metadata.poster is not None:
        updates["poster"] = metadata.poster
    if not film.directors and metadata.directors:
        updates["directors"] = list(metadata.directors)
    if not film.duration and metadata.duration:
        updates["duration"] = metadata.duration

    return film.model_copy(update=updates) if updates else film
