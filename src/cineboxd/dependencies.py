"""Service construction and FastAPI dependencies.

Everything with state (the Redis connection, the caches, the metadata
enricher) is built once per process by ``build_services``
and stored on ``app.state``, so tests can substitute their own instances.
"""

from dataclasses import dataclass
from typing import Any

import redis.asyncio as redis
from fastapi import Request

from cineboxd.cache.chunked import ChunkedCache
from cineboxd.chains import build_chains
from cineboxd.config import Settings, settings
from cineboxd.services.aggregator import ShowtimeAggregator
from cineboxd.services.list_source import LetterboxdListClient
from cineboxd.services.metadata_enricher import MetadataEnricher
from cineboxd.services.tmdb_client import TMDbClient


@dataclass
class Services:
    redis: Any
    aggregator: ShowtimeAggregator


def create_redis(config: Settings = settings) -> redis.Redis:
    """Create the Redis client. Connections are opened lazily on first use."""
    return redis.Redis.from_url(config.redis_url, decode_responses=False)


def build_services(redis_client: Any, config: Settings = settings) -> Services:
    """
    Wire up the aggregation pipeline.

    Args:
        redis_client: Backing store for both caches
        config: Settings to build from

    Returns:
        The constructed services
    """
    showtime_cache = ChunkedCache(
        redis_client,
        ttl=config.showtime_cache_ttl,
        namespace="cache",
        chunk_size=config.cache_chunk_size,
        batch_size=config.cache_batch_size,
    )
    metadata_cache = ChunkedCache(
        redis_client,
        ttl=config.metadata_cache_ttl,
        namespace="tmdb",
        chunk_size=config.cache_chunk_size,
        batch_size=config.cache_batch_size,
    )

    enricher = MetadataEnricher(
        TMDbClient(api_key=config.tmdb_api_key, timeout=config.request_timeout),
        cache=metadata_cache,
    )
    aggregator = ShowtimeAggregator(
        cache=showtime_cache,
        list_client=LetterboxdListClient(
            base_url=config.list_source_base_url,
            max_retries=config.list_source_max_retries,
            retry_delay=config.list_source_retry_delay,
            timeout=config.request_timeout,
        ),
        chains=build_chains(enricher),
        schema_version=config.cache_schema_version,
        enricher=enricher,
    )
    return Services(redis=redis_client, aggregator=aggregator)


def get_services(request: Request) -> Services:
    """
    Dependency for FastAPI to provide the process-wide services.

    Usage:
        @app.get("/endpoint")
        async def endpoint(services: Services = Depends(get_services)):
            # Use services.aggregator here
    """
    return request.app.state.services


def get_aggregator(request: Request) -> ShowtimeAggregator:
    return get_services(request).aggregator
