"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Redis (backing store for the showtime and metadata caches)
    redis_url: str = "redis://localhost:6379"

    # TMDb API (enrichment is disabled when empty)
    tmdb_api_key: str = ""

    # Upstream HTTP settings
    request_timeout: float = 30.0

    # Cache settings
    showtime_cache_ttl: int = 24 * 60 * 60
    metadata_cache_ttl: int = 30 * 24 * 60 * 60
    cache_schema_version: int = 9
    cache_chunk_size: int = 60_000  # bytes per chunk record
    cache_batch_size: int = 780_000  # bytes per write transaction

    # List source (Letterboxd list proxy)
    list_source_base_url: str = "https://letterboxd-list-radarr.onrender.com"
    list_source_max_retries: int = 3
    list_source_retry_delay: float = 2.0

    # Cineville
    cineville_graphql_url: str = "https://cineville.nl/api/graphql"
    cineville_batch_size: int = 50

    # Pathé
    pathe_base_url: str = "https://www.pathe.nl/api"
    pathe_zone: str = "amsterdam"
    pathe_days_ahead: int = 3
    pathe_concurrency: int = 20

    # Cache refresh endpoint
    admin_username: str = "admin"
    admin_password: str = "admin"

    # Lists refreshed by the daily pre-warm jobs
    prewarm_list_paths: list[str] = [
        "105424/watchlist",
        "filmjournl/list/sight-sound-2025",
        "idiah/list/sight-and-sound-2024",
        "jack/list/official-top-250-films-with-the-most-fans",
        "benvsthemovies/list/the-criterion-challenge-2026",
        "fcbarcelona/list/movies-everyone-should-watch-at-least-once",
        "Snautsie/watchlist",
    ]

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000


# Global settings instance
settings = Settings()
