"""Health check endpoint."""

import logging

from fastapi import APIRouter, Depends

from cineboxd.dependencies import Services, get_services

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check(services: Services = Depends(get_services)) -> dict[str, str]:
    """
    Health check endpoint.

    The API stays usable without Redis (every request is a cache miss), so
    a down cache is reported but does not fail the check.
    """
    try:
        await services.redis.ping()
        cache_status = "up"
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        cache_status = "down"

    return {"status": "ok", "cache": cache_status}
