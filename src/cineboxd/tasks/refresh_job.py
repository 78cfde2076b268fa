"""Cache pre-warming: recompute showtimes for well-known lists."""

import logging
import time

from pydantic import BaseModel

from cineboxd.services.aggregator import ShowtimeAggregator

logger = logging.getLogger(__name__)


class RefreshResult(BaseModel):
    """Outcome of refreshing one list."""

    listPath: str
    success: bool
    duration: int  # milliseconds
    error: str | None = None


async def refresh_list(aggregator: ShowtimeAggregator, list_path: str) -> RefreshResult:
    """Recompute and cache showtimes for one list. Never raises."""
    started = time.perf_counter()
    try:
        await aggregator.refresh(list_path)
    except Exception as e:
        duration = int((time.perf_counter() - started) * 1000)
        logger.error(f"Refresh failed for {list_path} ({duration}ms): {e}", exc_info=True)
        return RefreshResult(listPath=list_path, success=False, duration=duration, error=str(e))

    duration = int((time.perf_counter() - started) * 1000)
    logger.info(f"Refreshed {list_path} ({duration}ms)")
    return RefreshResult(listPath=list_path, success=True, duration=duration)


async def run_refresh_all(
    aggregator: ShowtimeAggregator, list_paths: list[str]
) -> list[RefreshResult]:
    """Refresh lists one after another so upstreams are not hit all at once."""
    logger.info(f"Refreshing {len(list_paths)} lists")

    results = [await refresh_list(aggregator, path) for path in list_paths]

    successes = sum(1 for r in results if r.success)
    logger.info(
        f"Refresh complete: {successes} succeeded, {len(results) - successes} failed"
    )
    return results
