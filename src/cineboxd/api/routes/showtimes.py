"""Showtimes API endpoint."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from cineboxd.dependencies import get_aggregator
from cineboxd.services.aggregator import ShowtimeAggregator

logger = logging.getLogger(__name__)
router = APIRouter()

DEFAULT_LIST_PATH = "105424/watchlist"

CACHE_SECONDS = 24 * 60 * 60


def resolve_list_path(list_path: str | None, username: str | None) -> str:
    """
    Work out which list to aggregate.

    ``listPath`` wins; a bare ``username`` means that user's watchlist.
    """
    if list_path and list_path.strip("/ "):
        return list_path.strip().strip("/")
    if username and username.strip():
        return f"{username.strip()}/watchlist"
    return DEFAULT_LIST_PATH


@router.get("/showtimes")
async def get_showtimes(
    list_path: str | None = Query(
        None,
        alias="listPath",
        description="Letterboxd list path, e.g. 'user/watchlist' or 'user/list/slug'",
    ),
    username: str | None = Query(None, description="Letterboxd username (uses their watchlist)"),
    aggregator: ShowtimeAggregator = Depends(get_aggregator),
) -> JSONResponse:
    """
    Get upcoming Cineville and Pathé showtimes for films on a Letterboxd list.

    Returns ``{"data": {"showtimes": {"data": [...]}}}``. Results are cached
    for a day; the ``X-Cache`` header says whether this response was a hit.
    """
    path = resolve_list_path(list_path, username)
    result = await aggregator.get_showtimes(path)

    return JSONResponse(
        content=result.payload,
        headers={
            "Cache-Control": (
                f"public, max-age={CACHE_SECONDS}, s-maxage={CACHE_SECONDS}, "
                "stale-while-revalidate=3600"
            ),
            "X-Cache": "HIT" if result.cache_hit else "MISS",
        },
    )
