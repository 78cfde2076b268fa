"""Admin API endpoints for manual cache refreshes."""

import logging
import secrets
import time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel

from cineboxd.config import settings
from cineboxd.dependencies import get_aggregator
from cineboxd.services.aggregator import ShowtimeAggregator
from cineboxd.tasks.refresh_job import RefreshResult, refresh_list, run_refresh_all

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBasic(realm="Cineboxd Cron")


class RefreshSummary(BaseModel):
    total: int
    success: int
    failed: int
    totalDuration: int
    avgDuration: int


class RefreshAllResponse(BaseModel):
    summary: RefreshSummary
    results: list[RefreshResult]


def verify_admin(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """Check HTTP Basic credentials against the configured admin account."""
    username_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.admin_username.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.admin_password.encode("utf-8")
    )
    if not (username_ok and password_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": 'Basic realm="Cineboxd Cron"'},
        )
    return credentials.username


@router.post("/cron/refresh-cache", dependencies=[Depends(verify_admin)])
async def refresh_cache(
    list_path: str | None = Query(None, alias="listPath", description="Refresh only this list"),
    aggregator: ShowtimeAggregator = Depends(get_aggregator),
) -> JSONResponse:
    """
    Recompute cached showtimes.

    With ``listPath`` only that list is refreshed (500 if it fails).
    Otherwise every configured pre-warm list is refreshed in turn, answering
    200 if all succeeded and 207 if some failed.
    """
    if list_path:
        result = await refresh_list(aggregator, list_path)
        return JSONResponse(
            content=result.model_dump(exclude_none=True),
            status_code=(
                status.HTTP_200_OK
                if result.success
                else status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
        )

    started = time.perf_counter()
    results = await run_refresh_all(aggregator, settings.prewarm_list_paths)
    total_duration = int((time.perf_counter() - started) * 1000)

    success_count = sum(1 for r in results if r.success)
    response = RefreshAllResponse(
        summary=RefreshSummary(
            total=len(results),
            success=success_count,
            failed=len(results) - success_count,
            totalDuration=total_duration,
            avgDuration=round(sum(r.duration for r in results) / len(results)) if results else 0,
        ),
        results=results,
    )
    return JSONResponse(
        content=response.model_dump(exclude_none=True),
        status_code=(
            status.HTTP_200_OK if success_count == len(results) else status.HTTP_207_MULTI_STATUS
        ),
    )
