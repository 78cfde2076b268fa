"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cineboxd.api.routes import admin, health, showtimes
from cineboxd.config import settings
from cineboxd.dependencies import build_services, create_redis
from cineboxd.exceptions import CineboxdError
from cineboxd.services.aggregator import ShowtimeAggregator
from cineboxd.tasks.refresh_job import refresh_list

logger = logging.getLogger(__name__)


def schedule_prewarm_jobs(
    scheduler: AsyncIOScheduler,
    aggregator: ShowtimeAggregator,
    list_paths: list[str],
) -> None:
    """Register one daily refresh per list, staggered evenly over the day (UTC)."""
    if not list_paths:
        return

    spacing = 24 * 60 // len(list_paths)
    for index, list_path in enumerate(list_paths):
        minute_of_day = index * spacing
        scheduler.add_job(
            refresh_list,
            trigger=CronTrigger(hour=minute_of_day // 60, minute=minute_of_day % 60, timezone="UTC"),
            args=[aggregator, list_path],
            id=f"prewarm:{list_path}",
            name=f"Refresh {list_path}",
            replace_existing=True,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: build the pipeline and register the cache pre-warm jobs
    redis_client = create_redis()
    services = build_services(redis_client)
    app.state.services = services

    scheduler = AsyncIOScheduler()
    schedule_prewarm_jobs(scheduler, services.aggregator, settings.prewarm_list_paths)
    scheduler.start()
    logger.info(
        f"Scheduler started, {len(settings.prewarm_list_paths)} daily pre-warm jobs registered"
    )

    yield

    # Shutdown: stop the scheduler and close the Redis pool
    scheduler.shutdown(wait=False)
    await redis_client.aclose()
    logger.info("Scheduler shut down")


async def cineboxd_error_handler(request: Request, exc: CineboxdError) -> JSONResponse:
    """Render pipeline errors as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error(f"API error on {request.url.path}: {exc.detail}")
    else:
        logger.info(f"API error on {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CineboxdError, cineboxd_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


# Create FastAPI app
app = FastAPI(
    title="Cineboxd API",
    description="Cineville and Pathé showtimes for films on a Letterboxd list",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:8000",
    ],  # Frontend development servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(health.router)
app.include_router(showtimes.router, prefix="/api", tags=["showtimes"])
app.include_router(admin.router, prefix="/api", tags=["admin"])
