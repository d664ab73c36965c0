"""FastAPI application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reeltracker.api.routes import cache, health, images, limited_movies, movies, theatres
from reeltracker.cache import LRUMemoryCache, build_image_cache, build_payload_cache
from reeltracker.config import settings
from reeltracker.services.amc_client import AMCClient
from reeltracker.services.image_loader import ImageLoader
from reeltracker.services.limited_run import LimitedRunFeed, LimitedRunService
from reeltracker.tasks.cache_maintenance import purge_expired_caches

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Startup: build the caches and the services that share them
    image_cache = build_image_cache(settings)
    payload_cache = build_payload_cache(settings)
    caches = [image_cache, payload_cache]

    client = AMCClient(payload_cache=payload_cache)
    service = LimitedRunService(client)
    app.state.amc_client = client
    app.state.limited_run_service = service
    app.state.feed = LimitedRunFeed(service)
    app.state.image_loader = ImageLoader(image_cache, LRUMemoryCache(settings.memory_cache_size))
    app.state.caches = caches

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        purge_expired_caches,
        trigger=IntervalTrigger(hours=settings.cache_purge_interval_hours),
        args=caches,
        id="cache_purge",
        name="Purge expired content cache entries",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, cache purge every {settings.cache_purge_interval_hours} hours"
    )

    await asyncio.to_thread(purge_expired_caches, *caches)

    yield

    # Shutdown: stop the scheduler and drain pending cache writes
    scheduler.shutdown(wait=False)
    for data_cache in caches:
        data_cache.close()
    logger.info("Scheduler shut down, caches closed")


# Create FastAPI app
app = FastAPI(
    title="ReelTracker API",
    description="Limited-run movie tracker for AMC theatres",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(limited_movies.router, prefix="/api", tags=["limited-movies"])
app.include_router(movies.router, prefix="/api", tags=["movies"])
app.include_router(theatres.router, prefix="/api", tags=["theatres"])
app.include_router(images.router, prefix="/api", tags=["images"])
app.include_router(cache.router, prefix="/api", tags=["cache"])


def serve() -> None:
    """Run the API with uvicorn."""
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
