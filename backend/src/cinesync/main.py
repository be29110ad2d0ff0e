"""FastAPI application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI

from cinesync.api.routes import admin, health
from cinesync.config import settings
from cinesync.tasks.sync_job import run_sync

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: configure and start the scheduler
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_sync,
        trigger=CronTrigger(hour=settings.sync_cron_hour, minute=0),
        id="daily_sync",
        name="Daily cinenews catalog sync",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started, daily sync registered at {settings.sync_cron_hour:02d}:00")

    startup_task = None
    if settings.sync_on_startup:
        startup_task = asyncio.create_task(run_sync())
        logger.info("Startup sync triggered in background")

    yield

    # Shutdown: stop the scheduler gracefully
    if startup_task is not None and not startup_task.done():
        startup_task.cancel()
    scheduler.shutdown(wait=False)
    logger.info("Scheduler shut down")


app = FastAPI(
    title="CineSync API",
    description="Movie and showtime catalog synchronised from cinenews.be",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(admin.router, prefix="/api", tags=["admin"])


def run() -> None:
    """Serve the API with uvicorn."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
