"""
PetroDepot Main Application Entry Point

Serves the REST API and runs the daily maintenance reminder job.
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from petrodepot import __version__
from petrodepot.api import router
from petrodepot.computation import ComputationEngine
from petrodepot.config import get_settings
from petrodepot.database import close_pool, get_pool
from petrodepot.exceptions import RepositoryError

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

# Global scheduler
scheduler: AsyncIOScheduler | None = None


async def run_maintenance_check(today: date | None = None) -> dict[str, Any]:
    """
    Log every vehicle whose oil change or documents are due soon or overdue.

    Returns:
        Dictionary with the check results
    """
    if today is None:
        today = date.today()

    try:
        engine = ComputationEngine()
        reminders = await engine.maintenance_reminders(today)
    except (RepositoryError, OSError) as e:
        logger.error(f"Maintenance check failed for {today}: {e}")
        return {"success": False, "date": today.isoformat(), "error": str(e)}

    for status in reminders:
        logger.warning(
            f"Vehicle {status.vehicle_id}: oil change {status.oil_change.state.value} "
            f"({status.oil_change.km_remaining} km left), documents "
            f"{status.documents.state.value} ({status.documents.document_name}, "
            f"{status.documents.days_remaining} days left)"
        )
    logger.info(f"Maintenance check for {today}: {len(reminders)} vehicle(s) need attention")

    return {
        "success": True,
        "date": today.isoformat(),
        "vehicles": [status.vehicle_id for status in reminders],
    }


async def scheduled_job():
    """Scheduled daily job wrapper."""
    logger.info("Scheduled maintenance check triggered")
    await run_maintenance_check()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    global scheduler

    settings = get_settings()
    logger.info(f"Starting PetroDepot v.{__version__}")

    try:
        await get_pool()
        logger.info("Database connection pool initialized")
    except Exception as e:
        logger.warning(f"Database not available: {e}")

    if settings.scheduler_enabled:
        scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)
        scheduler.add_job(
            scheduled_job,
            CronTrigger(
                hour=settings.scheduler_cron_hour,
                minute=settings.scheduler_cron_minute
            ),
            id="daily_maintenance_check",
            name="Daily maintenance check",
            replace_existing=True
        )
        scheduler.start()
        logger.info(
            f"Scheduler started: maintenance check at "
            f"{settings.scheduler_cron_hour:02d}:{settings.scheduler_cron_minute:02d} "
            f"{settings.scheduler_timezone}"
        )

    yield

    logger.info("Shutting down PetroDepot")
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler stopped")

    await close_pool()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    app = FastAPI(
        title="PetroDepot",
        description="Stock, fleet and ledger calculations for a fuel distributor",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/api/v1/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.post("/api/v1/maintenance/check")
    async def trigger_maintenance_check(today: date | None = None):
        """Run the daily maintenance check on demand."""
        return await run_maintenance_check(today)

    @app.get("/")
    async def root():
        return {
            "name": "PetroDepot",
            "version": __version__,
            "docs": "/docs",
            "api": {
                "stock": "/api/v1/deliveries/stock",
                "tanks": "/api/v1/tanks/stock",
                "consumption": "/api/v1/vehicles/{vehicle_id}/consumption",
                "balance": "/api/v1/counterparties/{counterparty_id}/balance",
                "calculators": "/api/v1/calculate/{stock-levels|conversion|fuel-entry|balance|invoice|tank-stock}",
                "health": "/api/v1/health"
            }
        }

    return app


# Create application instance
app = create_app()


def main():
    """Main entry point for running the server."""
    settings = get_settings()

    logger.info(f"Starting PetroDepot server on {settings.api_host}:{settings.api_port}")

    uvicorn.run(
        "petrodepot.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
