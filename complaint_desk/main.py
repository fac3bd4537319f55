"""
FastAPI application entry point for the complaint desk
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from complaint_desk import __version__
from complaint_desk.database import db_manager
from complaint_desk.dependencies import get_sync_service
from complaint_desk.logging_config import setup_logging
from complaint_desk.routes import categories_router, complaints_router, feed_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Complaint desk starting up")

    yield

    # Shutdown
    await get_sync_service().close()
    await db_manager.close()
    logger.info("Complaint desk shutting down")


app = FastAPI(
    title="Complaint Desk",
    description="Priority-ordered view over the school complaint feed",
    version=__version__,
    lifespan=lifespan
)

app.include_router(complaints_router)
app.include_router(categories_router)
app.include_router(feed_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring"""
    database = "not_configured"
    if db_manager.database_url:
        database = "connected" if await db_manager.health_check() else "disconnected"
    return {"status": "healthy", "service": "complaint-desk", "database": database}
