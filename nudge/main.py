"""NUDGE — FastAPI Application Entry Point.

Click and battery check tracking plus campaign analytics endpoints.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nudge.api.analytics_routes import router as analytics_router
from nudge.api.error_handlers import register_exception_handlers
from nudge.api.tracking_routes import router as tracking_router
from nudge.config import settings
from nudge.core.logging import get_logger
from nudge.database import Database
from nudge.scheduler.jobs import start_scheduler, stop_scheduler

logger = get_logger("main")

VERSION = "1.0.0"


def create_app(
    database: Optional[Database] = None, run_scheduler: bool = True
) -> FastAPI:
    """Build the app. A passed-in Database is used as-is and not disposed."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle."""
        logger.info("🚀 NUDGE starting up...")
        db = database or Database(settings.effective_database_url)
        app.state.db = db
        if db.test_connection():
            try:
                db.init_db()
            except Exception as e:
                logger.error(f"❌ Table creation failed: {e}")
        else:
            logger.error("❌ Database NOT connected — endpoints will fail")
        if run_scheduler:
            start_scheduler(db)
        yield
        if run_scheduler:
            stop_scheduler()
        if database is None:
            db.dispose()
        logger.info("NUDGE shut down")

    app = FastAPI(
        title="NUDGE",
        description="Battery check reminder campaigns — click/battery check tracking and effectiveness analytics.",
        version=VERSION,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(tracking_router)
    app.include_router(analytics_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "OK",
            "service": "nudge",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
