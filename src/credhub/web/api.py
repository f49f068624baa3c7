"""FastAPI application factory.

Main entry point for the credhub Web API.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from credhub import __version__
from credhub.config.app_config import load_app_config
from credhub.core.events import get_change_feed
from credhub.db.database import init_db
from credhub.web.routes import (
    auth_router,
    certificates_router,
    events_router,
    faculty_router,
    health_router,
    students_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    config = load_app_config()
    db_path = app.state.db_path or config.db_path
    init_db(db_path)
    storage_dir = config.storage.bucket_path
    storage_dir.mkdir(parents=True, exist_ok=True)
    logger.info(
        "api_startup",
        db_path=str(Path(db_path).absolute()),
        storage_dir=str(storage_dir.absolute()),
    )
    yield
    # Shutdown: end open event streams
    get_change_feed().close_all()


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Database file to initialize on startup (defaults to config)

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="credhub API",
        description="Certificate submission and faculty review API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.db_path = db_path

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(students_router)
    app.include_router(certificates_router)
    app.include_router(faculty_router)
    app.include_router(events_router)

    return app


# Default app instance for uvicorn
app = create_app()
