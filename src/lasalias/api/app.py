"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import settings
from ..manager import AliasManager
from .routes import router

logger = logging.getLogger(__name__)

# Global manager instance
_manager: Optional[AliasManager] = None


def get_manager() -> AliasManager:
    """Get the global manager instance."""
    global _manager
    if _manager is None:
        _manager = AliasManager()
    return _manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    manager = get_manager()
    if settings.database_path.is_file():
        manager.load_dictionary(settings.database_path)
    else:
        logger.warning(f"Dictionary {settings.database_path} not found, starting empty")
    if settings.las_directory is not None and settings.las_directory.is_dir():
        manager.load_folder(settings.las_directory)
    yield
    # Shutdown
    if manager.session.summary.has_unsaved_changes:
        logger.warning(
            f"Shutting down with {manager.session.summary.unsaved_changes_count} uncommitted edit(s)"
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="LAS Alias Manager",
        description="Reconcile LAS curve mnemonics against an alias dictionary",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(router, prefix="/api")

    return app
