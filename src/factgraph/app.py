"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from factgraph import __version__
from factgraph.config import get_settings
from factgraph.logging import get_logger, setup_logging
from factgraph.stores.database import create_tables, get_engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings = get_settings()
    settings.ensure_dirs()
    setup_logging(settings.log_level.value)

    await create_tables()
    get_logger("app").info("startup_complete", database_url=settings.database_url,
                           vector_index=settings.enable_vector_index)

    yield

    await get_engine().dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="factgraph",
        description="Retraction workflow for an append-only fact graph",
        version=__version__,
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

    from factgraph.api.auth import BearerAuthMiddleware
    app.add_middleware(BearerAuthMiddleware)

    from factgraph.api.errors import register_error_handlers
    register_error_handlers(app)

    from factgraph.api.routes import router
    app.include_router(router, prefix="/v1")

    return app


app = create_app()
