import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from weighin.config import Settings, get_settings
from weighin.database import JsonStore
from weighin.exceptions import StoreCorruptedError
from weighin.routers import auth, challenges, entries, uploads, users
from weighin.seed import build_default_database
from weighin.services.photos import PhotoStorage

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the store on startup, drain it on shutdown."""
        await app.state.store.open()
        yield
        await app.state.store.close()

    app = FastAPI(
        title=settings.app_name,
        description="Weekly weigh-in challenges for a small group",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = JsonStore(settings.db_path, seed=build_default_database)
    app.state.photos = PhotoStorage(settings.uploads_dir, settings.max_upload_bytes)

    @app.exception_handler(StoreCorruptedError)
    async def store_corrupted_handler(request: Request, exc: StoreCorruptedError):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Storage unavailable"},
        )

    # Include routers
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(challenges.router)
    app.include_router(entries.router)
    app.include_router(uploads.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    return app


app = create_app()
