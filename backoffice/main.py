import logging
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from backoffice.api.exception_handlers import register_exception_handlers
from backoffice.api.v1.router import api_router
from backoffice.core.config import Settings, load_settings
from backoffice.db.base import Database

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or load_settings()
    logging.basicConfig(level=app_settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(app_settings.database_url)
        app.state.database = database
        logger.info("Database engine started (%s)", database.engine.dialect.name)
        try:
            yield
        finally:
            database.dispose()
            logger.info("Database engine disposed")

    app = FastAPI(title="Back Office", lifespan=lifespan)
    app.state.settings = app_settings

    parsed = urlparse(app_settings.frontend_url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
