# fuzzy_search/main.py
# Responsibility: Application entry point. Configures and launches the FastAPI app.

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from fuzzy_search.config.settings import settings
from fuzzy_search.errors import StoreError
from fuzzy_search.routers import search
from fuzzy_search.store.postgres import PostgresDocumentStore

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Creates the documents table before the first request when AUTO_CREATE_SCHEMA is on.
    A database that is down at startup is logged; /health stays reachable and searches answer 503.
    """
    if settings.DB.AUTO_CREATE_SCHEMA:
        try:
            PostgresDocumentStore(settings.SEARCH.DEFAULT_COLLECTION).ensure_schema()
            logger.info("[DB] Schema ready (table '%s')", settings.DB.TABLE_NAME)
        except StoreError as e:
            logger.error("[DB] Schema setup skipped: %s", e)
    yield


def create_app() -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.
    """
    logging.basicConfig(
        level=settings.SERVER.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Vietnamese Fuzzy Search",
        description="Typo- and accent-tolerant search over a document store.",
        version=VERSION,
        debug=settings.SERVER.DEBUG,
        lifespan=lifespan,
    )

    app.include_router(search.router)

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "ok", "version": VERSION}

    return app

# Application instance
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "fuzzy_search.main:app",
        host=settings.SERVER.HOST,
        port=settings.SERVER.PORT,
        reload=settings.SERVER.DEBUG
    )
