"""
Main FastAPI application for the news ingestion service.
"""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes import router, set_database
from app.config import get_settings
from app.core.logging import configure_logging
from app.models.database import Database
from app.models.domain import IngestErrorResponse
from app.services.ingestion import ProgressTracker

configure_logging(get_settings().log_level)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    settings = get_settings()

    logger.info("Initializing database", url=settings.database_url)
    database = Database(settings.database_url)
    await database.create_tables()
    set_database(database)

    if not settings.webz_api_key:
        logger.warning("WEBZ_API_KEY is not set; upstream requests will be rejected")

    yield

    # Shutdown
    logger.info("Shutting down")
    await database.dispose()


app = FastAPI(
    title="Webz News Ingest",
    description="Paginated news ingestion with deduplicated persistence.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report bad query parameters in the same envelope as ingestion failures."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.warning("Invalid request", path=request.url.path, errors=details)
    body = IngestErrorResponse(
        error=f"Invalid request parameters: {details}",
        code=422,
        progress=ProgressTracker().to_payload(),
    )
    return JSONResponse(status_code=422, content=body.model_dump())


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "news-ingest",
        "version": "0.1.0",
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
