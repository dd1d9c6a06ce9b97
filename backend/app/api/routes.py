"""
FastAPI routes for the news ingestion API.
"""

from typing import Annotated, Optional

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.models.database import Database
from app.services.ingestion import SQLAlchemyArticleStore
from app.services.news_ingestion import NewsIngestionService
from app.sources.webz import WebzSource

logger = structlog.get_logger(__name__)
router = APIRouter()

_database: Optional[Database] = None


def set_database(database: Database) -> None:
    """Register the database opened by the application lifespan."""
    global _database
    _database = database


def get_ingestion_service() -> NewsIngestionService:
    """Dependency to build the ingestion service for a request."""
    if _database is None:
        raise RuntimeError("Database not initialised")
    settings = get_settings()
    return NewsIngestionService(
        source=WebzSource(settings),
        store=SQLAlchemyArticleStore(_database),
        settings=settings,
    )


ServiceDep = Annotated[NewsIngestionService, Depends(get_ingestion_service)]


# ============================================================================
# News Routes
# ============================================================================


@router.get("/news")
async def ingest_news(
    service: ServiceDep,
    q: Annotated[Optional[str], Query(description="Search query")] = None,
    max_results: Annotated[Optional[int], Query(alias="maxResults")] = None,
):
    """
    Fetch news for a query from the upstream API and store new threads.

    `q` defaults to "LightSpeed" and `maxResults` to 200.
    """
    logger.info("News ingestion requested", query=q, max_results=max_results)
    result = await service.ingest(q=q, max_results=max_results)
    return JSONResponse(status_code=result.status_code, content=result.body)
