"""
News ingestion service.

Builds the pagination pipeline for one request and turns whatever happens
into a structured payload. Callers never see a raised exception.
"""
import asyncio
from typing import Optional

import structlog

from app.config import Settings, get_settings
from app.services.ingestion import (
    ArticleStore,
    BatchPersister,
    ExternalResponse,
    IngestionQuery,
    PaginationDriver,
    ProgressTracker,
    ResponseBuilder,
    RetryPolicy,
)
from app.services.ingestion.driver import Sleep
from app.sources.base import FetchSource

logger = structlog.get_logger(__name__)


class NewsIngestionService:
    """Run one ingestion request end to end."""

    def __init__(
        self,
        source: FetchSource,
        store: ArticleStore,
        settings: Optional[Settings] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        tuning = self.settings.ingestion

        self.driver = PaginationDriver(
            source=source,
            persister=BatchPersister(store, sub_batch_size=tuning.persist_batch_size),
            retry_policy=RetryPolicy(
                max_retries=tuning.max_retries,
                base_delay_ms=tuning.retry_base_delay_ms,
            ),
            pagination_base_url=self.settings.webz_pagination_base_url,
            inter_request_delay_ms=tuning.inter_request_delay_ms,
            sleep=sleep,
        )
        self.responses = ResponseBuilder(id_limit=tuning.response_id_limit)

    async def ingest(
        self,
        q: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ExternalResponse:
        """
        Ingest articles for a query.

        Args:
            q: Search string (defaults to the configured default query)
            max_results: Cap on newly saved articles (defaults to 200)

        Returns:
            ExternalResponse carrying progress on both success and failure
        """
        tuning = self.settings.ingestion
        query = IngestionQuery(
            q=q or tuning.default_query,
            max_results=max_results if max_results is not None else tuning.default_max_results,
            batch_size=tuning.page_size,
        )
        progress = ProgressTracker()

        try:
            outcome = await self.driver.run(query, progress)
        except Exception as e:
            return self.responses.build_error(e, progress)

        logger.info(
            "Ingestion request completed",
            query=query.q,
            total_saved=outcome.total_saved,
            progress=progress.to_dict(),
        )
        return self.responses.build_success(outcome)
