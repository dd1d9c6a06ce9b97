"""
Pagination driver.

Walks the upstream result set page by page: fetch, persist the page, update
progress, then decide whether to continue. Transport failures are retried
per cursor position and, once retries run out, end the run early without
raising (degraded success). Status errors from the upstream propagate.
"""

import asyncio
from typing import Awaitable, Callable, Optional
from urllib.parse import urljoin

import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type

from app.models.domain import Page
from app.services.ingestion.base import IngestionOutcome, IngestionQuery, ProgressTracker
from app.services.ingestion.errors import TransientFetchError
from app.services.ingestion.persister import BatchPersister
from app.services.ingestion.retry import RetryPolicy
from app.sources.base import FetchSource

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PaginationDriver:
    """
    Orchestrates successive page fetches for one query.

    Loop invariant: continue while the upstream reports more results and
    fewer than `max_results` articles have been saved.
    """

    def __init__(
        self,
        source: FetchSource,
        persister: BatchPersister,
        retry_policy: Optional[RetryPolicy] = None,
        pagination_base_url: str = "https://api.webz.io",
        inter_request_delay_ms: int = 1500,
        sleep: Sleep = asyncio.sleep,
    ):
        self.source = source
        self.persister = persister
        self.retry_policy = retry_policy or RetryPolicy()
        self.pagination_base_url = pagination_base_url
        self.inter_request_delay_ms = inter_request_delay_ms
        self._sleep = sleep

    async def run(
        self,
        query: IngestionQuery,
        progress: Optional[ProgressTracker] = None,
    ) -> IngestionOutcome:
        """
        Ingest up to `query.max_results` new articles.

        Args:
            query: Search string, result cap and page size
            progress: Tracker to accumulate into. Pass one in to keep access
                to the counters if the run raises.

        Returns:
            IngestionOutcome with saved ids and final progress

        Raises:
            UpstreamStatusError: the source reported an error status
        """
        if progress is None:
            progress = ProgressTracker()
        outcome = IngestionOutcome(query=query, progress=progress, has_more_results=True)
        cursor: Optional[str] = None

        logger.info(
            "Starting ingestion",
            query=query.q,
            max_results=query.max_results,
            batch_size=query.batch_size,
        )

        while outcome.has_more_results and outcome.total_saved < query.max_results:
            page = await self._fetch_with_retry(query, cursor, progress)
            if page is None:
                outcome.has_more_results = False
                break

            # Posts dropped as malformed still count as fetched, and as errors
            progress.record_page(len(page.posts) + page.skipped_posts)
            if page.skipped_posts:
                progress.record_error(page.skipped_posts)

            persisted = await self.persister.persist(page.posts, progress)
            outcome.total_saved += persisted.stats.saved
            outcome.saved_ids.extend(persisted.saved_ids)

            logger.info(
                "Processed page",
                batch=progress.batches,
                posts=len(page.posts),
                skipped=page.skipped_posts,
                saved=persisted.stats.saved,
                duplicates=persisted.stats.duplicates,
                errors=persisted.stats.errors,
                total_saved=outcome.total_saved,
                more_results_available=page.more_results_available,
            )

            if not page.has_more:
                outcome.has_more_results = False
                break

            if not page.next:
                outcome.has_more_results = False
                break

            if outcome.total_saved < query.max_results:
                cursor = self.resolve_cursor(page.next)
                await self._sleep(self.inter_request_delay_ms / 1000)

        logger.info("Ingestion finished", outcome=str(outcome))
        return outcome

    async def _fetch_with_retry(
        self,
        query: IngestionQuery,
        cursor: Optional[str],
        progress: ProgressTracker,
    ) -> Optional[Page]:
        """
        Fetch one page, retrying transport failures at this cursor.

        Returns None once the retry policy gives up.
        """

        def record_retry(retry_state: RetryCallState) -> None:
            progress.record_error()
            logger.warning(
                "Page fetch failed, retrying",
                attempt=retry_state.attempt_number,
                delay_ms=int(retry_state.next_action.sleep * 1000),
                error=str(retry_state.outcome.exception()),
            )

        retrying = AsyncRetrying(
            stop=self.retry_policy.stop,
            wait=self.retry_policy.wait,
            retry=retry_if_exception_type(TransientFetchError),
            before_sleep=record_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    if cursor is None:
                        return await self.source.fetch_first_page(query.q, query.batch_size)
                    return await self.source.fetch_next_page(cursor)
        except TransientFetchError as e:
            progress.record_error()
            logger.error(
                "Giving up on page fetch",
                attempts=retrying.statistics.get("attempt_number"),
                error=str(e),
                batches=progress.batches,
            )
            return None

    def resolve_cursor(self, next_cursor: str) -> str:
        """Absolute URLs are used as-is; relative paths join the pagination base."""
        if next_cursor.startswith(("http://", "https://")):
            return next_cursor
        return urljoin(self.pagination_base_url, next_cursor)
