"""
Batched dedup-and-persist stage.

A page of posts is split into fixed-size sub-batches. Sub-batches run one
after another; articles inside a sub-batch are saved concurrently and every
outcome is collected, so one failing article never aborts its siblings.
"""

import asyncio
from typing import Optional, Sequence

import structlog

from app.models.domain import RawArticle
from app.services.ingestion.base import (
    PersistResult,
    ProgressTracker,
    SaveResult,
    SaveStats,
    SaveStatus,
)
from app.services.ingestion.errors import PersistenceError
from app.services.ingestion.store import ArticleStore

logger = structlog.get_logger(__name__)


class BatchPersister:
    """Deduplicate by URL and persist raw articles through an ArticleStore."""

    def __init__(self, store: ArticleStore, sub_batch_size: int = 10):
        if sub_batch_size < 1:
            raise ValueError("sub_batch_size must be positive")
        self.store = store
        self.sub_batch_size = sub_batch_size

    async def persist(
        self,
        articles: Sequence[RawArticle],
        progress: Optional[ProgressTracker] = None,
    ) -> PersistResult:
        """
        Persist one page of articles.

        Args:
            articles: Posts from a single upstream page
            progress: Run tracker; each sub-batch's stats are folded into it

        Returns:
            Saved ids (completion order) and the page's aggregate stats
        """
        result = PersistResult()

        for start in range(0, len(articles), self.sub_batch_size):
            chunk = articles[start:start + self.sub_batch_size]
            saved_ids, stats = await self._persist_sub_batch(chunk)

            result.saved_ids.extend(saved_ids)
            result.stats = result.stats + stats
            if progress is not None:
                progress.fold(stats)

            logger.debug(
                "Sub-batch persisted",
                offset=start,
                size=len(chunk),
                saved=stats.saved,
                duplicates=stats.duplicates,
                errors=stats.errors,
            )

        return result

    async def _persist_sub_batch(
        self,
        chunk: Sequence[RawArticle],
    ) -> tuple[list[str], SaveStats]:
        """Save every article concurrently and wait for all of them to settle."""
        tasks = [self.save_article(article) for article in chunk]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        saved_ids: list[str] = []
        stats = SaveStats()

        for article, outcome in zip(chunk, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                outcome = SaveResult.failed(outcome)

            if outcome.status is SaveStatus.SAVED:
                stats.saved += 1
                saved_ids.append(outcome.id)
            elif outcome.status is SaveStatus.DUPLICATE:
                stats.duplicates += 1
            else:
                stats.errors += 1
                logger.warning(
                    "Failed to persist article",
                    url=article.url,
                    error=str(outcome.error),
                )

        return saved_ids, stats

    async def save_article(self, article: RawArticle) -> SaveResult:
        """
        Persist one article unless its URL is already stored.

        A failure while writing the thread or its social row becomes an
        ERROR result. If the social write fails the thread row stays behind.
        """
        if not article.url:
            return SaveResult.failed(PersistenceError("Article has no url"))

        try:
            existing = await self.store.find_by_url(article.url)
            if existing is not None:
                return SaveResult.duplicate(existing.id)

            thread = await self.store.create_thread(article.thread_fields())

            social = article.social
            if social is not None and social.has_engagement:
                await self.store.create_social(
                    thread.id,
                    facebook=social.facebook,
                    vk=social.vk,
                )

            return SaveResult.saved(thread.id)

        except Exception as e:
            return SaveResult.failed(e)
