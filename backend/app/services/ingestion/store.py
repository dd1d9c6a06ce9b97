"""
Article store: the narrow persistence interface used by the batch persister.

The store is keyed by URL. Lookup and creation are separate calls, so two
concurrent saves of the same URL can both miss the lookup; the unique index
on `threads.url` then rejects the second insert, which surfaces as a
PersistenceError.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.models.database import (
    Database,
    DBFacebookEngagement,
    DBSocial,
    DBThread,
    DBVkEngagement,
)
from app.models.domain import FacebookEngagement, VkEngagement
from app.services.ingestion.errors import PersistenceError

logger = structlog.get_logger(__name__)


class ArticleStore(ABC):
    """Abstract persistence backend for ingested threads."""

    @abstractmethod
    async def find_by_url(self, url: str) -> Optional[DBThread]:
        """Return the stored thread for `url`, or None."""
        pass

    @abstractmethod
    async def create_thread(self, fields: dict[str, Any]) -> DBThread:
        """Insert a new thread row and return it (with its id)."""
        pass

    @abstractmethod
    async def create_social(
        self,
        thread_id: str,
        facebook: Optional[FacebookEngagement] = None,
        vk: Optional[VkEngagement] = None,
    ) -> DBSocial:
        """Attach social engagement to an existing thread."""
        pass


class SQLAlchemyArticleStore(ArticleStore):
    """
    Article store backed by the async SQLAlchemy engine.

    Each call opens its own session so concurrent saves within a sub-batch
    never share one.
    """

    def __init__(self, database: Database):
        self.database = database

    async def find_by_url(self, url: str) -> Optional[DBThread]:
        try:
            async with self.database.async_session() as session:
                result = await session.execute(
                    select(DBThread).where(DBThread.url == url)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Thread lookup failed: {e}", url=url) from e

    async def create_thread(self, fields: dict[str, Any]) -> DBThread:
        url = fields.get("url")
        try:
            async with self.database.async_session() as session:
                thread = DBThread(**fields)
                session.add(thread)
                await session.commit()
                return thread
        except SQLAlchemyError as e:
            raise PersistenceError(f"Thread insert failed: {e}", url=url) from e

    async def create_social(
        self,
        thread_id: str,
        facebook: Optional[FacebookEngagement] = None,
        vk: Optional[VkEngagement] = None,
    ) -> DBSocial:
        try:
            async with self.database.async_session() as session:
                social = DBSocial(thread_id=thread_id)
                if facebook is not None:
                    social.facebook = DBFacebookEngagement(
                        likes=facebook.likes,
                        comments=facebook.comments,
                        shares=facebook.shares,
                    )
                if vk is not None:
                    social.vk = DBVkEngagement(shares=vk.shares)
                session.add(social)
                await session.commit()
                return social
        except SQLAlchemyError as e:
            logger.debug("Social insert failed", thread_id=thread_id, error=str(e))
            raise PersistenceError(f"Social insert failed for thread {thread_id}: {e}") from e
