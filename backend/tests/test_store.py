"""
Tests for the SQLAlchemy article store against a temporary SQLite database.
"""

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.models.database import Database, DBSocial, DBThread
from app.models.domain import FacebookEngagement, RawArticle, VkEngagement
from app.services.ingestion import (
    BatchPersister,
    PersistenceError,
    ProgressTracker,
    SQLAlchemyArticleStore,
    SaveStatus,
)
from conftest import make_posts


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'ingest.db'}")
    await db.create_tables()
    yield db
    await db.dispose()


def thread_fields(url: str = "https://example.com/a") -> dict:
    return RawArticle.model_validate(
        {"url": url, "title": "A", "categories": ["tech", "tech", "science"]}
    ).thread_fields()


class TestSQLAlchemyArticleStore:

    async def test_create_then_find(self, database):
        store = SQLAlchemyArticleStore(database)

        created = await store.create_thread(thread_fields())
        found = await store.find_by_url("https://example.com/a")

        assert found is not None
        assert found.id == created.id
        assert found.site_type == "news"
        assert found.categories == ["tech", "science"]

    async def test_find_missing_returns_none(self, database):
        store = SQLAlchemyArticleStore(database)

        assert await store.find_by_url("https://example.com/missing") is None

    async def test_duplicate_url_rejected(self, database):
        store = SQLAlchemyArticleStore(database)
        await store.create_thread(thread_fields())

        with pytest.raises(PersistenceError):
            await store.create_thread(thread_fields())

    async def test_create_social_with_engagement(self, database):
        store = SQLAlchemyArticleStore(database)
        thread = await store.create_thread(thread_fields())

        await store.create_social(
            thread.id,
            facebook=FacebookEngagement(likes=4, comments=2, shares=1),
            vk=VkEngagement(shares=9),
        )

        async with database.async_session() as session:
            result = await session.execute(
                select(DBSocial)
                .where(DBSocial.thread_id == thread.id)
                .options(selectinload(DBSocial.facebook), selectinload(DBSocial.vk))
            )
            social = result.scalar_one()

        assert social.facebook.likes == 4
        assert social.facebook.comments == 2
        assert social.vk.shares == 9

    async def test_second_social_for_thread_rejected(self, database):
        store = SQLAlchemyArticleStore(database)
        thread = await store.create_thread(thread_fields())
        await store.create_social(thread.id, vk=VkEngagement(shares=1))

        with pytest.raises(PersistenceError):
            await store.create_social(thread.id, vk=VkEngagement(shares=2))


class TestPersisterWithDatabase:

    async def test_page_persisted_once(self, database):
        store = SQLAlchemyArticleStore(database)
        persister = BatchPersister(store, sub_batch_size=3)
        posts = make_posts(5, social={"facebook": {"likes": 1}})
        articles = [RawArticle.model_validate(p) for p in posts]
        progress = ProgressTracker()

        first = await persister.persist(articles, progress)
        second = await persister.persist(articles, progress)

        assert first.stats.saved == 5
        assert second.stats.saved == 0
        assert second.stats.duplicates == 5
        assert progress.total_saved == 5

        async with database.async_session() as session:
            threads = (await session.execute(select(DBThread))).scalars().all()
            socials = (await session.execute(select(DBSocial))).scalars().all()
        assert len(threads) == 5
        assert len(socials) == 5

    async def test_saved_ids_match_rows(self, database):
        store = SQLAlchemyArticleStore(database)
        persister = BatchPersister(store)
        article = RawArticle.model_validate(make_posts(1)[0])

        result = await persister.save_article(article)

        assert result.status is SaveStatus.SAVED
        found = await store.find_by_url(article.url)
        assert found.id == result.id
