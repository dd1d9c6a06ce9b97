"""
Shared fixtures and fakes for the ingestion tests.

The fakes stand in for the two external collaborators (the upstream search
API and the article store) so engine tests never touch the network or disk.
"""

import asyncio
import itertools
from types import SimpleNamespace
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

from app.config import IngestionSettings, Settings
from app.models.domain import FacebookEngagement, Page, VkEngagement
from app.services.ingestion import ArticleStore, PersistenceError
from app.sources.base import FetchSource


def make_posts(count: int, prefix: str = "article", **extra) -> list[dict]:
    """Build upstream post dicts shaped like the news API returns them."""
    return [
        {
            "url": f"https://example.com/{prefix}-{i}",
            "title": f"Test Article {i}",
            "site": {"domain": "example.com", "name": "Example"},
            "published": "2024-01-15T12:00:00Z",
            **extra,
        }
        for i in range(count)
    ]


def make_page(
    count: int,
    prefix: str = "article",
    next_cursor: Optional[str] = None,
    more: Optional[int] = 0,
) -> dict:
    page: dict[str, Any] = {"posts": make_posts(count, prefix), "next": next_cursor}
    if more is not None:
        page["moreResultsAvailable"] = more
    return page


class ScriptedSource(FetchSource):
    """Fetch source that replays a fixed script of pages and failures."""

    name = "scripted"

    def __init__(self, script: list):
        self.script = list(script)
        self.calls: list[tuple] = []

    async def fetch_first_page(self, query: str, page_size: int) -> Page:
        self.calls.append(("first", query, page_size))
        return self._next()

    async def fetch_next_page(self, cursor: str) -> Page:
        self.calls.append(("next", cursor))
        return self._next()

    def _next(self) -> Page:
        if not self.script:
            return Page()
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, Page):
            return item
        return Page.model_validate(item)


class InMemoryArticleStore(ArticleStore):
    """
    Dict-backed store with a unique-URL check at insert time.

    Every call yields to the event loop once so concurrent saves interleave
    the way they would against a real database.
    """

    def __init__(self):
        self.threads: dict[str, SimpleNamespace] = {}
        self.socials: list[SimpleNamespace] = []
        self.fail_urls: set[str] = set()
        self.fail_social = False
        self.in_flight = 0
        self.max_in_flight = 0
        self._ids = itertools.count(1)

    def seed(self, url: str, thread_id: str = "existing-id") -> None:
        self.threads[url] = SimpleNamespace(id=thread_id, url=url)

    async def find_by_url(self, url: str):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            return self.threads.get(url)
        finally:
            self.in_flight -= 1

    async def create_thread(self, fields: dict[str, Any]):
        await asyncio.sleep(0)
        url = fields["url"]
        if url in self.fail_urls:
            raise PersistenceError("insert rejected", url=url)
        if url in self.threads:
            raise PersistenceError("UNIQUE constraint failed: threads.url", url=url)
        thread = SimpleNamespace(id=f"thread-{next(self._ids)}", **fields)
        self.threads[url] = thread
        return thread

    async def create_social(
        self,
        thread_id: str,
        facebook: Optional[FacebookEngagement] = None,
        vk: Optional[VkEngagement] = None,
    ):
        await asyncio.sleep(0)
        if self.fail_social:
            raise PersistenceError("social insert rejected")
        social = SimpleNamespace(id=f"social-{thread_id}", thread_id=thread_id, facebook=facebook, vk=vk)
        self.socials.append(social)
        return social


@pytest.fixture
def store() -> InMemoryArticleStore:
    return InMemoryArticleStore()


@pytest.fixture
def sleep() -> AsyncMock:
    """Stand-in for asyncio.sleep that records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        webz_api_url="https://api.webz.io/newsApiLite",
        webz_api_key="test-token",
        webz_pagination_base_url="https://api.webz.io",
        database_url="sqlite+aiosqlite:///:memory:",
        ingestion=IngestionSettings(),
    )


def slept_seconds(sleep: AsyncMock) -> list[float]:
    return [c.args[0] for c in sleep.await_args_list]
