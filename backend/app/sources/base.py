"""
Base interface for paginated news sources.
The pagination driver only talks to sources through this interface.
"""
from abc import ABC, abstractmethod

from app.models.domain import Page


class FetchSource(ABC):
    """Abstract base class for paginated search sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the source."""
        pass

    @abstractmethod
    async def fetch_first_page(self, query: str, page_size: int) -> Page:
        """
        Fetch the first page of results for a query.

        Args:
            query: Free-text search string
            page_size: Number of posts per page

        Returns:
            The first Page

        Raises:
            TransientFetchError: network or timeout fault
            UpstreamStatusError: the source answered with an error status
        """
        pass

    @abstractmethod
    async def fetch_next_page(self, cursor: str) -> Page:
        """
        Fetch a follow-up page.

        The cursor encodes the query state, so no parameters are re-sent.

        Args:
            cursor: Absolute `next` URL returned by the previous page

        Returns:
            The next Page
        """
        pass
