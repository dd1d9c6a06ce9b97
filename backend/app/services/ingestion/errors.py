"""
Exception hierarchy for the ingestion engine.

Only UpstreamStatusError (and unexpected faults) cross the run boundary.
TransientFetchError and PersistenceError are absorbed into progress counters.
"""
from typing import Any, Optional


class IngestionError(Exception):
    """Base class for ingestion failures."""


class FetchError(IngestionError):
    """A page fetch from the upstream source failed."""

    status_code: Optional[int] = None

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class TransientFetchError(FetchError):
    """Network or timeout fault; safe to retry at the same cursor."""


class UpstreamStatusError(FetchError):
    """The upstream answered with a 4xx/5xx status. Never retried."""

    def __init__(
        self,
        message: str,
        status_code: int,
        payload: Any = None,
        url: Optional[str] = None,
    ):
        super().__init__(message, url=url)
        self.status_code = status_code
        self.payload = payload


class PersistenceError(IngestionError):
    """Writing a thread or its social data failed."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url
