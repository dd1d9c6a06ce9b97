"""
Ingestion engine for paginated news search results.

- Pagination driver with per-cursor retry and linear backoff
- Batched, concurrent dedup-and-persist stage
- Progress accounting that survives partial failure
- Response rendering for success and error paths
"""

from app.services.ingestion.base import (
    IngestionOutcome,
    IngestionQuery,
    PersistResult,
    ProgressTracker,
    SaveResult,
    SaveStats,
    SaveStatus,
)
from app.services.ingestion.errors import (
    FetchError,
    IngestionError,
    PersistenceError,
    TransientFetchError,
    UpstreamStatusError,
)
from app.services.ingestion.retry import RetryAction, RetryDecision, RetryPolicy
from app.services.ingestion.store import ArticleStore, SQLAlchemyArticleStore
from app.services.ingestion.persister import BatchPersister
from app.services.ingestion.driver import PaginationDriver
from app.services.ingestion.response import ExternalResponse, ResponseBuilder

__all__ = [
    "IngestionOutcome",
    "IngestionQuery",
    "PersistResult",
    "ProgressTracker",
    "SaveResult",
    "SaveStats",
    "SaveStatus",
    "FetchError",
    "IngestionError",
    "PersistenceError",
    "TransientFetchError",
    "UpstreamStatusError",
    "RetryAction",
    "RetryDecision",
    "RetryPolicy",
    "ArticleStore",
    "SQLAlchemyArticleStore",
    "BatchPersister",
    "PaginationDriver",
    "ExternalResponse",
    "ResponseBuilder",
]
