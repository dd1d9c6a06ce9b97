"""
Render ingestion outcomes and escaped failures into outbound payloads.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from app.models.domain import (
    IngestData,
    IngestErrorResponse,
    IngestMeta,
    IngestSuccessResponse,
)
from app.services.ingestion.base import IngestionOutcome, ProgressTracker
from app.services.ingestion.errors import FetchError

logger = structlog.get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


@dataclass
class ExternalResponse:
    """HTTP status plus JSON-ready body."""
    status_code: int
    body: dict[str, Any]


class ResponseBuilder:
    """Builds the success payload and classifies failures."""

    def __init__(self, id_limit: int = 100):
        self.id_limit = id_limit

    def build_success(self, outcome: IngestionOutcome) -> ExternalResponse:
        progress = outcome.progress
        # Approximates "stopped early": only true while upstream still had pages
        has_more = outcome.has_more_results and progress.total_fetched < outcome.query.max_results

        response = IngestSuccessResponse(
            data=IngestData(
                totalArticlesSaved=outcome.total_saved,
                articleIds=outcome.saved_ids[:self.id_limit],
            ),
            meta=IngestMeta(
                query=outcome.query.q,
                progress=progress.to_payload(),
                hasMore=has_more,
                batchesProcessed=progress.batches,
                totalErrors=progress.errors,
            ),
        )
        return ExternalResponse(status_code=200, body=response.model_dump())

    def build_error(self, error: BaseException, progress: ProgressTracker) -> ExternalResponse:
        """
        Classify an escaped failure.

        Upstream-style failures keep the status the source reported;
        everything else is a generic 500.
        """
        status_code = error.status_code if isinstance(error, FetchError) else None

        if status_code is not None:
            logger.error(
                "API request failed",
                error=str(error),
                status=status_code,
                data=getattr(error, "payload", None),
                progress=progress.to_dict(),
            )
            message = str(error)
        else:
            logger.error(
                "Unexpected error",
                error=str(error) or type(error).__name__,
                progress=progress.to_dict(),
                exc_info=error,
            )
            status_code = 500
            message = GENERIC_ERROR_MESSAGE

        response = IngestErrorResponse(
            error=message,
            code=status_code,
            progress=progress.to_payload(),
        )
        return ExternalResponse(status_code=status_code, body=response.model_dump())
