"""
Webz.io news API source.
API docs: https://docs.webz.io/reference/news-api-lite
"""
import json
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from app.config import Settings, get_settings
from app.models.domain import Page
from app.services.ingestion.errors import (
    FetchError,
    TransientFetchError,
    UpstreamStatusError,
)
from app.sources.base import FetchSource

logger = structlog.get_logger(__name__)


class WebzSource(FetchSource):
    """Fetch paginated search results from the Webz news API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    @property
    def name(self) -> str:
        return "webz"

    async def fetch_first_page(self, query: str, page_size: int) -> Page:
        params = {
            "token": self.settings.webz_api_key or "",
            # The API expects the query as a quoted phrase
            "q": json.dumps(query),
            "size": page_size,
        }
        return await self._get(self.settings.webz_api_url, params=params)

    async def fetch_next_page(self, cursor: str) -> Page:
        return await self._get(cursor)

    async def _get(self, url: str, params: Optional[dict[str, Any]] = None) -> Page:
        """GET one page and translate transport/status failures."""
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, params=params)
                logger.debug("Webz request", url=_redact(str(response.request.url)))
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            payload = _safe_json(e.response)
            logger.error(
                "Webz API request failed",
                status=status,
                data=payload,
            )
            raise UpstreamStatusError(
                f"Request failed with status code {status}",
                status_code=status,
                payload=payload,
                url=_redact(str(e.request.url)),
            ) from e
        except httpx.TransportError as e:
            raise TransientFetchError(
                f"{type(e).__name__}: {e}" if str(e) else type(e).__name__,
                url=_redact(url),
            ) from e
        except ValueError as e:
            # Body was not JSON
            raise FetchError(f"Malformed response body: {e}", url=_redact(url)) from e

        try:
            return Page.model_validate(data)
        except ValidationError as e:
            raise FetchError(f"Unexpected page shape: {e}", url=_redact(url)) from e


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _redact(url: str) -> str:
    """Hide the API token in logged URLs."""
    parsed = httpx.URL(url)
    if "token" not in parsed.params:
        return url
    return str(parsed.copy_set_param("token", "***"))
