"""
Paginated news sources for the ingestion engine.
"""
from app.sources.base import FetchSource
from app.sources.webz import WebzSource

__all__ = [
    "FetchSource",
    "WebzSource",
]
