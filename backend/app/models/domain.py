"""
Domain models for the news ingestion service.
These describe upstream records and outbound payloads, independent of database representation.
"""
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = structlog.get_logger(__name__)


# =============================================================================
# Upstream records
# =============================================================================

class UpstreamModel(BaseModel):
    """Lenient base: upstream payloads carry many fields we never read."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SiteInfo(UpstreamModel):
    """Publishing site of a post."""
    domain: str = ""
    name: str = ""
    type: str = "news"
    section: str = ""
    country: str = ""

    @field_validator("domain", "name", "section", "country", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("type", mode="before")
    @classmethod
    def default_site_type(cls, v: Any) -> Any:
        return v or "news"


class FacebookEngagement(UpstreamModel):
    likes: int = 0
    comments: int = 0
    shares: int = 0


class VkEngagement(UpstreamModel):
    shares: int = 0


class SocialBlock(UpstreamModel):
    """Social engagement counters attached to a post."""
    facebook: Optional[FacebookEngagement] = None
    vk: Optional[VkEngagement] = None

    @property
    def has_engagement(self) -> bool:
        return self.facebook is not None or self.vk is not None


class RawArticle(UpstreamModel):
    """
    One post as returned by the news search API.

    Every field is optional; missing values fall back to empty strings,
    zeros, "news" for the site type and the ingestion time for `published`.
    """
    url: str = ""
    title: str = ""
    text: str = ""
    author: str = ""
    language: str = ""
    main_image: str = ""
    site: SiteInfo = Field(default_factory=SiteInfo)
    categories: list[str] = Field(default_factory=list)
    published: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Ranking / engagement
    performance_score: int = 0
    domain_rank: int = 0
    replies_count: int = 0
    participants_count: int = 0
    rating: Optional[float] = None

    social: Optional[SocialBlock] = None

    @field_validator("url", "title", "text", "author", "language", "main_image", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("performance_score", "domain_rank", "replies_count", "participants_count", mode="before")
    @classmethod
    def none_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("site", mode="before")
    @classmethod
    def none_to_site(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("published", mode="before")
    @classmethod
    def none_to_now(cls, v: Any) -> Any:
        return datetime.now(timezone.utc) if v in (None, "") else v

    @field_validator("categories", mode="before")
    @classmethod
    def unique_categories(cls, v: Any) -> Any:
        if v is None:
            return []
        # Upstream may repeat a category; keep first occurrence order
        return list(dict.fromkeys(c for c in v if c is not None))

    def thread_fields(self) -> dict[str, Any]:
        """Columns for the persisted thread row."""
        return {
            "url": self.url,
            "title": self.title,
            "text": self.text,
            "author": self.author,
            "language": self.language,
            "main_image": self.main_image,
            "site_domain": self.site.domain,
            "site_name": self.site.name,
            "site_type": self.site.type,
            "site_section": self.site.section,
            "country": self.site.country,
            "categories": list(self.categories),
            "published": self.published,
            "performance_score": self.performance_score,
            "domain_rank": self.domain_rank,
            "replies_count": self.replies_count,
            "participants_count": self.participants_count,
            "rating": self.rating,
        }


class Page(UpstreamModel):
    """One page of search results plus pagination metadata."""
    posts: list[RawArticle] = Field(default_factory=list)
    next: Optional[str] = None
    more_results_available: int = Field(default=0, alias="moreResultsAvailable")
    total_results: Optional[int] = Field(default=None, alias="totalResults")

    skipped_posts: int = 0

    @model_validator(mode="before")
    @classmethod
    def drop_malformed_posts(cls, data: Any) -> Any:
        """Validate posts one by one so a bad record does not sink the page."""
        if not isinstance(data, dict):
            return data
        posts = data.get("posts")
        if posts is None:
            posts = []
        if not isinstance(posts, list):
            return data

        valid = []
        skipped = 0
        for index, post in enumerate(posts):
            if isinstance(post, RawArticle):
                valid.append(post)
                continue
            try:
                valid.append(RawArticle.model_validate(post))
            except ValidationError as e:
                skipped += 1
                logger.warning(
                    "Skipping malformed post",
                    index=index,
                    url=post.get("url") if isinstance(post, dict) else None,
                    error=str(e),
                )
        return {**data, "posts": valid, "skipped_posts": skipped}

    @field_validator("more_results_available", mode="before")
    @classmethod
    def none_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @property
    def has_more(self) -> bool:
        """Upstream counter is authoritative; `next` alone means nothing."""
        return self.more_results_available > 0


# =============================================================================
# API Response Models
# =============================================================================

class ProgressPayload(BaseModel):
    totalFetched: int
    totalSaved: int
    batches: int
    errors: int


class IngestData(BaseModel):
    totalArticlesSaved: int
    articleIds: list[str]


class IngestMeta(BaseModel):
    query: str
    progress: ProgressPayload
    hasMore: bool
    batchesProcessed: int
    totalErrors: int


class IngestSuccessResponse(BaseModel):
    """Payload returned when an ingestion run completes (fully or degraded)."""
    success: bool = True
    data: IngestData
    meta: IngestMeta


class IngestErrorResponse(BaseModel):
    """Payload returned when a failure escapes the ingestion run."""
    success: bool = False
    error: str
    code: int
    progress: ProgressPayload
