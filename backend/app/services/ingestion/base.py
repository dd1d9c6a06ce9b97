"""
Data holders shared by the ingestion stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from app.models.domain import ProgressPayload


@dataclass(frozen=True)
class IngestionQuery:
    """One ingestion request. Immutable for the lifetime of a run."""
    q: str
    max_results: int = 200
    batch_size: int = 100


@dataclass
class ProgressTracker:
    """
    Run-scoped counters, passed by reference through every stage.

    Counters only ever increase; the tracker is never reset mid-run and is
    reported on both the success and the failure path.
    """
    total_fetched: int = 0
    total_saved: int = 0
    batches: int = 0
    errors: int = 0

    def record_page(self, post_count: int) -> None:
        self.batches += 1
        self.total_fetched += post_count

    def record_error(self, count: int = 1) -> None:
        self.errors += count

    def fold(self, stats: "SaveStats") -> None:
        """Add one sub-batch's outcome to the run totals."""
        self.total_saved += stats.saved
        self.errors += stats.errors

    def to_payload(self) -> ProgressPayload:
        return ProgressPayload(
            totalFetched=self.total_fetched,
            totalSaved=self.total_saved,
            batches=self.batches,
            errors=self.errors,
        )

    def to_dict(self) -> dict:
        return self.to_payload().model_dump()


@dataclass
class SaveStats:
    """Per sub-batch counters."""
    saved: int = 0
    duplicates: int = 0
    errors: int = 0

    def __add__(self, other: "SaveStats") -> "SaveStats":
        return SaveStats(
            saved=self.saved + other.saved,
            duplicates=self.duplicates + other.duplicates,
            errors=self.errors + other.errors,
        )


class SaveStatus(str, Enum):
    """Outcome of persisting one article."""
    SAVED = "saved"
    DUPLICATE = "duplicate"
    ERROR = "error"


@dataclass
class SaveResult:
    """Tagged outcome of `save_article`."""
    status: SaveStatus
    id: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def saved(cls, thread_id: str) -> "SaveResult":
        return cls(SaveStatus.SAVED, id=thread_id)

    @classmethod
    def duplicate(cls, thread_id: str) -> "SaveResult":
        return cls(SaveStatus.DUPLICATE, id=thread_id)

    @classmethod
    def failed(cls, error: BaseException) -> "SaveResult":
        return cls(SaveStatus.ERROR, error=error)


@dataclass
class PersistResult:
    """What BatchPersister hands back for one page."""
    saved_ids: list[str] = field(default_factory=list)
    stats: SaveStats = field(default_factory=SaveStats)


@dataclass
class IngestionOutcome:
    """Final state of a pagination run."""
    query: IngestionQuery
    progress: ProgressTracker
    saved_ids: list[str] = field(default_factory=list)
    total_saved: int = 0
    has_more_results: bool = False

    def __str__(self) -> str:
        return (
            f"{self.query.q}: saved={self.total_saved}, "
            f"fetched={self.progress.total_fetched}, batches={self.progress.batches}, "
            f"errors={self.progress.errors}, more={self.has_more_results}"
        )
