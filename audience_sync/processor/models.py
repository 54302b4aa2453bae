from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ExtractJob:
    """Message on the extract queue: which query feeds which audience."""

    audience_id: str
    audience_name: str
    sql: str
    access_token: str
    is_replace: bool
    container_name: str
    user_email: str = ""


@dataclass(frozen=True)
class AudienceJob:
    """Message on the populate/replace queues, naming the partition files."""

    audience_id: str
    audience_name: str
    access_token: str
    container_name: str
    blob_paths: tuple[str, ...]
    user_email: str = ""
    is_replace: bool = False


@dataclass(frozen=True)
class StatusCheckJob:
    """Delayed verification request produced after a successful upload."""

    audience_id: str
    audience_name: str
    user_email: str
    expected_size: int


@dataclass(frozen=True)
class UploadDelta:
    """Counters reported by the platform for a single upload batch."""

    session_id: str
    num_received: int
    num_invalid_entries: int
    invalid_entry_samples: tuple[Any, ...] = ()


@dataclass(frozen=True)
class UploadAccumulator:
    """Running totals for one job, folded from per-batch deltas."""

    session_id: str = ""
    num_received: int = 0
    num_invalid_entries: int = 0
    invalid_entry_samples: tuple[Any, ...] = field(default_factory=tuple)
    batches: int = 0

    def merge(self, delta: UploadDelta) -> "UploadAccumulator":
        # session_id is last-write-wins across every batch of the job
        return replace(
            self,
            session_id=delta.session_id,
            num_received=self.num_received + delta.num_received,
            num_invalid_entries=self.num_invalid_entries + delta.num_invalid_entries,
            invalid_entry_samples=self.invalid_entry_samples + delta.invalid_entry_samples,
            batches=self.batches + 1,
        )

    @property
    def expected_size(self) -> int:
        return max(self.num_received - self.num_invalid_entries, 0)

    def summary(self) -> str:
        return (
            f"num_received: {self.num_received}, "
            f"num_invalid_entries: {self.num_invalid_entries}, "
            f"batches: {self.batches}"
        )
