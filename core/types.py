from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional


class EntryTag(Enum):
    FILE = "file"
    FOLDER = "folder"


class DeleteJobStatus(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"
    # Only reachable when the caller supplies a deadline or cancel event
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not DeleteJobStatus.IN_PROGRESS


@dataclass(frozen=True)
class FileRecord:
    id: str
    name: str
    path_lower: str
    path_display: str


@dataclass(frozen=True)
class ListingEntry:
    tag: EntryTag
    id: str
    name: str
    path_lower: str
    path_display: str

    def to_record(self) -> FileRecord:
        return FileRecord(
            id=self.id,
            name=self.name,
            path_lower=self.path_lower,
            path_display=self.path_display,
        )


@dataclass
class ListingPage:
    entries: List[ListingEntry]
    has_more: bool = False
    cursor: Optional[str] = None


@dataclass
class DeleteEntryResult:
    path: str
    success: bool
    error: Optional[str] = None


@dataclass
class DeleteLaunch:
    """Response to a batch delete submission.

    Either ``complete`` is True (and ``entries`` may carry per-path results)
    or ``async_job_id`` names the job to poll.
    """
    complete: bool
    async_job_id: Optional[str] = None
    entries: List[DeleteEntryResult] = field(default_factory=list)


@dataclass
class DeleteJobCheck:
    status: DeleteJobStatus
    reason: Optional[str] = None
    entries: List[DeleteEntryResult] = field(default_factory=list)


@dataclass
class DeleteJob:
    job_id: Optional[str]
    status: DeleteJobStatus = DeleteJobStatus.IN_PROGRESS


@dataclass
class DeleteOutcome:
    status: DeleteJobStatus
    job_id: Optional[str] = None
    checks: int = 0
    reason: Optional[str] = None
    deleted: int = 0
    failed_paths: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status is DeleteJobStatus.COMPLETE


@dataclass
class ThumbnailResult:
    path: str
    name: str
    data: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.data is not None
