"""
Pydantic model for the last known state of a single remote-file download.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class DownloadStatus(str, Enum):
    """Lifecycle of a download job as reported by the ingestion pipeline."""

    QUEUED = "queued"
    DOWNLOADING = "downloading"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


class DownloadState(BaseModel):
    """
    The stored status of one remote file's download.

    Only `file_id` and `is_hidden` have meaning to the store; the remaining
    fields belong to the ingestion pipeline. Fields this model does not know
    about are kept as extras so that records written by newer collaborators
    survive a load/save cycle intact.
    """

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    file_id: int = Field(..., ge=INT64_MIN, le=INT64_MAX)
    is_hidden: bool = False

    name: str = ""
    size: int = 0
    downloaded: int = 0
    status: DownloadStatus = DownloadStatus.QUEUED
    local_path: str = ""
    error: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def progress(self) -> float:
        """Fraction of the file downloaded so far, between 0 and 1."""
        if self.size <= 0:
            return 1.0 if self.status is DownloadStatus.COMPLETED else 0.0
        return min(self.downloaded / self.size, 1.0)
