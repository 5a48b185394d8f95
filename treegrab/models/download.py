"""
Download domain models for TreeGrab.

This module contains data classes and enums representing download events,
progress and results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from ..infrastructure.error_handler import PartialDownloadError, TreeGrabError


class DownloadStatus(Enum):
    """Status enumeration for download operations."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DownloadEventType(Enum):
    """Lifecycle events reported for each file."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class DownloadEvent:
    """Something that happened to a single file download."""

    kind: DownloadEventType
    path: str
    error: Optional[TreeGrabError] = None
    bytes_written: Optional[int] = None


@dataclass
class ProgressInfo:
    """Real-time progress tracking information."""

    total_files: int
    downloaded_files: int
    total_bytes: int
    downloaded_bytes: int
    failed_files: int = 0
    current_file: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def progress_percentage(self) -> float:
        if self.total_bytes == 0:
            return 0.0
        return (self.downloaded_bytes / self.total_bytes) * 100.0

    @property
    def files_percentage(self) -> float:
        if self.total_files == 0:
            return 0.0
        return (self.downloaded_files / self.total_files) * 100.0

    @property
    def elapsed_time(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()

    def update_file_progress(self, bytes_downloaded: int, current_file: Optional[str] = None) -> None:
        self.downloaded_bytes += bytes_downloaded
        if current_file:
            self.current_file = current_file

    def complete_file(self) -> None:
        self.downloaded_files += 1
        self.current_file = None

    def fail_file(self) -> None:
        self.failed_files += 1


@dataclass
class DownloadResult:
    """Result of a download operation.

    ``failed_files`` maps every failed path to the typed error that caused it;
    a result with any failure is never reported as successful.
    """

    status: DownloadStatus
    progress: ProgressInfo

    matched_files: List[str] = field(default_factory=list)
    downloaded_files: List[str] = field(default_factory=list)
    failed_files: Dict[str, TreeGrabError] = field(default_factory=dict)

    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    total_download_time: Optional[float] = None

    @property
    def is_successful(self) -> bool:
        return self.status == DownloadStatus.COMPLETED and not self.failed_files

    @property
    def success_rate(self) -> float:
        total = len(self.downloaded_files) + len(self.failed_files)
        if total == 0:
            return 0.0
        return (len(self.downloaded_files) / total) * 100.0

    def mark_completed(self) -> None:
        self.completed_at = datetime.now()
        self.status = DownloadStatus.COMPLETED if not self.failed_files else DownloadStatus.FAILED
        self.total_download_time = (self.completed_at - self.started_at).total_seconds()

    def mark_cancelled(self) -> None:
        self.completed_at = datetime.now()
        self.status = DownloadStatus.CANCELLED
        self.total_download_time = (self.completed_at - self.started_at).total_seconds()

    def raise_for_failures(self) -> None:
        """Raise ``PartialDownloadError`` if any selected file failed."""

        if self.failed_files:
            raise PartialDownloadError(self.failed_files)


__all__ = [
    "DownloadStatus",
    "DownloadEventType",
    "DownloadEvent",
    "ProgressInfo",
    "DownloadResult",
]
