"""
Core data models API surface for TreeGrab.

This file re-exports model classes from domain-specific modules so imports
like `from treegrab.models import X` work.
"""

from .github import (
    DEFAULT_API_URL,
    RepositoryReference,
    EntryKind,
    TreeEntry,
)
from .download import (
    DownloadStatus,
    DownloadEventType,
    DownloadEvent,
    ProgressInfo,
    DownloadResult,
)
from .config import DownloadConfig, DownloadReporter, ACCESS_TOKEN_ENV

__all__ = [
    # GitHub models
    "DEFAULT_API_URL",
    "RepositoryReference",
    "EntryKind",
    "TreeEntry",
    # Download models
    "DownloadStatus",
    "DownloadEventType",
    "DownloadEvent",
    "ProgressInfo",
    "DownloadResult",
    # Config models
    "DownloadConfig",
    "DownloadReporter",
    "ACCESS_TOKEN_ENV",
]
