"""
TreeGrab: download filtered parts of a GitHub repository over the REST API,
without git.
"""

from ._version import __version__
from .models import (
    RepositoryReference,
    EntryKind,
    TreeEntry,
    DownloadConfig,
    DownloadEvent,
    DownloadEventType,
    DownloadResult,
    DownloadStatus,
    ProgressInfo,
)
from .core import Downloader, Filter, FilterResult, SourceTree
from .services import DownloadService, GitHubAPIService
from .infrastructure.error_handler import (
    TreeGrabError,
    NotFoundError,
    NotAFileError,
    RateLimitError,
    TransportError,
    AuthenticationError,
    MalformedResponseError,
    LocalIOError,
    InvalidPathError,
    PartialDownloadError,
)
from .interfaces import GitHubDownloader

__all__ = [
    "__version__",
    "RepositoryReference",
    "EntryKind",
    "TreeEntry",
    "DownloadConfig",
    "DownloadEvent",
    "DownloadEventType",
    "DownloadResult",
    "DownloadStatus",
    "ProgressInfo",
    "Downloader",
    "Filter",
    "FilterResult",
    "SourceTree",
    "DownloadService",
    "GitHubAPIService",
    "TreeGrabError",
    "NotFoundError",
    "NotAFileError",
    "RateLimitError",
    "TransportError",
    "AuthenticationError",
    "MalformedResponseError",
    "LocalIOError",
    "InvalidPathError",
    "PartialDownloadError",
    "GitHubDownloader",
]
