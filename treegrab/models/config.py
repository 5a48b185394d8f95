"""
Configuration models for TreeGrab downloads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from .download import DownloadEvent


ACCESS_TOKEN_ENV = "GITHUB_ACCESS_TOKEN"
DEFAULT_MAX_DOWNLOADS = 5

DownloadReporter = Callable[[DownloadEvent], None]


@dataclass
class DownloadConfig:
    """
    Settings for one download operation.

    ``access_token`` falls back to the ``GITHUB_ACCESS_TOKEN`` environment
    variable, read once here and never again during the download. The
    reporter is called synchronously from each worker and should return
    quickly.
    """

    destination: Union[str, Path]
    access_token: Optional[str] = None
    reporter: Optional[DownloadReporter] = None

    # Concurrency and transport settings
    max_concurrent_downloads: int = DEFAULT_MAX_DOWNLOADS
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.destination:
            raise ValueError("Destination path is required")
        self.destination = Path(self.destination)

        if self.max_concurrent_downloads <= 0:
            raise ValueError("max_concurrent_downloads must be positive")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

        if self.access_token is None:
            self.access_token = os.environ.get(ACCESS_TOKEN_ENV) or None


__all__ = [
    "ACCESS_TOKEN_ENV",
    "DEFAULT_MAX_DOWNLOADS",
    "DownloadReporter",
    "DownloadConfig",
]
