"""
High-level Python API for TreeGrab.

Wraps the tree, filter and downloader components behind a few calls taking
plain strings.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Union

from ..core import Downloader, Filter, SourceTree
from ..models import (
    ACCESS_TOKEN_ENV, DownloadConfig, DownloadReporter, DownloadResult,
    ProgressInfo, RepositoryReference
)
from ..models.config import DEFAULT_MAX_DOWNLOADS
from ..services import GitHubAPIService
from ..infrastructure.error_handler import NotAFileError, NotFoundError
from ..infrastructure.logger import logger


class GitHubDownloader:
    """
    Convenience entry point for listing and downloading repository content.

    Example:
        >>> downloader = GitHubDownloader(verbose=True)
        >>> result = await downloader.download(
        ...     "githubtraining", "hellogitworld", "master", Path("./out"),
        ...     include=["src"]
        ... )
        >>> result.raise_for_failures()
    """

    def __init__(
        self,
        auth_token: Optional[str] = None,
        verbose: bool = False,
        max_concurrent_downloads: int = DEFAULT_MAX_DOWNLOADS,
        reporter: Optional[DownloadReporter] = None
    ):
        """
        Args:
            auth_token: GitHub token, read from GITHUB_ACCESS_TOKEN if omitted
            verbose: Log at DEBUG instead of INFO
            max_concurrent_downloads: Bound on in-flight blob requests
            reporter: Callable receiving per-file DownloadEvents
        """
        self.auth_token = auth_token if auth_token is not None else os.environ.get(ACCESS_TOKEN_ENV)
        self.max_concurrent_downloads = max_concurrent_downloads
        self.reporter = reporter
        self.downloader = Downloader()
        self.set_verbose(verbose)

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = verbose
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        if verbose:
            logger.debug("Verbose logging enabled")

    def _config(self, destination: Union[str, Path]) -> DownloadConfig:
        return DownloadConfig(
            destination=destination,
            access_token=self.auth_token,
            reporter=self.reporter,
            max_concurrent_downloads=self.max_concurrent_downloads
        )

    async def get_tree(self, owner: str, repo: str, ref: str) -> SourceTree:
        """Fetch the full tree of ``owner/repo`` at ``ref``."""

        reference = RepositoryReference(owner, repo, ref)
        async with GitHubAPIService(auth_token=self.auth_token) as api:
            return await SourceTree.get(reference, service=api)

    async def download(
        self,
        owner: str,
        repo: str,
        ref: str,
        destination: Union[str, Path],
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None
    ) -> DownloadResult:
        """
        Download the files of a repository matching ``include``/``exclude``.

        Returns:
            DownloadResult; check ``is_successful`` or call ``raise_for_failures``
        """
        reference = RepositoryReference(owner, repo, ref)
        filter = Filter(include or (), exclude or ())

        logger.info(f"Downloading {reference.display_name} to {destination} ({filter!r})")
        return await self.downloader.download(self._config(destination), reference, filter)

    async def download_directory(
        self,
        owner: str,
        repo: str,
        ref: str,
        directory: str,
        destination: Union[str, Path]
    ) -> DownloadResult:
        """Download everything below ``directory``, keeping repository-relative paths."""

        return await self.download(owner, repo, ref, destination, include=[directory])

    async def download_file(
        self,
        owner: str,
        repo: str,
        ref: str,
        path: str,
        destination: Union[str, Path]
    ) -> DownloadResult:
        """
        Download a single file.

        Raises:
            NotFoundError: If ``path`` is not in the tree
            NotAFileError: If ``path`` is a directory
        """
        tree = await self.get_tree(owner, repo, ref)
        entry = tree.resolve_blob(path)

        if entry is None:
            raise NotFoundError(f"{path} not found in {tree.reference.display_name}")
        if not entry.is_file:
            raise NotAFileError(entry.path)

        return await self.downloader.download_tree(
            self._config(destination), SourceTree.single(entry, tree.reference)
        )

    def cancel_current_download(self) -> Optional[DownloadResult]:
        return self.downloader.cancel()

    def get_download_progress(self) -> Optional[ProgressInfo]:
        return self.downloader.get_current_progress()


__all__ = ["GitHubDownloader"]
