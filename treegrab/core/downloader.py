"""
Downloader managing concurrent, filtered blob downloads from a source tree.

Failure policy is best-effort: every selected file is attempted, per-file
failures are collected in ``DownloadResult.failed_files`` and the result is
marked FAILED if any file failed. Files already written stay on disk.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Tuple, Union

from ..models import (
    DownloadConfig, DownloadEvent, DownloadEventType, DownloadResult,
    DownloadStatus, ProgressInfo, RepositoryReference, TreeEntry
)
from ..services import DownloadService, GitHubAPIService
from ..infrastructure.error_handler import NotAFileError, TreeGrabError
from ..infrastructure.logger import logger
from .filter import Filter, ensure_filter
from .source_tree import SourceTree


class Downloader:
    """
    Fetches the files a filter selects from a tree and writes them under the
    configured destination, preserving their relative paths.
    """

    def __init__(
        self,
        github_service: Optional[GitHubAPIService] = None,
        download_service: Optional[DownloadService] = None
    ):
        self.github_service = github_service
        self.download_service = download_service or DownloadService()

        # State of the active download, for cancel() and progress snapshots
        self._current_result: Optional[DownloadResult] = None
        self._active_tasks: List[asyncio.Task] = []
        self._cancellation_event = asyncio.Event()

    @asynccontextmanager
    async def _api(self, config: DownloadConfig) -> AsyncIterator[GitHubAPIService]:
        if self.github_service is not None:
            yield self.github_service
            return

        async with GitHubAPIService(auth_token=config.access_token, timeout=config.timeout) as api:
            yield api

    async def download(
        self,
        config: DownloadConfig,
        reference: RepositoryReference,
        filter: Optional[Filter] = None
    ) -> DownloadResult:
        """
        Fetch the tree for ``reference`` and download the selected files.

        Errors while fetching the tree are raised; per-file errors are
        reported in the result.
        """
        logger.debug(f"Starting download of {reference.display_name} to {config.destination}")

        async with self._api(config) as api:
            tree = await SourceTree.get(reference, service=api)
            return await self._download_entries(config, api, tree, filter)

    async def download_tree(
        self,
        config: DownloadConfig,
        tree: Union[SourceTree, TreeEntry],
        filter: Optional[Filter] = None
    ) -> DownloadResult:
        """
        Download the selected files of ``tree`` (or a single resolved entry).

        Args:
            config: Destination, token, reporter and concurrency bound
            tree: A SourceTree, or a file TreeEntry from ``resolve_blob``
            filter: Selection of files, everything by default

        Returns:
            DownloadResult listing written and failed paths

        Raises:
            NotAFileError: If a directory entry is passed as ``tree``
        """
        if isinstance(tree, TreeEntry):
            if not tree.is_file:
                raise NotAFileError(tree.path)
            tree = SourceTree.single(tree)

        async with self._api(config) as api:
            return await self._download_entries(config, api, tree, filter)

    async def _download_entries(
        self,
        config: DownloadConfig,
        api: GitHubAPIService,
        tree: SourceTree,
        filter: Optional[Filter]
    ) -> DownloadResult:
        if self._current_result is not None:
            raise RuntimeError("A download is already running on this Downloader")

        filter_result = ensure_filter(filter).filter_entries(tree)
        target_files = filter_result.included_files

        logger.debug(
            f"Filtered {filter_result.filtered_files}/{filter_result.total_files} "
            "files for download"
        )

        progress = ProgressInfo(
            total_files=len(target_files),
            downloaded_files=0,
            total_bytes=sum(f.size or 0 for f in target_files),
            downloaded_bytes=0
        )
        result = DownloadResult(
            status=DownloadStatus.IN_PROGRESS,
            progress=progress,
            matched_files=[f.path for f in target_files]
        )
        self._current_result = result
        self._cancellation_event.clear()

        try:
            downloaded, failed = await self._download_files_concurrently(
                target_files, config, api, tree, progress
            )
            result.downloaded_files = downloaded
            result.failed_files = failed

            if self._cancellation_event.is_set():
                result.mark_cancelled()
                logger.warning(
                    f"Download cancelled after {len(downloaded)} of {len(target_files)} files"
                )
            else:
                result.mark_completed()
                logger.info(
                    f"Download finished: {len(downloaded)} successful, "
                    f"{len(failed)} failed, {progress.downloaded_bytes} bytes"
                )
            return result

        finally:
            self.reset_state()

    async def _download_files_concurrently(
        self,
        files: List[TreeEntry],
        config: DownloadConfig,
        api: GitHubAPIService,
        tree: SourceTree,
        progress: ProgressInfo
    ) -> Tuple[List[str], Dict[str, TreeGrabError]]:
        """
        Download files concurrently, bounded by a semaphore.

        Returns:
            Tuple of (downloaded paths, failed path -> error)
        """
        semaphore = asyncio.Semaphore(config.max_concurrent_downloads)
        destination = Path(config.destination)

        async def run(file: TreeEntry) -> Optional[int]:
            async with semaphore:
                if self._cancellation_event.is_set():
                    return None
                return await self._download_single_file(
                    file, destination, config, api, tree, progress
                )

        self._active_tasks = [asyncio.ensure_future(run(f)) for f in files]

        try:
            results = await asyncio.gather(*self._active_tasks, return_exceptions=True)
        except asyncio.CancelledError:
            logger.warning("Download operation was cancelled")
            for task in self._active_tasks:
                if not task.done():
                    task.cancel()
            raise

        downloaded: List[str] = []
        failed: Dict[str, TreeGrabError] = {}

        for file, outcome in zip(files, results):
            if isinstance(outcome, TreeGrabError):
                failed[file.path] = outcome
            elif isinstance(outcome, asyncio.CancelledError):
                # Stopped by cancel(); neither written nor failed
                continue
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome is not None:
                downloaded.append(file.path)

        return downloaded, failed

    async def _download_single_file(
        self,
        file: TreeEntry,
        destination: Path,
        config: DownloadConfig,
        api: GitHubAPIService,
        tree: SourceTree,
        progress: ProgressInfo
    ) -> int:
        """
        Fetch one blob and write it to disk.

        Returns:
            Number of bytes written

        Raises:
            TreeGrabError: If the fetch or the write fails
        """
        self._report(config, DownloadEvent(DownloadEventType.STARTED, file.path))

        try:
            content = await api.get_blob(file, tree.reference)
            bytes_written = await self.download_service.save_content(
                content, destination / file.path
            )

        except TreeGrabError as e:
            progress.fail_file()
            logger.error(f"Failed to download {file.path}: {e}")
            self._report(config, DownloadEvent(DownloadEventType.FAILED, file.path, error=e))
            raise

        progress.update_file_progress(bytes_written, file.path)
        progress.complete_file()

        logger.debug(f"Downloaded {file.path} ({bytes_written} bytes)")
        self._report(
            config,
            DownloadEvent(DownloadEventType.COMPLETED, file.path, bytes_written=bytes_written)
        )
        return bytes_written

    @staticmethod
    def _report(config: DownloadConfig, event: DownloadEvent) -> None:
        if config.reporter is None:
            return
        try:
            config.reporter(event)
        except Exception as e:
            logger.warning(f"Download reporter failed on {event.kind.value} {event.path}: {e}")

    ####
    ##      CONTROL
    #####
    def cancel(self) -> Optional[DownloadResult]:
        """
        Stop the active download: no new fetches start and in-flight ones
        are abandoned. Completed files stay on disk.

        Returns:
            The active DownloadResult, or None if nothing is running
        """
        if self._current_result is None:
            logger.warning("No active download to cancel")
            return None

        self._cancellation_event.set()
        for task in self._active_tasks:
            if not task.done():
                task.cancel()

        logger.info("Download cancelled by user")
        return self._current_result

    def get_current_progress(self) -> Optional[ProgressInfo]:
        """Snapshot of the active download's progress, or None."""

        if self._current_result is None:
            return None

        progress = self._current_result.progress
        return ProgressInfo(
            total_files=progress.total_files,
            downloaded_files=progress.downloaded_files,
            total_bytes=progress.total_bytes,
            downloaded_bytes=progress.downloaded_bytes,
            failed_files=progress.failed_files,
            current_file=progress.current_file,
            started_at=progress.started_at
        )

    def reset_state(self) -> None:
        self._current_result = None
        self._active_tasks = []
        self._cancellation_event.clear()


__all__ = ["Downloader"]
