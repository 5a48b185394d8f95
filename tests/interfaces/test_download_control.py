"""
Unit tests for the download entry points and controls of GitHubDownloader.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from treegrab.core import Filter, SourceTree
from treegrab.infrastructure.error_handler import NotAFileError, NotFoundError
from treegrab.interfaces.api import GitHubDownloader
from treegrab.models import (
    DownloadResult, DownloadStatus, EntryKind, ProgressInfo, RepositoryReference, TreeEntry
)


def sample_tree() -> SourceTree:
    return SourceTree.from_entries([
        TreeEntry(path="src", kind=EntryKind.TREE, sha="t1"),
        TreeEntry(path="src/main.py", kind=EntryKind.BLOB, sha="b1", size=4),
        TreeEntry(path="README.md", kind=EntryKind.BLOB, sha="b2", size=2),
    ], reference=RepositoryReference("octo", "repo", "main"))


class TestDownloadControl:
    """Cancellation and progress delegate to the underlying Downloader."""

    def test_cancel_current_download_success(self):
        downloader = GitHubDownloader()

        mock_result = Mock(spec=DownloadResult)
        mock_result.status = DownloadStatus.CANCELLED
        downloader.downloader.cancel = Mock(return_value=mock_result)

        result = downloader.cancel_current_download()

        assert result is mock_result
        downloader.downloader.cancel.assert_called_once()

    def test_cancel_current_download_no_active(self):
        downloader = GitHubDownloader()
        assert downloader.cancel_current_download() is None

    def test_get_download_progress_with_active_download(self):
        downloader = GitHubDownloader()

        mock_progress = Mock(spec=ProgressInfo)
        mock_progress.progress_percentage = 50.0
        downloader.downloader.get_current_progress = Mock(return_value=mock_progress)

        result = downloader.get_download_progress()

        assert result.progress_percentage == 50.0
        downloader.downloader.get_current_progress.assert_called_once()

    def test_get_download_progress_no_active_download(self):
        assert GitHubDownloader().get_download_progress() is None


class TestDownloadEntryPoints:
    """Argument handling of the high-level download calls."""

    @pytest.mark.asyncio
    async def test_download_builds_reference_and_filter(self, tmp_path):
        downloader = GitHubDownloader(auth_token="t", max_concurrent_downloads=3)
        downloader.downloader.download = AsyncMock(return_value="result")

        result = await downloader.download(
            "octo", "repo", "main", tmp_path, include=["src"], exclude=["src/tests"]
        )

        assert result == "result"
        config, reference, filter = downloader.downloader.download.call_args.args
        assert reference == RepositoryReference("octo", "repo", "main")
        assert filter == Filter(["src"], ["src/tests"])
        assert config.destination == tmp_path
        assert config.access_token == "t"
        assert config.max_concurrent_downloads == 3

    @pytest.mark.asyncio
    async def test_download_without_patterns_selects_everything(self, tmp_path):
        downloader = GitHubDownloader()
        downloader.downloader.download = AsyncMock()

        await downloader.download("octo", "repo", "main", tmp_path)

        assert downloader.downloader.download.call_args.args[2].is_identity

    @pytest.mark.asyncio
    async def test_download_directory_uses_include_prefix(self, tmp_path):
        downloader = GitHubDownloader()
        downloader.downloader.download = AsyncMock()

        await downloader.download_directory("octo", "repo", "main", "src/", tmp_path)

        assert downloader.downloader.download.call_args.args[2] == Filter(["src"])

    @pytest.mark.asyncio
    async def test_download_file_downloads_single_entry(self, tmp_path):
        downloader = GitHubDownloader()
        downloader.downloader.download_tree = AsyncMock(return_value="result")

        with patch.object(GitHubDownloader, 'get_tree', AsyncMock(return_value=sample_tree())):
            result = await downloader.download_file("octo", "repo", "main", "src/main.py", tmp_path)

        assert result == "result"
        tree = downloader.downloader.download_tree.call_args.args[1]
        assert [e.path for e in tree] == ["src/main.py"]

    @pytest.mark.asyncio
    async def test_download_file_missing_path(self, tmp_path):
        downloader = GitHubDownloader()

        with patch.object(GitHubDownloader, 'get_tree', AsyncMock(return_value=sample_tree())):
            with pytest.raises(NotFoundError):
                await downloader.download_file("octo", "repo", "main", "nope.txt", tmp_path)

    @pytest.mark.asyncio
    async def test_download_file_rejects_directory(self, tmp_path):
        downloader = GitHubDownloader()

        with patch.object(GitHubDownloader, 'get_tree', AsyncMock(return_value=sample_tree())):
            with pytest.raises(NotAFileError):
                await downloader.download_file("octo", "repo", "main", "src", tmp_path)
