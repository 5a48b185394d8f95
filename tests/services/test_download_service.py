import asyncio
from unittest.mock import patch

import pytest

from treegrab.infrastructure.error_handler import LocalIOError
from treegrab.services.download import DownloadService


pytestmark = pytest.mark.asyncio


async def test_save_content_creates_parents_and_writes(tmp_path):
    target = tmp_path / "a" / "b" / "file.bin"

    written = await DownloadService().save_content(b"\x00\x01payload", target)

    assert written == 9
    assert target.read_bytes() == b"\x00\x01payload"
    assert [p.name for p in target.parent.iterdir()] == ["file.bin"]


async def test_save_content_overwrites_existing_file(tmp_path):
    target = tmp_path / "file.txt"
    target.write_bytes(b"old content that is longer")

    await DownloadService().save_content(b"new", target)

    assert target.read_bytes() == b"new"


async def test_failed_replace_leaves_no_partial_file(tmp_path):
    target = tmp_path / "file.txt"

    with patch("treegrab.services.download.aiofiles.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(LocalIOError) as exc_info:
            await DownloadService().save_content(b"data", target)

    assert exc_info.value.path == target
    assert list(tmp_path.iterdir()) == []


async def test_unwritable_directory_is_local_io_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    with pytest.raises(LocalIOError):
        await DownloadService().save_content(b"data", blocker / "child.txt")


async def test_cancellation_removes_temporary_file(tmp_path):
    target = tmp_path / "file.txt"

    with patch("treegrab.services.download.aiofiles.os.replace", side_effect=asyncio.CancelledError()):
        with pytest.raises(asyncio.CancelledError):
            await DownloadService().save_content(b"data", target)

    assert list(tmp_path.iterdir()) == []
