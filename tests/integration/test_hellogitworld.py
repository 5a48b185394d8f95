"""
Live checks against github.com. Skipped unless TREEGRAB_NETWORK_TESTS=1.
"""

import hashlib
import os

import pytest

from treegrab.core import Downloader, Filter, SourceTree
from treegrab.models import DownloadConfig, EntryKind, RepositoryReference


pytestmark = [
    pytest.mark.asyncio,
    pytest.mark.network,
    pytest.mark.skipif(
        os.environ.get("TREEGRAB_NETWORK_TESTS") != "1",
        reason="set TREEGRAB_NETWORK_TESTS=1 to run tests against github.com"
    ),
]

REFERENCE = RepositoryReference("githubtraining", "hellogitworld", "master")
BUILD_GRADLE_BLOB = "6058be211566308428ca6dcab3f08cf270cd9568"
BUILD_GRADLE_SHA1 = "d8a738144623ca437e35d781992cc75e1ee3b79c"


async def test_tree_resolves_known_entries():
    tree = await SourceTree.get(REFERENCE)

    entry = tree.resolve_blob("build.gradle")
    assert entry.kind is EntryKind.BLOB
    assert entry.mode == "100644"
    assert entry.size == 112
    assert entry.sha == BUILD_GRADLE_BLOB
    assert entry.url == REFERENCE.blob_url(BUILD_GRADLE_BLOB)

    children = tree.children("src/test/java/com/github")
    assert children[0].path == "src/test/java/com/github/AppTest.java"
    assert children[0].size == 750

    assert tree.resolve_blob("does/not/exist") is None


async def test_download_single_file(tmp_path):
    result = await Downloader().download(
        DownloadConfig(tmp_path), REFERENCE, Filter(["build.gradle"])
    )

    result.raise_for_failures()
    files = [p for p in tmp_path.rglob("*") if p.is_file()]
    assert files == [tmp_path / "build.gradle"]
    assert hashlib.sha1(files[0].read_bytes()).hexdigest() == BUILD_GRADLE_SHA1


async def test_download_resolved_entry(tmp_path):
    tree = await SourceTree.get(REFERENCE)
    entry = tree.resolve_blob("build.gradle")

    result = await Downloader().download_tree(DownloadConfig(tmp_path), entry, Filter.all())

    assert result.downloaded_files == ["build.gradle"]
    assert (tmp_path / "build.gradle").stat().st_size == 112
