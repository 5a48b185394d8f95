"""
GitHub domain models for TreeGrab.

This module contains strongly typed data classes and enums representing
repository references and the entries of a repository tree.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


DEFAULT_API_URL = "https://api.github.com"


@dataclass(frozen=True)
class RepositoryReference:
    """Immutable pointer to a repository snapshot (branch, tag or commit)."""

    owner: str
    name: str
    ref: str

    def __post_init__(self) -> None:
        if not self.owner or not self.name:
            raise ValueError("Repository owner and name are required")
        if not self.ref:
            raise ValueError("A branch name or commit hash is required")
        if '/' in self.owner or '/' in self.name:
            raise ValueError(f"Invalid repository: {self.owner}/{self.name}")

    @classmethod
    def parse(cls, text: str, default_ref: Optional[str] = None) -> RepositoryReference:
        """Build a reference from ``owner/name@ref`` (or ``owner/name`` with a default ref)."""

        repository, _, ref = text.strip().partition('@')
        owner, _, name = repository.partition('/')
        ref = ref or default_ref
        if not ref:
            raise ValueError(f"No ref given in {text!r}")
        return cls(owner=owner, name=name, ref=ref)

    def with_ref(self, ref: str) -> RepositoryReference:
        return replace(self, ref=ref)

    @property
    def display_name(self) -> str:
        return f'{self.owner}/{self.name}@{self.ref}'

    def tree_url(self, base_url: str = DEFAULT_API_URL) -> str:
        return f"{base_url.rstrip('/')}/repos/{self.owner}/{self.name}/git/trees/{self.ref}"

    def blob_url(self, sha: str, base_url: str = DEFAULT_API_URL) -> str:
        return f"{base_url.rstrip('/')}/repos/{self.owner}/{self.name}/git/blobs/{sha}"


class EntryKind(Enum):
    """Kind of a tree entry as reported by the tree API."""

    BLOB = "blob"   # File
    TREE = "tree"   # Directory


@dataclass(frozen=True)
class TreeEntry:
    """A single file or directory of a repository tree."""

    path: str
    kind: EntryKind
    sha: Optional[str] = None
    size: Optional[int] = None
    mode: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("Tree entry path is required")
        if self.size is not None and self.size < 0:
            raise ValueError("Entry size cannot be negative")

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.BLOB

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.TREE

    @property
    def name(self) -> str:
        return self.path.rsplit('/', 1)[-1]

    @property
    def parent(self) -> str:
        """Parent directory path, empty for root-level entries."""
        return self.path.rpartition('/')[0]


__all__ = [
    "DEFAULT_API_URL",
    "RepositoryReference",
    "EntryKind",
    "TreeEntry",
]
