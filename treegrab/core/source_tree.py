"""
In-memory, read-only view of a repository tree at a given ref.

The recursive tree API returns every nested entry in one flat list, so the
tree is kept flat as well: an ordered tuple of entries plus an index keyed by
normalized path.
"""

from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..models import EntryKind, RepositoryReference, TreeEntry
from ..infrastructure.error_handler import InvalidPathError, MalformedResponseError
from ..infrastructure.logger import logger
from ..services.github_api import GitHubAPIService
from .paths import is_under, normalize_path, parent_paths


class SourceTree:
    """
    Immutable collection of tree entries with O(1) path resolution.

    Build one with ``SourceTree.get`` (network) or ``SourceTree.from_entries``.
    """

    __slots__ = ('_entries', '_index', 'reference', 'sha')

    def __init__(
        self,
        entries: Tuple[TreeEntry, ...],
        index: Dict[str, TreeEntry],
        reference: Optional[RepositoryReference] = None,
        sha: Optional[str] = None
    ):
        self._entries = entries
        self._index = index
        self.reference = reference
        self.sha = sha

    @classmethod
    async def get(
        cls,
        reference: RepositoryReference,
        service: Optional[GitHubAPIService] = None,
        access_token: Optional[str] = None
    ) -> 'SourceTree':
        """
        Fetch the full recursive tree for ``reference``.

        Args:
            reference: Repository and ref to list
            service: API service to use; a short-lived one is created if omitted
            access_token: Token for the short-lived service

        Returns:
            The constructed SourceTree

        Raises:
            NotFoundError: Repository or ref does not exist
            RateLimitError: The API rate limit was hit
            TransportError: Network or unexpected HTTP failure
            MalformedResponseError: The payload is not a valid tree
        """
        if service is None:
            async with GitHubAPIService(auth_token=access_token) as api:
                sha, entries = await api.get_tree_entries(reference)
        else:
            sha, entries = await service.get_tree_entries(reference)

        tree = cls.from_entries(entries, reference=reference, sha=sha)
        logger.debug(f"Built tree for {reference.display_name} with {len(tree)} entries")
        return tree

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[TreeEntry],
        reference: Optional[RepositoryReference] = None,
        sha: Optional[str] = None
    ) -> 'SourceTree':
        """
        Build a tree from flat entries, normalizing and indexing their paths.

        Raises:
            MalformedResponseError: Two entries share a normalized path, a file
                sits where a directory is expected, or a path is invalid
        """
        ordered: List[TreeEntry] = []
        index: Dict[str, TreeEntry] = {}

        for entry in entries:
            try:
                path = normalize_path(entry.path)
            except InvalidPathError as e:
                raise MalformedResponseError(f"Invalid entry path {entry.path!r}", e) from e

            if not path:
                raise MalformedResponseError(f"Entry path {entry.path!r} resolves to the root")

            if path != entry.path:
                entry = replace(entry, path=path)

            existing = index.get(path)
            if existing is not None:
                raise MalformedResponseError(
                    f"Conflicting entries for {path!r}: "
                    f"{existing.kind.value} and {entry.kind.value}"
                )

            index[path] = entry
            ordered.append(entry)

        for entry in ordered:
            for parent in parent_paths(entry.path):
                ancestor = index.get(parent)
                if ancestor is not None and ancestor.is_file:
                    raise MalformedResponseError(
                        f"Entry {entry.path!r} is nested under file {parent!r}"
                    )

        return cls(tuple(ordered), index, reference=reference, sha=sha)

    @classmethod
    def single(cls, entry: TreeEntry, reference: Optional[RepositoryReference] = None) -> 'SourceTree':
        """One-entry view of a resolved entry."""

        return cls.from_entries([entry], reference=reference)

    ####
    ##      RESOLUTION
    #####
    def resolve_blob(self, path: str) -> Optional[TreeEntry]:
        """
        Look up the entry at ``path``, file or directory.

        Returns None when nothing matches.

        Raises:
            InvalidPathError: If the path escapes the repository root
        """
        return self._index.get(normalize_path(path))

    def resolve_file(self, path: str) -> Optional[TreeEntry]:
        entry = self.resolve_blob(path)
        return entry if entry is not None and entry.is_file else None

    def resolve_tree(self, path: str) -> Optional[TreeEntry]:
        entry = self.resolve_blob(path)
        return entry if entry is not None and entry.is_dir else None

    def subtree(self, path: str) -> Optional['SourceTree']:
        """Tree holding the directory at ``path`` and all its descendants."""

        root = self.resolve_tree(path)
        if root is None:
            return None

        entries = [e for e in self._entries if is_under(e.path, root.path)]
        return SourceTree(
            tuple(entries),
            {e.path: e for e in entries},
            reference=self.reference,
            sha=root.sha
        )

    def children(self, path: str = '') -> List[TreeEntry]:
        """Direct children of the directory at ``path`` (root by default)."""

        parent = normalize_path(path)
        return [e for e in self._entries if e.parent == parent]

    def files(self) -> List[TreeEntry]:
        return [e for e in self._entries if e.kind is EntryKind.BLOB]

    @property
    def entries(self) -> Tuple[TreeEntry, ...]:
        return self._entries

    def __iter__(self) -> Iterator[TreeEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        try:
            return normalize_path(path) in self._index
        except InvalidPathError:
            return False

    def __repr__(self) -> str:
        name = self.reference.display_name if self.reference else 'detached'
        return f"<SourceTree {name} entries={len(self._entries)}>"


__all__ = ["SourceTree"]
