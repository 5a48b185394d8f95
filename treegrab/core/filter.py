"""
Path filter deciding which tree entries take part in a download.
"""

import fnmatch
from dataclasses import dataclass, field
from itertools import product
from typing import Iterable, Iterator, List, Optional, Tuple

from ..models import TreeEntry
from .paths import is_under, normalize_path


GLOB_CHARS = frozenset('*?[')


####
##      FILTER RESULT MODEL
#####
@dataclass
class FilterResult:
    """Outcome of applying a filter to a list of entries."""

    included_files: List[TreeEntry] = field(default_factory=list)
    excluded_files: List[TreeEntry] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.included_files) + len(self.excluded_files)

    @property
    def filtered_files(self) -> int:
        return len(self.included_files)


####
##      FILTER
#####
class Filter:
    """
    Include/exclude filter over repository-relative paths.

    A path is selected when ``include`` is empty or the path lies under one of
    its prefixes, and it lies under none of the ``exclude`` prefixes. Prefixes
    compare on segment boundaries: ``src`` matches ``src/main.py`` but not
    ``srcfoo/main.py``. Patterns containing ``*``, ``?`` or ``[`` are matched
    against the whole path with fnmatch instead, where ``*`` may cross ``/``
    and ``**/`` also matches zero directories (``src/**/*.py`` selects
    ``src/main.py``).
    """

    __slots__ = ('include', 'exclude')

    def __init__(self, include: Iterable[str] = (), exclude: Iterable[str] = ()):
        if isinstance(include, str):
            include = (include,)
        if isinstance(exclude, str):
            exclude = (exclude,)

        self.include: Tuple[str, ...] = tuple(self._normalize(p) for p in include)
        self.exclude: Tuple[str, ...] = tuple(self._normalize(p) for p in exclude)

    @classmethod
    def new(cls, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> 'Filter':
        return cls(include, exclude)

    @classmethod
    def all(cls) -> 'Filter':
        """The identity filter."""
        return cls()

    @staticmethod
    def _normalize(pattern: str) -> str:
        if GLOB_CHARS.intersection(pattern):
            return pattern.replace('\\', '/').strip('/')
        return normalize_path(pattern)

    @staticmethod
    def _glob_variants(pattern: str) -> Iterator[str]:
        # Each '**/' may also stand for no directory at all
        parts = pattern.split('**/')
        for choice in product(('**/', ''), repeat=len(parts) - 1):
            yield parts[0] + ''.join(c + p for c, p in zip(choice, parts[1:]))

    @classmethod
    def _matches(cls, path: str, pattern: str) -> bool:
        if GLOB_CHARS.intersection(pattern):
            return any(fnmatch.fnmatchcase(path, p) for p in cls._glob_variants(pattern))
        return is_under(path, pattern)

    def check(self, path: str) -> bool:
        """Whether a relative path passes the filter."""

        path = normalize_path(path)

        if self.include and not any(self._matches(path, p) for p in self.include):
            return False

        return not any(self._matches(path, p) for p in self.exclude)

    def selects(self, entry: TreeEntry) -> bool:
        """Whether ``entry`` should be fetched. Directories never are."""

        return entry.is_file and self.check(entry.path)

    def filter_entries(self, entries: Iterable[TreeEntry]) -> FilterResult:
        """Split file entries into included and excluded ones."""

        result = FilterResult()
        for entry in entries:
            if not entry.is_file:
                continue
            if self.check(entry.path):
                result.included_files.append(entry)
            else:
                result.excluded_files.append(entry)
        return result

    @property
    def is_identity(self) -> bool:
        return not self.include and not self.exclude

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Filter):
            return NotImplemented
        return self.include == other.include and self.exclude == other.exclude

    def __hash__(self) -> int:
        return hash((self.include, self.exclude))

    def __repr__(self) -> str:
        return f"Filter(include={list(self.include)!r}, exclude={list(self.exclude)!r})"


def ensure_filter(value: Optional[Filter]) -> Filter:
    return value if value is not None else Filter.all()


__all__ = ["Filter", "FilterResult", "ensure_filter"]
