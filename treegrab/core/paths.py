"""
Repository-relative path helpers shared by the source tree and the filter.
"""

from typing import List

from ..infrastructure.error_handler import InvalidPathError


SEPARATOR = '/'


def normalize_path(path: str) -> str:
    """
    Normalize a repository-relative path.

    Backslashes count as separators, empty and ``.`` segments are dropped and
    ``..`` removes the previous segment. The root normalizes to ``""``.

    Raises:
        InvalidPathError: If ``..`` would climb above the repository root
    """
    parts: List[str] = []

    for segment in path.replace('\\', SEPARATOR).split(SEPARATOR):
        if segment in ('', '.'):
            continue
        if segment == '..':
            if not parts:
                raise InvalidPathError(path)
            parts.pop()
            continue
        parts.append(segment)

    return SEPARATOR.join(parts)


def is_under(path: str, prefix: str) -> bool:
    """Whether ``path`` equals ``prefix`` or lies below it, on segment boundaries."""

    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + SEPARATOR)


def parent_paths(path: str) -> List[str]:
    """All ancestor directory paths of ``path``, nearest last."""

    parts = path.split(SEPARATOR)[:-1]
    return [SEPARATOR.join(parts[:i]) for i in range(1, len(parts) + 1)]


__all__ = ["SEPARATOR", "normalize_path", "is_under", "parent_paths"]
