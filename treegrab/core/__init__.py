"""
Core engine: source tree resolution, filtering and download orchestration.
"""

from .filter import Filter, FilterResult
from .source_tree import SourceTree
from .downloader import Downloader

__all__ = ["Filter", "FilterResult", "SourceTree", "Downloader"]
