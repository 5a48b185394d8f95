"""
Public interfaces of TreeGrab.
"""

from .api import GitHubDownloader

__all__ = ["GitHubDownloader"]
