"""
Service layer: GitHub API access and local file writing.
"""

from .github_api import GitHubAPIService
from .download import DownloadService

__all__ = ["GitHubAPIService", "DownloadService"]
