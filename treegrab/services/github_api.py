"""
Async client for the GitHub git-data endpoints used by TreeGrab:
the recursive tree listing and the blob content endpoint.
"""

import base64
import binascii
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple, Union

import httpx

from .._version import __version__
from ..models import DEFAULT_API_URL, EntryKind, RepositoryReference, TreeEntry
from ..infrastructure.error_handler import (
    MalformedResponseError, NotAFileError, RateLimitInfo,
    handle_api_error, raise_for_response
)
from ..infrastructure.logger import logger


USER_AGENT = f"treegrab/{__version__}"
API_VERSION = "2022-11-28"


class GitHubAPIService:
    """
    Thin async wrapper around ``httpx.AsyncClient`` for tree and blob requests.

    Use as an async context manager, or pass an existing client which then
    stays owned by the caller.
    """

    def __init__(
        self,
        auth_token: Optional[str] = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.auth_token = auth_token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self.rate_limit_info = RateLimitInfo()
        self.api_calls = 0

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": USER_AGENT,
        }
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> 'GitHubAPIService':
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    ####
    ##      REQUESTS
    #####
    @handle_api_error
    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        logger.debug(f"GET {url}")
        response = await self.client.get(url, params=params, headers=self.headers)
        self.api_calls += 1
        self.rate_limit_info = RateLimitInfo.from_headers(response.headers)

        raise_for_response(response)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response from {url} is not valid JSON", e) from e

    async def get_tree_entries(
        self,
        reference: RepositoryReference
    ) -> Tuple[Optional[str], List[TreeEntry]]:
        """
        List every entry of the repository tree at ``reference``.

        Returns:
            Tuple of (root tree sha, flat list of entries)
        """
        payload = await self._get_json(
            reference.tree_url(self.base_url), params={"recursive": "1"}
        )
        sha, items, truncated = self._parse_tree(payload)

        if not truncated:
            return sha, [e for e in (self._parse_entry(i) for i in items) if e is not None]

        logger.info(
            f"Recursive listing of {reference.display_name} was truncated, "
            "walking sub-trees individually"
        )
        return sha, await self._walk_tree(reference)

    async def _walk_tree(self, reference: RepositoryReference) -> List[TreeEntry]:
        """Collect all entries using one non-recursive request per directory."""

        entries: List[TreeEntry] = []
        pending: Deque[Tuple[str, str]] = deque([('', reference.ref)])

        while pending:
            prefix, tree_ish = pending.popleft()
            payload = await self._get_json(reference.with_ref(tree_ish).tree_url(self.base_url))
            _, items, _ = self._parse_tree(payload)

            for item in items:
                entry = self._parse_entry(item, prefix)
                if entry is None:
                    continue
                entries.append(entry)
                if entry.is_dir:
                    if not entry.sha:
                        raise MalformedResponseError(f"Directory {entry.path!r} has no sha")
                    pending.append((entry.path, entry.sha))

        return entries

    async def get_blob(
        self,
        entry: Union[TreeEntry, str],
        reference: Optional[RepositoryReference] = None
    ) -> bytes:
        """
        Fetch and decode the content of a file entry (or a blob sha).

        Raises:
            NotAFileError: If ``entry`` is a directory
            MalformedResponseError: If the content cannot be decoded, or the
                entry has no url and no reference is given to build one
        """
        if isinstance(entry, TreeEntry):
            if not entry.is_file:
                raise NotAFileError(entry.path)
            url = entry.url
            sha = entry.sha
        else:
            url = None
            sha = entry

        if not url:
            if reference is None or not sha:
                name = entry.path if isinstance(entry, TreeEntry) else sha
                raise MalformedResponseError(f"No blob location for {name}")
            url = reference.blob_url(sha, self.base_url)

        payload = await self._get_json(url)
        return self.decode_blob(payload)

    def get_rate_limit_info(self) -> RateLimitInfo:
        """Rate limit state reported by the most recent response."""
        return self.rate_limit_info

    ####
    ##      PAYLOAD PARSING
    #####
    @staticmethod
    def _parse_tree(payload: Any) -> Tuple[Optional[str], List[Any], bool]:
        if not isinstance(payload, dict) or not isinstance(payload.get("tree"), list):
            raise MalformedResponseError("Tree response has no 'tree' list")
        return payload.get("sha"), payload["tree"], bool(payload.get("truncated"))

    @staticmethod
    def _parse_entry(item: Any, prefix: str = '') -> Optional[TreeEntry]:
        if not isinstance(item, dict):
            raise MalformedResponseError(f"Tree entry is not an object: {item!r}")

        path = item.get("path")
        entry_type = item.get("type")
        if not isinstance(path, str) or not path or not isinstance(entry_type, str):
            raise MalformedResponseError(f"Tree entry lacks path or type: {item!r}")

        if entry_type == "commit":
            # Submodule; its content lives in another repository
            logger.debug(f"Skipping submodule {path}")
            return None

        try:
            kind = EntryKind(entry_type)
        except ValueError as e:
            raise MalformedResponseError(f"Unknown entry type {entry_type!r} for {path}", e) from e

        sha = item.get("sha")
        if kind is EntryKind.BLOB and not sha:
            raise MalformedResponseError(f"File entry {path!r} has no sha")

        size = item.get("size")
        if size is not None and (not isinstance(size, int) or size < 0):
            raise MalformedResponseError(f"Invalid size {size!r} for {path}")

        return TreeEntry(
            path=f"{prefix}/{path}" if prefix else path,
            kind=kind,
            sha=sha,
            size=size,
            mode=item.get("mode"),
            url=item.get("url")
        )

    @staticmethod
    def decode_blob(payload: Any) -> bytes:
        """Decode a blob response body into raw bytes."""

        if not isinstance(payload, dict) or not isinstance(payload.get("content"), str):
            raise MalformedResponseError("Blob response has no 'content' string")

        content = payload["content"]
        encoding = payload.get("encoding", "base64")

        if encoding == "base64":
            try:
                data = base64.b64decode(content)
            except (binascii.Error, ValueError) as e:
                raise MalformedResponseError("Blob content is not valid base64", e) from e
        elif encoding in ("utf-8", "utf8"):
            data = content.encode("utf-8")
        else:
            raise MalformedResponseError(f"Unsupported blob encoding {encoding!r}")

        size = payload.get("size")
        if isinstance(size, int) and size != len(data):
            raise MalformedResponseError(
                f"Blob size mismatch: expected {size} bytes, decoded {len(data)}"
            )

        return data


__all__ = ["GitHubAPIService", "USER_AGENT"]
