"""
Shared fixtures: an in-memory GitHub served through ``httpx.MockTransport``.
"""

import base64
import hashlib
from typing import Dict, List, Optional, Union

import httpx
import pytest

from treegrab.models import RepositoryReference
from treegrab.services import GitHubAPIService


API = "https://api.github.com"
OWNER = "octo"
REPO = "repo"
REF = "main"


class FakeGitHub:
    """Serves the tree and blob endpoints for a small set of files."""

    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}
        self.dirs: set = set()
        self.blob_overrides: Dict[str, Union[httpx.Response, Exception]] = {}
        self.tree_override: Optional[httpx.Response] = None
        self.requests: List[httpx.Request] = []

    @staticmethod
    def sha_for(path: str) -> str:
        return hashlib.sha1(path.encode()).hexdigest()

    def add_file(self, path: str, content: bytes) -> None:
        self.files[path] = content
        parts = path.split('/')[:-1]
        for i in range(1, len(parts) + 1):
            self.dirs.add('/'.join(parts[:i]))

    def fail_blob(self, path: str, outcome: Union[httpx.Response, Exception]) -> None:
        self.blob_overrides[self.sha_for(path)] = outcome

    def tree_payload(self) -> dict:
        tree = []
        for d in sorted(self.dirs):
            sha = self.sha_for(d)
            tree.append({
                "path": d, "mode": "040000", "type": "tree", "sha": sha,
                "url": f"{API}/repos/{OWNER}/{REPO}/git/trees/{sha}",
            })
        for path, content in sorted(self.files.items()):
            sha = self.sha_for(path)
            tree.append({
                "path": path, "mode": "100644", "type": "blob", "sha": sha,
                "size": len(content),
                "url": f"{API}/repos/{OWNER}/{REPO}/git/blobs/{sha}",
            })
        return {"sha": "rootsha", "url": f"{API}/repos/{OWNER}/{REPO}/git/trees/rootsha",
                "tree": tree, "truncated": False}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == f"/repos/{OWNER}/{REPO}/git/trees/{REF}":
            if self.tree_override is not None:
                return self._fresh(self.tree_override)
            return httpx.Response(200, json=self.tree_payload())

        prefix = f"/repos/{OWNER}/{REPO}/git/blobs/"
        if path.startswith(prefix):
            sha = path[len(prefix):]
            override = self.blob_overrides.get(sha)
            if isinstance(override, Exception):
                raise override
            if override is not None:
                return self._fresh(override)
            for file_path, content in self.files.items():
                if self.sha_for(file_path) == sha:
                    return httpx.Response(200, json={
                        "sha": sha,
                        "size": len(content),
                        "encoding": "base64",
                        "content": base64.encodebytes(content).decode(),
                    })

        return httpx.Response(404, json={"message": "Not Found"})

    @staticmethod
    def _fresh(response: httpx.Response) -> httpx.Response:
        # Responses are single-use; hand out a copy per request
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )

    def blob_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if "/git/blobs/" in r.url.path]


@pytest.fixture
def reference():
    return RepositoryReference(OWNER, REPO, REF)


@pytest.fixture
def fake_github():
    fake = FakeGitHub()
    fake.add_file("README.md", b"# hello\n")
    fake.add_file("src/main.py", b"print('hi')\n")
    fake.add_file("src/util/helpers.py", b"def helper():\n    return 1\n")
    fake.add_file("srcfoo/other.py", b"x = 1\n")
    fake.add_file("docs/guide.md", bytes(range(256)) * 4)
    return fake


@pytest.fixture
def api_service(fake_github):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_github.handler))
    return GitHubAPIService(auth_token="test-token", client=client)
