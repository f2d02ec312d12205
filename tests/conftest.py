"""
Shared fixtures: an in-memory GitHub served through httpx.MockTransport.
"""

import json
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from gitsubdir.services import DownloadService, ListingService
from gitsubdir.core.walker import DirectoryWalker


OWNER = "octo"
REPO = "demo"
BRANCH = "main"
TREE_PREFIX = f"/{OWNER}/{REPO}/tree/{BRANCH}/"
RAW_PREFIX = f"/{OWNER}/{REPO}/{BRANCH}/"


def tree_url(path: str) -> str:
    return f"https://github.com{TREE_PREFIX}{path}"


def listing_page(items: List[dict]) -> str:
    payload = json.dumps({"payload": {"tree": {"items": items}}})
    return (
        "<html><head><title>demo</title></head><body>"
        '<script type="application/json" data-target="react-app.embeddedData">'
        f"{payload}</script></body></html>"
    )


class FakeGitHub:
    """Minimal stand-in for github.com directory pages and raw.githubusercontent.com."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.listings: Dict[str, List[dict]] = {}
        self.page_overrides: Dict[str, Tuple[int, str]] = {}
        self.requests: List[str] = []

    def _add_item(self, path: str, content_type: str) -> None:
        parent, _, name = path.rpartition("/")
        items = self.listings.setdefault(parent, [])
        if not any(item["path"] == path for item in items):
            items.append({"name": name, "path": path, "contentType": content_type})
        if parent:
            self.add_directory(parent)

    def add_directory(self, path: str) -> None:
        self.listings.setdefault(path, [])
        if path:
            self._add_item(path, "directory")

    def add_file(self, path: str, content: bytes) -> None:
        self.files[path] = content
        self._add_item(path, "file")

    def add_item(self, path: str, content_type: str) -> None:
        self._add_item(path, content_type)

    def override_page(self, path: str, status: int, body: str = "") -> None:
        self.page_overrides[path] = (status, body)

    @property
    def listing_requests(self) -> List[str]:
        return [url for url in self.requests if url.startswith("https://github.com/")]

    @property
    def raw_requests(self) -> List[str]:
        return [url for url in self.requests if url.startswith("https://raw.githubusercontent.com/")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        path = request.url.path

        if request.url.host == "github.com" and path.startswith(TREE_PREFIX):
            directory = path[len(TREE_PREFIX):]
            if directory in self.page_overrides:
                status, body = self.page_overrides[directory]
                return httpx.Response(status, text=body)
            if directory in self.listings:
                return httpx.Response(200, text=listing_page(self.listings[directory]))

        if request.url.host == "raw.githubusercontent.com" and path.startswith(RAW_PREFIX):
            file_path = path[len(RAW_PREFIX):]
            if file_path in self.files:
                return httpx.Response(200, content=self.files[file_path])

        return httpx.Response(404, text="Not Found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def make_walker(client: httpx.AsyncClient, events: Optional[list] = None, **kwargs) -> DirectoryWalker:
    return DirectoryWalker(
        listing_service=ListingService(client),
        download_service=DownloadService(client),
        event_callback=events.append if events is not None else None,
        **kwargs
    )


@pytest.fixture
def fake_github():
    return FakeGitHub()
