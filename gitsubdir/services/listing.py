"""
Directory listing service.

GitHub renders directory pages with the listing embedded as a JSON blob
inside a ``<script>`` tag. This module fetches such a page and turns that blob
into :class:`DirectoryEntry` objects. Traversal code only depends on the
:class:`ListingSource` protocol, so a different extraction strategy (e.g. the
REST API) can be swapped in without touching it.
"""

import json
from typing import Any, List, Optional, Protocol

import httpx
from bs4 import BeautifulSoup

from ..models import DirectoryEntry, EntryKind
from ..models.github import validate_segment
from ..infrastructure.error_handler import (
    FetchError,
    InvalidSegmentError,
    MalformedListingError,
    handle_api_error,
)
from ..infrastructure.logger import logger


EMBEDDED_DATA_SELECTOR = 'script[type="application/json"][data-target="react-app.embeddedData"]'


class ListingSource(Protocol):
    """Anything able to list the entries of a remote directory."""

    async def fetch_listing(self, url: str) -> List[DirectoryEntry]:
        ...


def extract_embedded_data(html: str) -> Optional[str]:
    """
    Return the text of the embedded application data block, if any.

    A page without the block is not an error: callers treat it as an empty
    directory.
    """

    soup = BeautifulSoup(html, "html.parser")
    block = soup.select_one(EMBEDDED_DATA_SELECTOR)
    if block is None:
        return None
    return block.string or block.get_text()


def _require(mapping: Any, key: str, expected: type, where: str) -> Any:
    if not isinstance(mapping, dict) or key not in mapping:
        raise MalformedListingError(f"Listing payload has no '{where}{key}'")
    value = mapping[key]
    if not isinstance(value, expected):
        raise MalformedListingError(
            f"Listing payload '{where}{key}' is {type(value).__name__}, "
            f"expected {expected.__name__}"
        )
    return value


def parse_entry(item: Any) -> DirectoryEntry:
    """Build a DirectoryEntry from one ``payload.tree.items`` element."""

    content_type = _require(item, "contentType", str, "item.")
    name = _require(item, "name", str, "item.")
    path = _require(item, "path", str, "item.")

    try:
        full_path = tuple(validate_segment(part) for part in path.split("/"))
        validate_segment(name)
    except InvalidSegmentError as e:
        raise MalformedListingError(f"Unsafe path in listing: '{path}'", e) from e

    return DirectoryEntry(
        name=name,
        full_path=full_path,
        kind=EntryKind.from_content_type(content_type),
    )


def parse_listing(raw: str) -> List[DirectoryEntry]:
    """
    Parse the embedded JSON blob and project out ``payload.tree.items``.

    Raises:
        MalformedListingError: Invalid JSON or unexpected structure
        UnknownEntryKindError: An item has an unrecognized ``contentType``
    """

    try:
        data = json.loads(raw)
    except ValueError as e:
        raise MalformedListingError("Embedded listing is not valid JSON", e) from e

    payload = _require(data, "payload", dict, "")
    tree = _require(payload, "tree", dict, "payload.")
    items = _require(tree, "items", list, "payload.tree.")

    return [parse_entry(item) for item in items]


class ListingService:
    """Fetches directory pages from GitHub and parses their listing."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @handle_api_error
    async def fetch_page(self, url: str) -> str:
        logger.debug(f"Fetching listing page {url}")
        response = await self.client.get(url)
        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code} while listing {url}",
                url=url,
                status_code=response.status_code,
            )
        return response.text

    async def fetch_listing(self, url: str) -> List[DirectoryEntry]:
        """
        List the immediate children of the directory page at ``url``.

        Args:
            url: Human-facing directory URL

        Returns:
            Entries in listing order, empty when the page carries no listing

        Raises:
            FetchError: Transport failure or non-success status
            MalformedListingError: Listing structure not understood
            UnknownEntryKindError: Unrecognized entry content type
        """
        html = await self.fetch_page(url)

        raw = extract_embedded_data(html)
        if raw is None:
            logger.debug(f"No embedded listing found at {url}, treating as empty")
            return []

        entries = parse_listing(raw)
        logger.debug(f"Listed {len(entries)} entries at {url}")
        return entries


__all__ = [
    "EMBEDDED_DATA_SELECTOR",
    "ListingSource",
    "ListingService",
    "extract_embedded_data",
    "parse_entry",
    "parse_listing",
]
