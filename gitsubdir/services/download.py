"""
Service for fetching raw file content and writing it to disk.
"""

import asyncio
from pathlib import Path

import httpx

from ..infrastructure.error_handler import FetchError, LocalIOError, handle_api_error
from ..infrastructure.logger import logger


class DownloadService:
    """Fetches single files and stores them locally. Knows nothing about trees."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @handle_api_error
    async def get_file_content(self, raw_url: str) -> bytes:
        logger.debug(f"Fetching {raw_url}")
        response = await self.client.get(raw_url)
        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code} while downloading {raw_url}",
                url=raw_url,
                status_code=response.status_code,
            )
        return response.content

    async def ensure_directory(self, path: Path) -> None:
        """
        Create ``path`` and any missing parents.

        An already existing directory counts as success, so concurrent
        writers into the same directory do not race each other.
        """
        try:
            await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise LocalIOError(f"Could not create dir '{path}'", path=Path(path), original_error=e) from e

    async def save_content(self, content: bytes, path: Path) -> int:
        """
        Write ``content`` to ``path``, replacing any existing file.

        Returns:
            Number of bytes written
        """
        try:
            return await asyncio.to_thread(Path(path).write_bytes, content)
        except OSError as e:
            raise LocalIOError(f"Could not write '{path}'", path=Path(path), original_error=e) from e

    async def fetch_file(self, raw_url: str, destination: Path) -> int:
        """
        Download ``raw_url`` into ``destination``.

        Args:
            raw_url: URL serving the unrendered file bytes
            destination: Local file path, parents are created as needed

        Returns:
            Number of bytes written

        Raises:
            FetchError: Transport failure or non-success status
            LocalIOError: Directory creation or write failed
        """
        destination = Path(destination)
        content = await self.get_file_content(raw_url)
        await self.ensure_directory(destination.parent)
        bytes_written = await self.save_content(content, destination)
        logger.debug(f"Wrote {destination} ({bytes_written} bytes)")
        return bytes_written


__all__ = ["DownloadService"]
