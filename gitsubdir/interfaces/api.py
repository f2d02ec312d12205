"""
High level Python API for downloading GitHub subdirectories.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from ..core.walker import DirectoryWalker
from ..models import (
    DownloadConfig, DownloadResult, PathPolicy, ProgressInfo, RepoLocation,
    TraversalOptions
)
from ..services import DownloadService, ListingService
from ..infrastructure.logger import logger


class GitSubdirDownloader:
    """
    Entry point for library users.

    Example:
        >>> downloader = GitSubdirDownloader()
        >>> result = downloader.download_sync(
        ...     "https://github.com/owner/repo/tree/main/docs"
        ... )
        >>> result.files_written
    """

    def __init__(self, config: Optional[DownloadConfig] = None, verbose: bool = False):
        self.config = config or DownloadConfig(verbose=verbose)
        self.verbose = verbose or self.config.verbose
        self.walker: Optional[DirectoryWalker] = None
        self._configure_logging()

    def _configure_logging(self) -> None:
        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)
        if self.verbose:
            logger.debug("Verbose logging enabled")

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = verbose
        self._configure_logging()

    def parse_url(self, url: str) -> RepoLocation:
        """Parse a directory URL; raises a UrlError subclass when invalid."""

        return RepoLocation.parse(url)

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.config.user_agent},
        )

    async def download(
        self,
        url: str,
        output: Optional[Union[str, Path]] = None,
        ignore_subdirectories: bool = False,
        path_policy: PathPolicy = PathPolicy.REQUEST_RELATIVE
    ) -> DownloadResult:
        """
        Download the directory named by ``url``.

        Args:
            url: GitHub directory URL
            output: Output directory, defaults to the directory's basename
            ignore_subdirectories: Only download files directly inside ``url``
            path_policy: How remote paths map onto local paths

        Returns:
            DownloadResult of the walk

        Raises:
            UrlError: If the URL is invalid; raised before any I/O
        """
        location = self.parse_url(url)
        options = TraversalOptions(
            output_root=Path(output) if output else Path(location.basename),
            ignore_subdirectories=ignore_subdirectories,
            path_policy=path_policy,
        )

        logger.debug(
            f"Downloading {location.display_name} to {options.output_root} "
            f"(policy={path_policy.value}, ignore_subdirectories={ignore_subdirectories})"
        )

        async with self._make_client() as client:
            self.walker = DirectoryWalker(
                listing_service=ListingService(client),
                download_service=DownloadService(client),
                max_concurrent_downloads=self.config.max_concurrent_downloads,
                event_callback=self.config.event_callback,
            )
            return await self.walker.walk(location, options)

    def download_sync(self, *args, **kwargs) -> DownloadResult:
        """Blocking wrapper around :meth:`download`."""

        return asyncio.run(self.download(*args, **kwargs))

    def cancel_current_download(self) -> Optional[DownloadResult]:
        if self.walker is None:
            logger.warning("No active download to cancel")
            return None
        return self.walker.cancel()

    def get_download_progress(self) -> Optional[ProgressInfo]:
        if self.walker is None:
            return None
        return self.walker.get_current_progress()


__all__ = ["GitSubdirDownloader"]
