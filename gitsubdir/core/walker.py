"""
Directory walker that drives the complete download of a repository
subdirectory with bounded concurrency and per-branch error collection.
"""

import asyncio
from datetime import datetime
from dataclasses import replace
from typing import Callable, Optional

from ..models import (
    DirectoryEntry, DownloadEvent, DownloadResult, DownloadStatus, EntryKind,
    EventKind, ProgressInfo, RepoLocation, TraversalOptions
)
from ..services import DownloadService, ListingSource
from ..infrastructure.error_handler import DownloadError
from ..infrastructure.logger import logger


EventCallback = Callable[[DownloadEvent], None]


####
##      DIRECTORY WALKER
#####
class DirectoryWalker:
    """
    Walks a remote directory tree, recursing into subdirectories and
    handing every file entry to the download service.

    Sibling directories and files are processed concurrently; the number of
    simultaneous network requests is capped by a semaphore. A failing
    directory or file is recorded in the result and does not stop the other
    branches.
    """

    def __init__(
        self,
        listing_service: ListingSource,
        download_service: DownloadService,
        max_concurrent_downloads: int = 5,
        event_callback: Optional[EventCallback] = None
    ):
        if max_concurrent_downloads <= 0:
            raise ValueError("max_concurrent_downloads must be positive")

        self.listing_service = listing_service
        self.download_service = download_service
        self.max_concurrent_downloads = max_concurrent_downloads
        self.event_callback = event_callback

        self._current_result: Optional[DownloadResult] = None
        self.reset_state()

    async def walk(self, location: RepoLocation, options: TraversalOptions) -> DownloadResult:
        """
        Download everything below ``location`` into ``options.output_root``.

        Args:
            location: Directory originally requested
            options: Write-once traversal options

        Returns:
            DownloadResult with written files and any collected failures
        """
        if self._current_result is not None:
            raise RuntimeError("A walk is already in progress")

        logger.debug(f"Starting walk of {location.display_name} into {options.output_root}")

        result = DownloadResult(
            location=location,
            options=options,
            status=DownloadStatus.IN_PROGRESS
        )
        self._current_result = result

        try:
            await self.download_service.ensure_directory(options.output_root)
            await self._walk_directory(location, location, options, result)
            result.mark_completed()

            logger.debug(f"Walk finished: {result.summary()}")
            return result

        except DownloadError as e:
            logger.warning(f"Download failed: {e}")
            result.status = DownloadStatus.FAILED
            result.error_message = str(e)
            result.completed_at = datetime.now()
            return result

        finally:
            self.reset_state()

    async def _walk_directory(
        self,
        loc: RepoLocation,
        requested: RepoLocation,
        options: TraversalOptions,
        result: DownloadResult
    ) -> None:
        """List one directory and process its entries."""

        if self._cancellation_event.is_set():
            return

        try:
            async with self._semaphore:
                if self._cancellation_event.is_set():
                    return
                entries = await self.listing_service.fetch_listing(loc.listing_url)
        except DownloadError as e:
            self._record_directory_failure(loc.path_string, e, result)
            return

        result.progress.directories_listed += 1
        self._emit(DownloadEvent(
            EventKind.DIRECTORY_LISTED, loc.path_string, message=f"{len(entries)} entries"
        ))

        tasks = []
        for entry in entries:
            if entry.kind is EntryKind.FILE:
                tasks.append(self._download_entry(loc, entry, requested, options, result))

            elif entry.kind is EntryKind.DIRECTORY:
                if options.ignore_subdirectories:
                    logger.debug(f"Ignoring subdirectory {entry.path}")
                    self._emit(DownloadEvent(EventKind.DIRECTORY_IGNORED, entry.path))
                else:
                    tasks.append(self._walk_subdirectory(loc, entry, requested, options, result))

            elif entry.kind.is_symlink:
                logger.debug(f"Skipping symlink '{entry.path}'")
                result.skipped_symlinks.append(entry.path)
                self._emit(DownloadEvent(EventKind.SYMLINK_SKIPPED, entry.path))

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                # Only unexpected errors get here, DownloadErrors are recorded in place
                self._record_directory_failure(loc.path_string, outcome, result)

    async def _walk_subdirectory(
        self,
        parent: RepoLocation,
        entry: DirectoryEntry,
        requested: RepoLocation,
        options: TraversalOptions,
        result: DownloadResult
    ) -> None:
        try:
            child = parent.join(entry.name)
        except DownloadError as e:
            self._record_directory_failure(entry.path, e, result)
            return

        await self._walk_directory(child, requested, options, result)

    async def _download_entry(
        self,
        parent: RepoLocation,
        entry: DirectoryEntry,
        requested: RepoLocation,
        options: TraversalOptions,
        result: DownloadResult
    ) -> None:
        """
        Download a single file entry.

        Args:
            parent: Directory the entry was listed in
            entry: File entry to download
            requested: Location originally requested (for path mapping)
            options: Traversal options
            result: Result collecting outcomes
        """
        try:
            destination = options.destination_for(entry.full_path, requested)
            raw_url = parent.join(entry.name).raw_url
        except DownloadError as e:
            self._record_file_failure(entry.path, e, result)
            return

        if self._cancellation_event.is_set():
            return

        try:
            async with self._semaphore:
                if self._cancellation_event.is_set():
                    return
                result.progress.current_file = entry.path
                bytes_written = await self.download_service.fetch_file(raw_url, destination)
        except DownloadError as e:
            self._record_file_failure(entry.path, e, result)
            return

        result.progress.update_file_progress(bytes_written)
        result.progress.complete_file()
        result.downloaded_files.append(destination)

        logger.debug(f"Downloaded '{destination}'")
        self._emit(DownloadEvent(EventKind.FILE_WRITTEN, entry.path, local_path=destination))

    def _record_directory_failure(self, remote_path: str, error: BaseException, result: DownloadResult) -> None:
        message = f"{type(error).__name__}: {error}"
        result.failed_directories[remote_path] = message
        logger.warning(f"Failed to list {remote_path}: {message}")
        self._emit(DownloadEvent(EventKind.FAILED, remote_path, message=message))

    def _record_file_failure(self, remote_path: str, error: BaseException, result: DownloadResult) -> None:
        message = f"{type(error).__name__}: {error}"
        result.failed_files[remote_path] = message
        logger.warning(f"Failed to download {remote_path}: {message}")
        self._emit(DownloadEvent(EventKind.FAILED, remote_path, message=message))

    def _emit(self, event: DownloadEvent) -> None:
        if self.event_callback is not None:
            self.event_callback(event)

    def cancel(self) -> Optional[DownloadResult]:
        """
        Cancel the current walk.

        Pending directory listings and file downloads are not started; calls
        already in flight are allowed to finish.

        Returns:
            Current DownloadResult marked as cancelled, or None if idle
        """
        if self._current_result is None:
            logger.warning("No active download to cancel")
            return None

        self._cancellation_event.set()
        self._current_result.status = DownloadStatus.CANCELLED

        logger.info("Download cancelled by user")
        return self._current_result

    @property
    def is_cancelled(self) -> bool:
        return self._cancellation_event.is_set()

    def get_current_progress(self) -> Optional[ProgressInfo]:
        """
        Get a snapshot of the current progress.

        Returns:
            Copy of the running ProgressInfo, or None if idle
        """
        if self._current_result is None:
            return None
        return replace(self._current_result.progress)

    def reset_state(self) -> None:
        """
        Reset walker state so the instance can run another walk.

        Fresh asyncio primitives are created so a walker can be reused from
        a different event loop.
        """
        self._current_result = None
        self._semaphore = asyncio.Semaphore(self.max_concurrent_downloads)
        self._cancellation_event = asyncio.Event()


__all__ = ["DirectoryWalker", "EventCallback"]
