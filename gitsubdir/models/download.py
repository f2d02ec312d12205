"""
Download domain models for gitsubdir.

This module contains data classes and enums representing traversal options,
local path mapping, progress notifications and download results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from ..infrastructure.error_handler import PrefixMismatchError
from .github import RepoLocation


class PathPolicy(Enum):
    """How a remote file path maps onto a local destination path."""

    ROOT_RELATIVE = "root"          # Drop the first segment of the remote path
    REQUEST_RELATIVE = "request"    # Drop the requested directory's path


def relative_path(
    full_path: Sequence[str],
    policy: PathPolicy,
    requested: RepoLocation
) -> Tuple[str, ...]:
    """
    Compute the local, output-root-relative segments for a remote path.

    Args:
        full_path: Repository-root-relative segments of a listed entry
        policy: Path addressing policy of the run
        requested: Location originally requested by the caller

    Returns:
        Segments to join onto the output root

    Raises:
        PrefixMismatchError: If the remote path does not live under the
            requested directory, or nothing would remain of it
    """
    segments = tuple(full_path)

    if policy is PathPolicy.ROOT_RELATIVE:
        remainder = segments[1:]
    else:
        prefix = requested.path
        if segments[:len(prefix)] != prefix:
            raise PrefixMismatchError(
                f"'{'/'.join(segments)}' is not inside '{requested.path_string}'"
            )
        remainder = segments[len(prefix):]

    if not remainder:
        raise PrefixMismatchError(
            f"'{'/'.join(segments)}' leaves no local path under policy {policy.value}"
        )
    return remainder


@dataclass(frozen=True)
class TraversalOptions:
    """Write-once options shared by the whole traversal."""

    output_root: Path
    ignore_subdirectories: bool = False
    path_policy: PathPolicy = PathPolicy.REQUEST_RELATIVE

    def __post_init__(self) -> None:
        if not self.output_root:
            raise ValueError("Output root is required")
        object.__setattr__(self, "output_root", Path(self.output_root))

    def destination_for(self, full_path: Sequence[str], requested: RepoLocation) -> Path:
        return self.output_root.joinpath(*relative_path(full_path, self.path_policy, requested))


class EventKind(Enum):
    """Kinds of notifications emitted while walking a directory."""

    DIRECTORY_LISTED = "directory_listed"
    DIRECTORY_IGNORED = "directory_ignored"
    FILE_WRITTEN = "file_written"
    SYMLINK_SKIPPED = "symlink_skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class DownloadEvent:
    """A single observable step of a download."""

    kind: EventKind
    remote_path: str
    local_path: Optional[Path] = None
    message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


class DownloadStatus(Enum):
    """Status enumeration for download operations."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ProgressInfo:
    """Real-time progress tracking information."""

    directories_listed: int = 0
    downloaded_files: int = 0
    downloaded_bytes: int = 0
    current_file: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def elapsed_time(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()

    def update_file_progress(self, bytes_downloaded: int, current_file: Optional[str] = None) -> None:
        self.downloaded_bytes += bytes_downloaded
        if current_file:
            self.current_file = current_file

    def complete_file(self) -> None:
        self.downloaded_files += 1
        self.current_file = None


@dataclass
class DownloadResult:
    """Outcome of a whole traversal, including partial failures."""

    location: RepoLocation
    options: TraversalOptions
    status: DownloadStatus
    progress: ProgressInfo = field(default_factory=ProgressInfo)

    # Results
    downloaded_files: List[Path] = field(default_factory=list)
    skipped_symlinks: List[str] = field(default_factory=list)
    failed_files: Dict[str, str] = field(default_factory=dict)
    failed_directories: Dict[str, str] = field(default_factory=dict)

    # Metadata
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def files_written(self) -> int:
        return len(self.downloaded_files)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_files or self.failed_directories)

    @property
    def is_successful(self) -> bool:
        return self.status == DownloadStatus.COMPLETED and not self.has_failures

    @property
    def total_download_time(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def mark_completed(self) -> None:
        self.completed_at = datetime.now()
        if self.status != DownloadStatus.CANCELLED:
            self.status = DownloadStatus.FAILED if self.has_failures else DownloadStatus.COMPLETED

    def summary(self) -> str:
        parts = [f"{self.files_written} file(s) written"]
        if self.skipped_symlinks:
            parts.append(f"{len(self.skipped_symlinks)} symlink(s) skipped")
        if self.failed_files:
            parts.append(f"{len(self.failed_files)} file(s) failed")
        if self.failed_directories:
            parts.append(f"{len(self.failed_directories)} directory(ies) failed")
        if self.status == DownloadStatus.CANCELLED:
            parts.append("cancelled")
        return ", ".join(parts)


__all__ = [
    "PathPolicy",
    "relative_path",
    "TraversalOptions",
    "EventKind",
    "DownloadEvent",
    "DownloadStatus",
    "ProgressInfo",
    "DownloadResult",
]
