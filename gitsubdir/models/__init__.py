"""
Core data models API surface for gitsubdir.

This file re-exports model classes from domain-specific modules so imports
like `from gitsubdir.models import X` work.
"""

from .github import (
    GITHUB_PREFIX,
    RAW_CONTENT_PREFIX,
    RepoLocation,
    EntryKind,
    DirectoryEntry,
)
from .download import (
    PathPolicy,
    relative_path,
    TraversalOptions,
    EventKind,
    DownloadEvent,
    DownloadStatus,
    ProgressInfo,
    DownloadResult,
)
from .config import DownloadConfig

__all__ = [
    # GitHub models
    "GITHUB_PREFIX",
    "RAW_CONTENT_PREFIX",
    "RepoLocation",
    "EntryKind",
    "DirectoryEntry",
    # Download models
    "PathPolicy",
    "relative_path",
    "TraversalOptions",
    "EventKind",
    "DownloadEvent",
    "DownloadStatus",
    "ProgressInfo",
    "DownloadResult",
    # Config models
    "DownloadConfig",
]
