"""
gitsubdir - download a single directory of a GitHub repository.
"""

__version__ = "0.1.0"

from .models import (
    RepoLocation,
    EntryKind,
    DirectoryEntry,
    PathPolicy,
    TraversalOptions,
    DownloadEvent,
    EventKind,
    DownloadStatus,
    DownloadResult,
    DownloadConfig,
)
from .interfaces.api import GitSubdirDownloader

__all__ = [
    "__version__",
    "RepoLocation",
    "EntryKind",
    "DirectoryEntry",
    "PathPolicy",
    "TraversalOptions",
    "DownloadEvent",
    "EventKind",
    "DownloadStatus",
    "DownloadResult",
    "DownloadConfig",
    "GitSubdirDownloader",
]
