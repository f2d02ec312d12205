"""
Cross-cutting infrastructure: logging and error handling.
"""

from .logger import logger
from .error_handler import (
    DownloadError,
    UrlError,
    NotAHostedUrlError,
    TopLevelRepoUrlError,
    NotADirectoryUrlError,
    UnparsableUrlError,
    InvalidSegmentError,
    EmptyPathError,
    PrefixMismatchError,
    FetchError,
    ListingError,
    MalformedListingError,
    UnknownEntryKindError,
    LocalIOError,
    handle_api_error,
)

__all__ = [
    "logger",
    "DownloadError",
    "UrlError",
    "NotAHostedUrlError",
    "TopLevelRepoUrlError",
    "NotADirectoryUrlError",
    "UnparsableUrlError",
    "InvalidSegmentError",
    "EmptyPathError",
    "PrefixMismatchError",
    "FetchError",
    "ListingError",
    "MalformedListingError",
    "UnknownEntryKindError",
    "LocalIOError",
    "handle_api_error",
]
