"""
Network facing services used by the directory walker.
"""

from .listing import ListingService, ListingSource
from .download import DownloadService

__all__ = [
    "ListingService",
    "ListingSource",
    "DownloadService",
]
