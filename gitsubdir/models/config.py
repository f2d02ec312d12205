"""
Configuration models for gitsubdir downloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .download import DownloadEvent


DEFAULT_USER_AGENT = "gitsubdir/0.1"


@dataclass
class DownloadConfig:
    """
    Network and concurrency settings for a download run.

    ``max_concurrent_downloads=1`` keeps a single request in flight at a time.
    """

    timeout: float = 30.0
    max_concurrent_downloads: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    verbose: bool = False
    event_callback: Optional[Callable[[DownloadEvent], None]] = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_concurrent_downloads <= 0:
            raise ValueError("max_concurrent_downloads must be positive")


__all__ = [
    "DEFAULT_USER_AGENT",
    "DownloadConfig",
]
