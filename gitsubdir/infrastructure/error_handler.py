"""
Error taxonomy and error translation helpers for gitsubdir.
"""

import inspect
import functools
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import httpx

from .logger import logger


F = TypeVar("F", bound=Callable[..., Any])


####
##      BASE ERROR
#####
class DownloadError(Exception):
    """Base exception for every gitsubdir failure."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (Original: {self.original_error})"
        return self.message


####
##      URL MODEL ERRORS
#####
class UrlError(DownloadError):
    """Raised when a URL cannot be turned into a repository location."""


class NotAHostedUrlError(UrlError):
    """URL does not start with the GitHub prefix."""


class TopLevelRepoUrlError(UrlError):
    """URL names a whole repository; ``git clone`` is the right tool."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url

    @property
    def clone_command(self) -> str:
        return f"git clone {self.url}"


class NotADirectoryUrlError(UrlError):
    """URL does not point at a directory inside a repository."""


class UnparsableUrlError(UrlError):
    """URL has the right host but not the ``tree`` shape."""


class InvalidSegmentError(UrlError):
    """A path segment is empty, contains a separator, or is '.'/'..'."""


class EmptyPathError(UrlError):
    """A location without path segments has no basename."""


class PrefixMismatchError(UrlError):
    """A listed path does not live under the directory that was requested."""


####
##      NETWORK AND LISTING ERRORS
#####
class FetchError(DownloadError):
    """Transport failure or non-success HTTP status."""

    def __init__(
        self,
        message: str,
        url: str = "",
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error)
        self.url = url
        self.status_code = status_code


class ListingError(DownloadError):
    """The remote directory listing could not be understood."""


class MalformedListingError(ListingError):
    """Embedded listing payload is missing keys or has wrong types."""


class UnknownEntryKindError(ListingError):
    """A listing entry carries a content type we do not know."""

    def __init__(self, message: str, content_type: str = ""):
        super().__init__(message)
        self.content_type = content_type


####
##      LOCAL FILESYSTEM ERRORS
#####
class LocalIOError(DownloadError):
    """Local filesystem failure while creating directories or writing files."""

    def __init__(self, message: str, path: Optional[Path] = None, original_error: Optional[Exception] = None):
        super().__init__(message, original_error)
        self.path = path


def _translate(error: Exception) -> DownloadError:
    """Map a transport level exception onto the gitsubdir taxonomy."""

    if isinstance(error, DownloadError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        return FetchError(
            f"HTTP {response.status_code} for {error.request.url}",
            url = str(error.request.url),
            status_code = response.status_code,
            original_error = error
        )

    if isinstance(error, httpx.RequestError):
        try:
            url = str(error.request.url)
        except RuntimeError:
            # Errors raised outside a request have no request attached
            url = ""
        return FetchError(f"Request failed for {url or 'unknown url'}", url=url, original_error=error)

    return DownloadError(f"Unexpected error: {error}", error)


def handle_api_error(func: F) -> F:
    """
    Decorator translating httpx exceptions into :class:`FetchError`.

    Works on both plain and ``async`` functions. gitsubdir errors pass
    through untouched, anything else is wrapped in :class:`DownloadError`.
    """

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except DownloadError:
                raise
            except Exception as e:
                error = _translate(e)
                logger.debug(f"{func.__name__} failed: {error}")
                raise error from e

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DownloadError:
            raise
        except Exception as e:
            error = _translate(e)
            logger.debug(f"{func.__name__} failed: {error}")
            raise error from e

    return wrapper  # type: ignore[return-value]


__all__ = [
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
