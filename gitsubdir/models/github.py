"""
GitHub domain models for gitsubdir.

This module contains immutable data classes and enums representing a
directory inside a hosted repository and the entries of its listing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple
from urllib.parse import quote, unquote

from ..infrastructure.error_handler import (
    EmptyPathError,
    InvalidSegmentError,
    NotADirectoryUrlError,
    NotAHostedUrlError,
    TopLevelRepoUrlError,
    UnknownEntryKindError,
    UnparsableUrlError,
)


GITHUB_PREFIX = "https://github.com"
RAW_CONTENT_PREFIX = "https://raw.githubusercontent.com"


def validate_segment(segment: str) -> str:
    """Reject segments that would break out of, or collapse, a path."""

    if not segment or "/" in segment or "\\" in segment or segment in (".", ".."):
        raise InvalidSegmentError(f"Invalid path segment: {segment!r}")
    return segment


####
##      REPOSITORY LOCATION
#####
@dataclass(frozen=True)
class RepoLocation:
    """Immutable representation of a directory inside a GitHub repository."""

    owner: str
    repo: str
    branch: str
    path: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.owner or not self.repo or not self.branch:
            raise InvalidSegmentError("Repository owner, name and branch are required")

        # Lists are accepted for convenience but stored as a tuple
        object.__setattr__(self, "path", tuple(self.path))
        for segment in (self.owner, self.repo, self.branch) + self.path:
            validate_segment(segment)

    @classmethod
    def parse(cls, url: str) -> "RepoLocation":
        """
        Parse a GitHub directory URL into repository coordinates.

        No network access happens here, this is string processing only.

        Args:
            url: URL of the form ``https://github.com/{owner}/{repo}/tree/{branch}/{path}``

        Returns:
            The parsed RepoLocation

        Raises:
            NotAHostedUrlError: URL is not on github.com
            TopLevelRepoUrlError: URL names a whole repository
            NotADirectoryUrlError: URL does not point at a directory
            UnparsableUrlError: URL is not a ``tree`` URL
        """
        if not url.startswith(GITHUB_PREFIX):
            raise NotAHostedUrlError(f"'{url}' is not a github url")

        remainder = url[len(GITHUB_PREFIX):]
        if remainder and remainder[0] not in "/?#":
            raise NotAHostedUrlError(f"'{url}' is not a github url")

        # Query strings and fragments never name a directory
        remainder = remainder.split("#", 1)[0].split("?", 1)[0]
        parts = [part for part in remainder.split("/") if part]

        if len(parts) == 2:
            repo_url = f"{GITHUB_PREFIX}/{parts[0]}/{parts[1]}"
            raise TopLevelRepoUrlError(
                f"'{url}' is a top-level git repo.\nInstead, try:\n  git clone {repo_url}",
                url=repo_url,
            )
        if len(parts) < 4:
            raise NotADirectoryUrlError(
                f"'{url}' is not a url to a directory within a github repo"
            )
        if parts[2] != "tree":
            raise UnparsableUrlError(f"cannot parse url '{url}'")
        if len(parts) == 4:
            raise NotADirectoryUrlError(
                f"'{url}' names the root of branch '{parts[3]}', not a directory"
            )

        # Browsers keep names percent-encoded, listings report them decoded
        parts = [unquote(part) for part in parts]
        return cls(owner=parts[0], repo=parts[1], branch=parts[3], path=tuple(parts[4:]))

    @property
    def path_string(self) -> str:
        return "/".join(self.path)

    @property
    def quoted_path(self) -> str:
        return "/".join(quote(segment, safe="") for segment in self.path)

    def _quoted_coordinates(self) -> str:
        return "/".join(quote(part, safe="") for part in (self.owner, self.repo))

    @property
    def listing_url(self) -> str:
        """Human-facing URL of this directory."""

        branch = quote(self.branch, safe="")
        return f"{GITHUB_PREFIX}/{self._quoted_coordinates()}/tree/{branch}/{self.quoted_path}"

    @property
    def raw_url(self) -> str:
        """URL serving the unrendered bytes at this location."""

        branch = quote(self.branch, safe="")
        return f"{RAW_CONTENT_PREFIX}/{self._quoted_coordinates()}/{branch}/{self.quoted_path}"

    @property
    def basename(self) -> str:
        if not self.path:
            raise EmptyPathError(f"{self.owner}/{self.repo}@{self.branch} has no path")
        return self.path[-1]

    @property
    def display_name(self) -> str:
        return f"{self.owner}/{self.repo}@{self.branch}:{self.path_string}"

    def join(self, name: str) -> "RepoLocation":
        """Return a new location with ``name`` appended as the final segment."""

        return RepoLocation(
            owner=self.owner,
            repo=self.repo,
            branch=self.branch,
            path=self.path + (validate_segment(name),),
        )

    def __str__(self) -> str:
        return self.listing_url


####
##      DIRECTORY LISTING ENTRIES
#####
class EntryKind(Enum):
    """Content types found in a GitHub directory listing."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK_FILE = "symlink_file"
    SYMLINK_DIRECTORY = "symlink_directory"

    @classmethod
    def from_content_type(cls, content_type: str) -> "EntryKind":
        try:
            return cls(content_type)
        except ValueError:
            raise UnknownEntryKindError(
                f"Cannot handle item type '{content_type}'", content_type=content_type
            ) from None

    @property
    def is_symlink(self) -> bool:
        return self in (EntryKind.SYMLINK_FILE, EntryKind.SYMLINK_DIRECTORY)


@dataclass(frozen=True)
class DirectoryEntry:
    """One row of a remote directory listing."""

    name: str
    full_path: Tuple[str, ...]  # Repository-root-relative
    kind: EntryKind

    @property
    def path(self) -> str:
        return "/".join(self.full_path)


__all__ = [
    "GITHUB_PREFIX",
    "RAW_CONTENT_PREFIX",
    "RepoLocation",
    "EntryKind",
    "DirectoryEntry",
    "validate_segment",
]
