import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gitsubdir.core.walker import DirectoryWalker
from gitsubdir.models import (
    DirectoryEntry, DownloadStatus, EntryKind, EventKind, PathPolicy,
    RepoLocation, TraversalOptions
)

from conftest import make_walker, tree_url


def location(path: str) -> RepoLocation:
    return RepoLocation.parse(tree_url(path))


def local_files(root: Path):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


# --- Test Fixtures for Setup ---

@pytest.fixture
def nested_repo(fake_github):
    """Three directory levels below the requested 'src/pkg'."""
    fake_github.add_file("src/pkg/a.txt", b"A")
    fake_github.add_file("src/pkg/x/b.txt", b"B")
    fake_github.add_file("src/pkg/x/y/c.txt", b"C")
    fake_github.add_file("src/pkg/x/y/z/d.txt", b"D")
    return fake_github


@pytest.fixture
def mock_services():
    """Mock listing and download services."""
    listing_service = MagicMock()
    download_service = MagicMock()
    listing_service.fetch_listing = AsyncMock(return_value=[])
    download_service.fetch_file = AsyncMock(return_value=1)
    download_service.ensure_directory = AsyncMock()
    return listing_service, download_service


# --- Test Cases ---

class TestDirectoryWalker:

    def test_initialization_sets_properties_correctly(self, mock_services):
        listing_service, download_service = mock_services
        walker = DirectoryWalker(listing_service, download_service, max_concurrent_downloads=3)

        assert walker.max_concurrent_downloads == 3
        assert walker._semaphore._value == 3
        assert not walker.is_cancelled

    def test_rejects_non_positive_concurrency(self, mock_services):
        with pytest.raises(ValueError):
            DirectoryWalker(*mock_services, max_concurrent_downloads=0)

    @pytest.mark.asyncio
    async def test_ignore_subdirectories_downloads_only_files(self, mock_services, tmp_path):
        listing_service, download_service = mock_services
        listing_service.fetch_listing.return_value = [
            DirectoryEntry("sub", ("src", "sub"), EntryKind.DIRECTORY),
            DirectoryEntry("a.txt", ("src", "a.txt"), EntryKind.FILE),
        ]
        walker = DirectoryWalker(listing_service, download_service)

        result = await walker.walk(
            location("src"),
            TraversalOptions(output_root=tmp_path, ignore_subdirectories=True),
        )

        listing_service.fetch_listing.assert_awaited_once_with(tree_url("src"))
        download_service.fetch_file.assert_awaited_once_with(
            "https://raw.githubusercontent.com/octo/demo/main/src/a.txt", tmp_path / "a.txt"
        )
        assert result.files_written == 1
        assert result.status == DownloadStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_root_relative_nested_paths(self, nested_repo, tmp_path):
        async with nested_repo.client() as client:
            result = await make_walker(client).walk(
                location("src/pkg"),
                TraversalOptions(output_root=tmp_path, path_policy=PathPolicy.ROOT_RELATIVE),
            )

        assert result.is_successful
        assert result.files_written == 4
        assert local_files(tmp_path) == [
            "pkg/a.txt", "pkg/x/b.txt", "pkg/x/y/c.txt", "pkg/x/y/z/d.txt"
        ]
        assert (tmp_path / "pkg/x/y/z/d.txt").read_bytes() == b"D"

    @pytest.mark.asyncio
    async def test_request_relative_nested_paths(self, nested_repo, tmp_path):
        async with nested_repo.client() as client:
            result = await make_walker(client).walk(
                location("src/pkg"),
                TraversalOptions(output_root=tmp_path, path_policy=PathPolicy.REQUEST_RELATIVE),
            )

        assert result.is_successful
        assert local_files(tmp_path) == ["a.txt", "x/b.txt", "x/y/c.txt", "x/y/z/d.txt"]
        assert sorted(result.downloaded_files) == sorted(
            tmp_path / name for name in ["a.txt", "x/b.txt", "x/y/c.txt", "x/y/z/d.txt"]
        )
        assert len(nested_repo.listing_requests) == 4

    @pytest.mark.asyncio
    async def test_ignore_subdirectories_end_to_end(self, nested_repo, tmp_path):
        events = []
        async with nested_repo.client() as client:
            result = await make_walker(client, events).walk(
                location("src/pkg"),
                TraversalOptions(output_root=tmp_path, ignore_subdirectories=True),
            )

        assert local_files(tmp_path) == ["a.txt"]
        assert nested_repo.listing_requests == [tree_url("src/pkg")]
        assert [e.remote_path for e in events if e.kind is EventKind.DIRECTORY_IGNORED] == ["src/pkg/x"]
        assert result.files_written == 1

    @pytest.mark.asyncio
    async def test_symlinks_are_skipped_with_one_event_each(self, fake_github, tmp_path):
        fake_github.add_file("src/real.txt", b"real")
        fake_github.add_item("src/link.txt", "symlink_file")
        fake_github.add_item("src/linkdir", "symlink_directory")
        events = []

        async with fake_github.client() as client:
            result = await make_walker(client, events).walk(
                location("src"), TraversalOptions(output_root=tmp_path)
            )

        skipped = [e.remote_path for e in events if e.kind is EventKind.SYMLINK_SKIPPED]
        assert skipped == ["src/link.txt", "src/linkdir"]
        assert result.skipped_symlinks == ["src/link.txt", "src/linkdir"]
        assert local_files(tmp_path) == ["real.txt"]
        assert fake_github.listing_requests == [tree_url("src")]
        assert fake_github.raw_requests == ["https://raw.githubusercontent.com/octo/demo/main/src/real.txt"]
        assert result.is_successful

    @pytest.mark.asyncio
    async def test_unknown_entry_kind_fails_only_that_directory(self, fake_github, tmp_path):
        fake_github.add_file("src/a.txt", b"sibling")
        fake_github.add_file("src/bad/z.txt", b"never")
        fake_github.add_item("src/bad/mod", "submodule")

        async with fake_github.client() as client:
            result = await make_walker(client).walk(
                location("src"), TraversalOptions(output_root=tmp_path)
            )

        assert result.status == DownloadStatus.FAILED
        assert list(result.failed_directories) == ["src/bad"]
        assert "UnknownEntryKindError" in result.failed_directories["src/bad"]
        assert local_files(tmp_path) == ["a.txt"]
        assert (tmp_path / "a.txt").read_bytes() == b"sibling"
        assert result.files_written == 1

    @pytest.mark.asyncio
    async def test_failures_are_collected_not_fatal(self, fake_github, tmp_path):
        fake_github.add_file("src/ok.txt", b"ok")
        fake_github.add_item("src/gone.txt", "file")
        fake_github.add_file("src/broken/x.txt", b"x")
        fake_github.override_page("src/broken", 500, "server error")
        fake_github.add_file("src/fine/y.txt", b"y")
        events = []

        async with fake_github.client() as client:
            result = await make_walker(client, events).walk(
                location("src"), TraversalOptions(output_root=tmp_path)
            )

        assert local_files(tmp_path) == ["fine/y.txt", "ok.txt"]
        assert "FetchError" in result.failed_files["src/gone.txt"]
        assert "HTTP 500" in result.failed_directories["src/broken"]
        assert result.has_failures
        assert not result.is_successful
        assert len([e for e in events if e.kind is EventKind.FAILED]) == 2

    @pytest.mark.asyncio
    async def test_page_without_listing_is_empty_directory(self, fake_github, tmp_path):
        fake_github.override_page("src", 200, "<html><body>transient variant</body></html>")

        async with fake_github.client() as client:
            result = await make_walker(client).walk(
                location("src"), TraversalOptions(output_root=tmp_path / "out")
            )

        assert result.status == DownloadStatus.COMPLETED
        assert result.files_written == 0
        assert (tmp_path / "out").is_dir()

    @pytest.mark.asyncio
    async def test_prefix_mismatch_is_recorded_per_file(self, mock_services, tmp_path):
        listing_service, download_service = mock_services
        listing_service.fetch_listing.return_value = [
            DirectoryEntry("a.txt", ("elsewhere", "a.txt"), EntryKind.FILE),
        ]
        walker = DirectoryWalker(listing_service, download_service)

        result = await walker.walk(location("src"), TraversalOptions(output_root=tmp_path))

        download_service.fetch_file.assert_not_awaited()
        assert "PrefixMismatchError" in result.failed_files["elsewhere/a.txt"]
        assert result.status == DownloadStatus.FAILED

    @pytest.mark.asyncio
    async def test_rerun_overwrites_identically(self, nested_repo, tmp_path):
        options = TraversalOptions(output_root=tmp_path)

        async with nested_repo.client() as client:
            walker = make_walker(client)
            first = await walker.walk(location("src/pkg"), options)
            snapshot = {p: (tmp_path / p).read_bytes() for p in local_files(tmp_path)}
            second = await walker.walk(location("src/pkg"), options)

        assert first.files_written == second.files_written == 4
        assert second.is_successful
        assert {p: (tmp_path / p).read_bytes() for p in local_files(tmp_path)} == snapshot

    @pytest.mark.asyncio
    async def test_output_root_collision_fails_walk(self, fake_github, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")

        async with fake_github.client() as client:
            result = await make_walker(client).walk(
                location("src"), TraversalOptions(output_root=blocker / "out")
            )

        assert result.status == DownloadStatus.FAILED
        assert "Could not create dir" in result.error_message
        assert fake_github.requests == []

    @pytest.mark.asyncio
    async def test_output_root_collision_logs_warning_only(self, fake_github, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")

        with patch('gitsubdir.core.walker.logger') as mock_logger:
            async with fake_github.client() as client:
                await make_walker(client).walk(
                    location("src"), TraversalOptions(output_root=blocker / "out")
                )

        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_reserved_characters_in_file_names(self, fake_github, tmp_path):
        fake_github.add_file("src/C#.md", b"sharp")
        fake_github.add_file("src/50%.txt", b"half")

        async with fake_github.client() as client:
            result = await make_walker(client).walk(
                location("src"), TraversalOptions(output_root=tmp_path)
            )

        assert result.is_successful, result.failed_files
        assert local_files(tmp_path) == ["50%.txt", "C#.md"]
        assert (tmp_path / "C#.md").read_bytes() == b"sharp"
        assert "https://raw.githubusercontent.com/octo/demo/main/src/C%23.md" in fake_github.raw_requests

    @pytest.mark.asyncio
    async def test_percent_encoded_request_path(self, fake_github, tmp_path):
        fake_github.add_file("my dir/a.txt", b"a")
        fake_github.add_file("my dir/sub dir/b.txt", b"b")

        async with fake_github.client() as client:
            result = await make_walker(client).walk(
                location("my%20dir"), TraversalOptions(output_root=tmp_path)
            )

        assert result.is_successful, result.failed_files
        assert local_files(tmp_path) == ["a.txt", "sub dir/b.txt"]

    @pytest.mark.asyncio
    async def test_file_written_events(self, nested_repo, tmp_path):
        events = []
        async with nested_repo.client() as client:
            await make_walker(client, events).walk(
                location("src/pkg"), TraversalOptions(output_root=tmp_path)
            )

        written = [e for e in events if e.kind is EventKind.FILE_WRITTEN]
        assert sorted(e.remote_path for e in written) == [
            "src/pkg/a.txt", "src/pkg/x/b.txt", "src/pkg/x/y/c.txt", "src/pkg/x/y/z/d.txt"
        ]
        assert all(e.local_path.is_file() for e in written)
        listed = [e for e in events if e.kind is EventKind.DIRECTORY_LISTED]
        assert len(listed) == 4


class TestWalkerControls:

    def test_cancel_without_active_walk(self, mock_services):
        walker = DirectoryWalker(*mock_services)
        assert walker.cancel() is None
        assert walker.get_current_progress() is None

    @pytest.mark.asyncio
    async def test_cancel_stops_pending_work(self, fake_github, tmp_path):
        for name in ["a", "b", "c", "d"]:
            fake_github.add_file(f"src/{name}.txt", name.encode())
        fake_github.add_file("src/sub/e.txt", b"e")

        async with fake_github.client() as client:
            walker = None

            def cancel_after_first_write(event):
                if event.kind is EventKind.FILE_WRITTEN:
                    walker.cancel()

            walker = make_walker(client, max_concurrent_downloads=1)
            walker.event_callback = cancel_after_first_write
            result = await walker.walk(location("src"), TraversalOptions(output_root=tmp_path))

        assert result.status == DownloadStatus.CANCELLED
        assert result.files_written == 1
        assert len(local_files(tmp_path)) == 1
        assert not walker.is_cancelled  # state is reset after the walk

    @pytest.mark.asyncio
    async def test_progress_snapshot_during_walk(self, mock_services, tmp_path):
        listing_service, download_service = mock_services
        walker = DirectoryWalker(listing_service, download_service)
        can_finish = asyncio.Event()

        async def slow_listing(url):
            await can_finish.wait()
            return []

        listing_service.fetch_listing.side_effect = slow_listing

        task = asyncio.create_task(walker.walk(location("src"), TraversalOptions(output_root=tmp_path)))
        await asyncio.sleep(0.01)

        progress = walker.get_current_progress()
        assert progress is not None
        assert progress.downloaded_files == 0

        with pytest.raises(RuntimeError):
            await walker.walk(location("src"), TraversalOptions(output_root=tmp_path))

        can_finish.set()
        result = await task
        assert result.status == DownloadStatus.COMPLETED
        assert walker.get_current_progress() is None
