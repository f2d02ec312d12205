"""
Command line interface for gitsubdir.

Usage:
    gitsubdir URL [-o DIR] [-i] [-r] [-j N] [--timeout S] [-v]

Examples:
    gitsubdir https://github.com/owner/repo/tree/main/docs
    gitsubdir https://github.com/owner/repo/tree/main/src/pkg -o out -r
"""

import logging
import sys
from typing import Optional

import click

from .api import GitSubdirDownloader
from ..models import DownloadConfig, DownloadEvent, DownloadResult, EventKind, PathPolicy
from ..infrastructure.error_handler import TopLevelRepoUrlError, UrlError
from ..infrastructure.logger import logger
from .. import __version__


def error_message(message: str) -> str:
    return f"{click.style('Error:', fg='bright_red')} {message}"


def warning_message(message: str) -> str:
    return click.style(message, fg="bright_yellow")


def highlight_message(message: str) -> str:
    return click.style(message, fg="bright_blue")


def render_event(event: DownloadEvent) -> None:
    """Print one walker notification."""

    if event.kind is EventKind.FILE_WRITTEN:
        click.echo(f"Downloaded '{event.local_path}'")
    elif event.kind is EventKind.SYMLINK_SKIPPED:
        click.echo(warning_message(f"Skipping symlink '{event.remote_path}'"))


def render_url_error(error: UrlError) -> str:
    if isinstance(error, TopLevelRepoUrlError):
        # Highlight the suggested command rather than the whole message
        head, _, _ = error.message.partition("\n")
        return error_message(f"{head}\nInstead, try:\n  {highlight_message(error.clone_command)}")
    return error_message(error.message)


def render_summary(result: DownloadResult) -> None:
    for remote_path, message in result.failed_directories.items():
        click.echo(error_message(f"directory '{remote_path}': {message}"), err=True)
    for remote_path, message in result.failed_files.items():
        click.echo(error_message(f"file '{remote_path}': {message}"), err=True)
    if result.error_message:
        click.echo(error_message(result.error_message), err=True)

    colour = "green" if result.is_successful else "red"
    click.echo(click.style(f"Done: {result.summary()}", fg=colour))


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="gitsubdir")
@click.argument("url")
@click.option("-o", "--output", type=click.Path(file_okay=False), default=None,
              help="Output directory. Is created if it doesn't exist.")
@click.option("-i", "--ignore-subdirs", is_flag=True,
              help="Ignore subdirectories.")
@click.option("-r", "--root-relative", is_flag=True,
              help="Write paths relative to the repo root rather than to the given url.")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=5, show_default=True,
              help="Maximum number of concurrent requests.")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=30.0,
              show_default=True, help="Network timeout in seconds.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(
    url: str,
    output: Optional[str],
    ignore_subdirs: bool,
    root_relative: bool,
    jobs: int,
    timeout: float,
    verbose: bool
) -> None:
    """Download a subdirectory of a GitHub repository from its URL."""

    config = DownloadConfig(
        timeout=timeout,
        max_concurrent_downloads=jobs,
        verbose=verbose,
        event_callback=render_event,
    )
    downloader = GitSubdirDownloader(config=config, verbose=verbose)
    if not verbose:
        # Progress is printed by render_event, keep the logger for real problems
        logger.setLevel(logging.ERROR)

    policy = PathPolicy.ROOT_RELATIVE if root_relative else PathPolicy.REQUEST_RELATIVE

    try:
        result = downloader.download_sync(
            url,
            output=output,
            ignore_subdirectories=ignore_subdirs,
            path_policy=policy,
        )
    except UrlError as e:
        click.echo(render_url_error(e), err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo(error_message("interrupted"), err=True)
        sys.exit(130)

    render_summary(result)
    sys.exit(0 if result.is_successful else 1)


if __name__ == "__main__":
    main()
