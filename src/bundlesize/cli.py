"""Command line interface for bundle-size-checker."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bundlesize.build.bundler import BuildOptions
from bundlesize.build.orchestrator import SnapshotBuilder
from bundlesize.config import CONFIG_FILENAMES, DEFAULT_MAX_DETAILS_LINES, AppConfig, load_config
from bundlesize.entries import filter_entries
from bundlesize.errors import BundleSizeError
from bundlesize.models import SizeSnapshot
from bundlesize.remote.github import GitHubClient
from bundlesize.remote.history import GitHubAncestorLookup, detect_head_commit, detect_repo_slug
from bundlesize.remote.notifier import PullRequestNotifier
from bundlesize.remote.resolver import SnapshotResolver
from bundlesize.remote.storage import SnapshotStore, load_snapshot_uri
from bundlesize.report.diff import calculate_size_diff
from bundlesize.report.formatting import ByteSizeFormatter
from bundlesize.report.markdown import MarkdownRenderer, ReportOptions, render_json
from bundlesize.report.pr_report import render_pr_report
from bundlesize.snapshot import SNAPSHOT_FILENAME, write_snapshot

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="bundle-size-checker - track JS bundle sizes across commits")

COMMIT_ENV_VARS = ("GITHUB_SHA", "CIRCLE_SHA1")
DEFAULT_DEDUPE_ID = "bundle-size"

_SIZE_FORMATTER = ByteSizeFormatter(explicit_sign=False)


class OutputFormat(str, Enum):
    json = "json"
    markdown = "markdown"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _fail(exc: Exception) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    return typer.Exit(code=1)


def _load_optional_config(root: Path, path: Optional[Path]) -> AppConfig:
    if path is None and not any((root / name).is_file() for name in CONFIG_FILENAMES):
        return AppConfig()
    return load_config(root, path)


def _current_commit(root: Path) -> Optional[str]:
    for name in COMMIT_ENV_VARS:
        if os.environ.get(name):
            return os.environ[name]
    return detect_head_commit(root)


def _print_summary(snapshot: SizeSnapshot, builder: SnapshotBuilder) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Entry")
    table.add_column("Chunks", justify="right")
    table.add_column("Parsed", justify="right")
    table.add_column("Gzip", justify="right")

    for entry_id, chunks in builder.stats.per_entry.items():
        size = snapshot.get(entry_id)
        parsed = _SIZE_FORMATTER.format(size.parsed) if size else "-"
        gzip = _SIZE_FORMATTER.format(size.gzip) if size else "-"
        table.add_row(escape(entry_id), str(chunks), parsed, gzip)
    console.print(table)


@app.callback(invoke_without_command=True)
def build(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help=f"Snapshot path (defaults to {SNAPSHOT_FILENAME} in the root)"
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c", help="Number of parallel build workers (defaults to CPU count)"
    ),
    filters: Optional[List[str]] = typer.Option(
        None, "--filter", "-F", help="Only build entries whose id matches this glob or substring"
    ),
    analyze: bool = typer.Option(False, "--analyze", help="Write a treemap report for each bundle"),
    debug: bool = typer.Option(False, "--debug", help="Build without identifier and whitespace minification"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file path"),
    root: Path = typer.Option(Path("."), "--root", help="Project root directory", resolve_path=True),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Build every configured entrypoint and write a size snapshot."""
    if ctx.invoked_subcommand is not None:
        return
    _setup_logging(verbose)

    try:
        config = load_config(root, config_path)
        entries = filter_entries(config.entrypoints, filters or [])
        builder = SnapshotBuilder(
            root,
            concurrency=concurrency,
            options=BuildOptions(analyze=analyze, verbose=verbose, debug=debug),
        )
        console.print(f"Building [bold]{len(entries)}[/bold] entrypoints...")
        snapshot = builder.build(entries)
        destination = write_snapshot(output or root / SNAPSHOT_FILENAME, snapshot)
    except BundleSizeError as exc:
        raise _fail(exc) from exc

    _print_summary(snapshot, builder)
    console.print(f"Bundle size snapshot written to [bold]{destination}[/bold]")

    if config.upload is None:
        return
    commit = _current_commit(root)
    if not commit:
        raise _fail(BundleSizeError("Cannot upload: the current commit SHA could not be determined"))
    try:
        url = SnapshotStore(config.storage_url).upload(snapshot, config.upload, commit)
    except BundleSizeError as exc:
        raise _fail(exc) from exc
    console.print(f"Bundle size snapshot uploaded to [bold]{url}[/bold]")


@app.command()
def diff(
    base: str = typer.Option(..., "--base", help="Base snapshot URI (file:, http: or https:)"),
    head: str = typer.Option(..., "--head", help="Head snapshot URI (file:, http: or https:)"),
    output: OutputFormat = typer.Option(OutputFormat.markdown, "--output", help="Report format"),
    track: Optional[List[str]] = typer.Option(None, "--track", help="Bundle id to always show"),
    max_details_lines: int = typer.Option(
        DEFAULT_MAX_DETAILS_LINES, "--max-details-lines", min=1, help="Bundles listed in details"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Compare two snapshots and print the report."""
    _setup_logging(verbose)
    try:
        result = calculate_size_diff(load_snapshot_uri(base), load_snapshot_uri(head))
        if output is OutputFormat.json:
            report = render_json(result)
        else:
            options = ReportOptions(track=tuple(track or ()), max_details_lines=max_details_lines)
            report = MarkdownRenderer().render(result, options)
    except BundleSizeError as exc:
        raise _fail(exc) from exc
    typer.echo(report)


@app.command()
def pr(
    number: int = typer.Argument(..., help="Pull request number"),
    repo: Optional[str] = typer.Option(None, "--repo", help="Repository slug, e.g. owner/name"),
    build_number: Optional[str] = typer.Option(
        None, "--circleci-build-number", envvar="CIRCLE_BUILD_NUM", help="CI build number for the details link"
    ),
    comment: bool = typer.Option(False, "--comment", help="Post or update the report as a PR comment"),
    dedupe_id: str = typer.Option(DEFAULT_DEDUPE_ID, "--dedupe-id", help="Identifies the comment to update"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file path"),
    root: Path = typer.Option(Path("."), "--root", help="Project root directory", resolve_path=True),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Render the size report for a pull request."""
    _setup_logging(verbose)
    try:
        config = _load_optional_config(root, config_path)
        slug = repo or config.repo or detect_repo_slug(root)
        if not slug:
            raise BundleSizeError(
                "Repository is required. Pass --repo or run this command from within a git repository."
            )

        github = GitHubClient()
        store = SnapshotStore(config.storage_url)
        pr_info = github.get_pull(slug, number)
        report = render_pr_report(
            pr_info,
            SnapshotResolver(store.fetch, GitHubAncestorLookup(github)),
            store.fetch,
            fallback_depth=config.fallback_depth,
            options=ReportOptions(track=config.track, max_details_lines=config.max_details_lines),
            build_number=build_number,
            details_base_url=config.details_url,
        )
        if comment:
            posted = PullRequestNotifier(github).notify(pr_info.repo, number, dedupe_id, report)
            err_console.print(f"Report comment [bold]{posted.id}[/bold] updated on {escape(pr_info.repo)}#{number}")
    except BundleSizeError as exc:
        raise _fail(exc) from exc
    typer.echo(report)
