"""Composes the full pull request report from stored snapshots."""

from __future__ import annotations

import concurrent.futures
from typing import Optional
from urllib.parse import urlencode

from bundlesize.config import DEFAULT_DETAILS_URL, DEFAULT_FALLBACK_DEPTH
from bundlesize.models import PullRequestInfo, ResolvedSnapshot
from bundlesize.remote.resolver import SnapshotFetcher, SnapshotResolver
from bundlesize.report.diff import calculate_size_diff
from bundlesize.report.markdown import MarkdownRenderer, ReportOptions


def details_url(
    pr: PullRequestInfo,
    base_commit: Optional[str] = None,
    *,
    build_number: Optional[str] = None,
    base_url: str = DEFAULT_DETAILS_URL,
) -> str:
    """Deep link to the interactive comparison page for ``pr``."""
    params = {
        "prNumber": str(pr.number),
        "baseRef": pr.base_ref,
        "baseCommit": base_commit or pr.base_sha,
        "headCommit": pr.head_sha,
    }
    if build_number:
        params["circleCIBuildNumber"] = build_number
    return f"{base_url.rstrip('/')}/{pr.repo}/diff?{urlencode(params)}"


def baseline_note(pr: PullRequestInfo, resolved: ResolvedSnapshot, fallback_depth: int) -> Optional[str]:
    if resolved.snapshot is None:
        return (
            f"_:no_entry_sign: No bundle size snapshot found for base commit {pr.base_sha} "
            f"or any of its {fallback_depth} parent commits._"
        )
    if resolved.actual_commit != pr.base_sha:
        return (
            f"_:information_source: Using snapshot from parent commit {resolved.actual_commit} "
            f"(fallback from {pr.base_sha})._"
        )
    return None


def render_pr_report(
    pr: PullRequestInfo,
    resolver: SnapshotResolver,
    fetch_head: SnapshotFetcher,
    *,
    fallback_depth: int = DEFAULT_FALLBACK_DEPTH,
    options: ReportOptions = ReportOptions(),
    renderer: Optional[MarkdownRenderer] = None,
    build_number: Optional[str] = None,
    details_base_url: str = DEFAULT_DETAILS_URL,
) -> str:
    """Markdown report comparing the PR head against its (possibly fallback) base.

    The base lookup and the head fetch run concurrently. A missing head snapshot
    propagates as :class:`~bundlesize.errors.SnapshotFetchError`.
    """
    renderer = renderer or MarkdownRenderer()
    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        base_future = executor.submit(resolver.resolve, pr.repo, pr.base_sha, fallback_depth)
        head_future = executor.submit(fetch_head, pr.repo, pr.head_sha)
        resolved = base_future.result()
        head = head_future.result()

    parts = []
    note = baseline_note(pr, resolved, fallback_depth)
    if note:
        parts.append(note)

    result = calculate_size_diff(resolved.snapshot, head)
    parts.append(renderer.render(result, options))
    url = details_url(pr, resolved.actual_commit, build_number=build_number, base_url=details_base_url)
    parts.append(f"[Details of bundle changes]({url})")
    return "\n\n".join(parts)
