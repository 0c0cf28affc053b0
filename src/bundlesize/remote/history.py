"""Ancestor commit enumeration strategies and local git helpers."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Protocol

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from bundlesize.errors import AncestorLookupError, GitHubError
from bundlesize.remote.github import GitHubClient

LOGGER = logging.getLogger(__name__)

_GITHUB_SLUG = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$")


class AncestorLookup(Protocol):
    def ancestors(self, repo: str, commit: str, limit: int) -> List[str]:
        """Up to ``limit`` ancestors of ``commit``, most recent first, excluding ``commit``."""
        ...


class GitAncestorLookup:
    """Reads ancestors from a local clone."""

    def __init__(self, repo_path: Path) -> None:
        self.repo_path = Path(repo_path)

    def ancestors(self, repo: str, commit: str, limit: int) -> List[str]:
        if limit <= 0:
            return []
        LOGGER.debug("Listing %d ancestors of %s from %s", limit, commit, self.repo_path)
        try:
            local = Repo(self.repo_path, search_parent_directories=True)
            commits = local.iter_commits(commit, max_count=limit + 1)
            shas = [item.hexsha for item in commits]
        except (GitCommandError, InvalidGitRepositoryError, NoSuchPathError, ValueError) as exc:
            raise AncestorLookupError(f"Could not list ancestors of {commit}: {exc}") from exc
        return [sha for sha in shas if sha != commit][:limit]


class GitHubAncestorLookup:
    """Reads ancestors from the GitHub commits API."""

    def __init__(self, client: GitHubClient) -> None:
        self.client = client

    def ancestors(self, repo: str, commit: str, limit: int) -> List[str]:
        if limit <= 0:
            return []
        try:
            shas = self.client.list_commits(repo, commit, per_page=limit + 1)
        except GitHubError as exc:
            raise AncestorLookupError(f"Could not list ancestors of {commit}: {exc}") from exc
        return [sha for sha in shas if sha != commit][:limit]


def parse_repo_slug(remote_url: str) -> Optional[str]:
    """``owner/name`` from a GitHub remote URL (https or ssh), else ``None``."""
    match = _GITHUB_SLUG.search(remote_url.strip())
    if not match:
        return None
    return f"{match.group('owner')}/{match.group('name')}"


def detect_repo_slug(path: Path) -> Optional[str]:
    try:
        repo = Repo(path, search_parent_directories=True)
        return parse_repo_slug(repo.remotes.origin.url)
    except (InvalidGitRepositoryError, NoSuchPathError, AttributeError, ValueError):
        return None


def detect_head_commit(path: Path) -> Optional[str]:
    try:
        repo = Repo(path, search_parent_directories=True)
        return repo.head.commit.hexsha
    except (InvalidGitRepositoryError, NoSuchPathError, ValueError):
        return None
