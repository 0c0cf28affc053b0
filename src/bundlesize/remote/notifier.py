"""Posts a single, updatable size report comment on a pull request."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from bundlesize.remote.github import CommentPage, GitHubClient, IssueComment

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 10
PER_PAGE = 100


def comment_marker(dedupe_id: str) -> str:
    return f"<!-- bundle-size-checker:{dedupe_id} -->"


class PullRequestNotifier:
    """Keeps at most one report comment per (pull request, dedupe id)."""

    def __init__(self, github: GitHubClient, *, max_pages: int = DEFAULT_MAX_PAGES) -> None:
        self.github = github
        self.max_pages = max_pages

    def find_comment(self, repo: str, pr_number: int, marker: str) -> Optional[IssueComment]:
        """Newest comment containing ``marker``; scans newest page first, bounded by ``max_pages``."""
        pages: Dict[int, CommentPage] = {1: self.github.list_issue_comments(repo, pr_number, page=1, per_page=PER_PAGE)}
        page_number = pages[1].last_page or 1
        scanned = 0
        while page_number >= 1 and scanned < self.max_pages:
            page = pages.get(page_number)
            if page is None:
                page = self.github.list_issue_comments(repo, pr_number, page=page_number, per_page=PER_PAGE)
            scanned += 1
            if not page.comments:
                return None
            for comment in reversed(page.comments):
                if marker in comment.body:
                    return comment
            page_number -= 1
        return None

    def notify(self, repo: str, pr_number: int, dedupe_id: str, body: str) -> IssueComment:
        marker = comment_marker(dedupe_id)
        full_body = f"{marker}\n{body}"
        existing = self.find_comment(repo, pr_number, marker)
        if existing is not None:
            LOGGER.info("Updating comment %s on %s#%s", existing.id, repo, pr_number)
            return self.github.update_comment(repo, existing.id, full_body)
        LOGGER.info("Creating comment on %s#%s", repo, pr_number)
        return self.github.create_comment(repo, pr_number, full_body)
