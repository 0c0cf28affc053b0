"""Thin GitHub REST wrapper used for pull request metadata, history and comments."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import requests

from bundlesize.errors import GitHubError
from bundlesize.models import PullRequestInfo

LOGGER = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True, slots=True)
class IssueComment:
    id: int
    body: str


@dataclass(slots=True)
class CommentPage:
    comments: List[IssueComment]
    last_page: Optional[int] = None


class GitHubClient:
    """Minimal ``requests`` based client for the handful of endpoints we need."""

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        api_url: str = GITHUB_API_URL,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token = token if token is not None else os.environ.get("GITHUB_TOKEN")

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.api_url}{path}"
        LOGGER.debug("GitHub %s %s", method, url)
        try:
            response = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise GitHubError(f"GitHub request {method} {path} failed: {exc}") from exc
        return response

    def _json(self, response: requests.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubError(f"Invalid {what} payload: response is not JSON") from exc

    def get_pull(self, repo: str, number: int) -> PullRequestInfo:
        data = self._json(self._request("GET", f"/repos/{repo}/pulls/{number}"), "pull request")
        try:
            return PullRequestInfo(
                number=int(data["number"]),
                repo=data["base"]["repo"]["full_name"],
                base_ref=data["base"]["ref"],
                base_sha=data["base"]["sha"],
                head_sha=data["head"]["sha"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GitHubError(f"Invalid pull request payload: missing {exc}") from exc

    def list_commits(self, repo: str, sha: str, *, per_page: int = 30) -> List[str]:
        """Commit SHAs reachable from ``sha``, newest first, ``sha`` itself included."""
        response = self._request(
            "GET",
            f"/repos/{repo}/commits",
            params={"sha": sha, "per_page": max(1, min(per_page, 100))},
        )
        data = self._json(response, "commit list")
        try:
            return [item["sha"] for item in data]
        except (KeyError, TypeError) as exc:
            raise GitHubError(f"Invalid commit list payload: {exc!r}") from exc

    def list_issue_comments(self, repo: str, number: int, *, page: int = 1, per_page: int = 100) -> CommentPage:
        response = self._request(
            "GET",
            f"/repos/{repo}/issues/{number}/comments",
            params={"page": page, "per_page": per_page},
        )
        data = self._json(response, "comment list")
        try:
            comments = [_comment(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise GitHubError(f"Invalid comment list payload: {exc!r}") from exc
        last = response.links.get("last", {}).get("url")
        last_page = _page_from_url(last) if last else None
        return CommentPage(comments=comments, last_page=last_page)

    def create_comment(self, repo: str, number: int, body: str) -> IssueComment:
        response = self._request("POST", f"/repos/{repo}/issues/{number}/comments", json={"body": body})
        return self._comment_response(response, body)

    def update_comment(self, repo: str, comment_id: int, body: str) -> IssueComment:
        response = self._request("PATCH", f"/repos/{repo}/issues/comments/{comment_id}", json={"body": body})
        return self._comment_response(response, body)

    def _comment_response(self, response: requests.Response, body: str) -> IssueComment:
        data = self._json(response, "comment")
        try:
            comment = _comment(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise GitHubError(f"Invalid comment payload: {exc!r}") from exc
        return IssueComment(id=comment.id, body=comment.body or body)


def _comment(item: Dict[str, Any]) -> IssueComment:
    return IssueComment(id=int(item["id"]), body=item.get("body") or "")


def _page_from_url(url: str) -> Optional[int]:
    values = parse_qs(urlparse(url).query).get("page")
    if not values:
        return None
    try:
        return int(values[0])
    except ValueError:
        return None
