"""Snapshot storage: HTTP fetch and upload, plus URI based loading."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import requests

from bundlesize.config import DEFAULT_STORAGE_URL, UploadConfig
from bundlesize.errors import SnapshotFetchError, UploadError
from bundlesize.models import SizeSnapshot
from bundlesize.snapshot import SNAPSHOT_FILENAME, dumps_snapshot, loads_snapshot, read_snapshot

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
UPLOAD_TOKEN_ENV = "BUNDLE_SIZE_UPLOAD_TOKEN"


def fetch_snapshot_url(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> SizeSnapshot:
    """GET a snapshot; any non-200 answer or transport error is a fetch failure."""
    http = session or requests.Session()
    try:
        response = http.get(url, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        raise SnapshotFetchError(f"Failed to fetch {url}: {exc}") from exc
    if response.status_code != 200:
        raise SnapshotFetchError(f"Failed to fetch {url}: HTTP {response.status_code}")
    return loads_snapshot(response.content)


def load_snapshot_uri(
    uri: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> SizeSnapshot:
    """Load a snapshot from a ``file:``, ``http:`` or ``https:`` URI (bare paths are files)."""
    parsed = urlparse(uri)
    if parsed.scheme in ("http", "https"):
        return fetch_snapshot_url(uri, session=session, timeout=timeout)
    if parsed.scheme == "file":
        path = Path(unquote(parsed.path))
    elif parsed.scheme == "" or len(parsed.scheme) == 1:
        # A one-letter scheme is a Windows drive letter.
        path = Path(uri)
    else:
        raise SnapshotFetchError(f"Unsupported snapshot URI scheme: {parsed.scheme}")
    try:
        return read_snapshot(path)
    except OSError as exc:
        raise SnapshotFetchError(f"Failed to read snapshot {path}: {exc}") from exc


class SnapshotStore:
    """Snapshots addressed as ``{base_url}/{repo}/{commit}/size-snapshot.json``."""

    def __init__(
        self,
        base_url: str = DEFAULT_STORAGE_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def url_for(self, repo: str, commit: str) -> str:
        return f"{self.base_url}/{repo}/{commit}/{SNAPSHOT_FILENAME}"

    def fetch(self, repo: str, commit: str) -> SizeSnapshot:
        return fetch_snapshot_url(self.url_for(repo, commit), session=self.session, timeout=self.timeout)

    def upload(
        self,
        snapshot: SizeSnapshot,
        upload: UploadConfig,
        commit: str,
        *,
        token: Optional[str] = None,
    ) -> str:
        """PUT the snapshot at its commit address and return that address."""
        url = self.url_for(upload.repo, commit)
        headers = {
            "Content-Type": "application/json",
            "x-amz-meta-branch": upload.branch,
            "x-amz-meta-is-pull-request": "yes" if upload.is_pull_request else "no",
        }
        token = token or os.environ.get(UPLOAD_TOKEN_ENV)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self.session.put(
                url,
                data=dumps_snapshot(snapshot).encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise UploadError(f"Failed to upload bundle size snapshot: {exc}") from exc
        LOGGER.info("Bundle size snapshot uploaded to %s", url)
        return url
