"""Locates a baseline snapshot, falling back through ancestor commits."""

from __future__ import annotations

import logging
from typing import Callable

from bundlesize.errors import AncestorLookupError, SnapshotFetchError
from bundlesize.models import ResolvedSnapshot, SizeSnapshot
from bundlesize.remote.history import AncestorLookup

LOGGER = logging.getLogger(__name__)

SnapshotFetcher = Callable[[str, str], SizeSnapshot]

NOT_FOUND = ResolvedSnapshot(snapshot=None, actual_commit=None)


class SnapshotResolver:
    """Fetches a snapshot for a commit or, failing that, for its nearest ancestor."""

    def __init__(self, fetch: SnapshotFetcher, ancestors: AncestorLookup) -> None:
        self.fetch = fetch
        self.ancestors = ancestors

    def _try_fetch(self, repo: str, commit: str) -> SizeSnapshot | None:
        try:
            return self.fetch(repo, commit)
        except SnapshotFetchError as exc:
            LOGGER.info("No snapshot for %s@%s: %s", repo, commit, exc)
            return None

    def resolve(self, repo: str, commit: str, fallback_depth: int) -> ResolvedSnapshot:
        snapshot = self._try_fetch(repo, commit)
        if snapshot is not None:
            return ResolvedSnapshot(snapshot=snapshot, actual_commit=commit)

        if fallback_depth <= 0:
            return NOT_FOUND

        try:
            candidates = self.ancestors.ancestors(repo, commit, fallback_depth)
        except AncestorLookupError as exc:
            LOGGER.warning("Could not look up ancestors of %s: %s", commit, exc)
            return NOT_FOUND

        # Sequential on purpose: the history source may be rate limited.
        for ancestor in candidates[:fallback_depth]:
            snapshot = self._try_fetch(repo, ancestor)
            if snapshot is not None:
                LOGGER.info("Using snapshot from parent commit %s (fallback from %s)", ancestor, commit)
                return ResolvedSnapshot(snapshot=snapshot, actual_commit=ancestor)

        return NOT_FOUND
