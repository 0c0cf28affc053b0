"""Tests for baseline snapshot resolution."""

from __future__ import annotations

from typing import Dict, List
from unittest.mock import MagicMock

import requests

from bundlesize.errors import AncestorLookupError, SnapshotFetchError, SnapshotFormatError
from bundlesize.models import ResolvedSnapshot, SizeEntry, SizeSnapshot
from bundlesize.remote.github import GitHubClient
from bundlesize.remote.history import GitHubAncestorLookup
from bundlesize.remote.resolver import SnapshotResolver


class FakeStore:
    """Serves snapshots for known commits and records every fetch."""

    def __init__(self, snapshots: Dict[str, SizeSnapshot]) -> None:
        self.snapshots = snapshots
        self.fetched: List[str] = []

    def fetch(self, repo: str, commit: str) -> SizeSnapshot:
        self.fetched.append(commit)
        if commit not in self.snapshots:
            raise SnapshotFetchError(f"HTTP 404 for {commit}")
        return self.snapshots[commit]


class FakeAncestors:
    def __init__(self, chain: List[str], error: bool = False) -> None:
        self.chain = chain
        self.error = error
        self.calls: List[int] = []

    def ancestors(self, repo: str, commit: str, limit: int) -> List[str]:
        self.calls.append(limit)
        if self.error:
            raise AncestorLookupError("no history")
        return self.chain[:limit]


SNAPSHOT = {"a": SizeEntry(parsed=1, gzip=1)}


class TestSnapshotResolver:
    """Test SnapshotResolver.resolve."""

    def test_direct_hit(self) -> None:
        """No fallback when the base commit has a snapshot."""
        store = FakeStore({"base": SNAPSHOT})
        ancestors = FakeAncestors(["p1"])

        resolved = SnapshotResolver(store.fetch, ancestors).resolve("o/r", "base", 3)

        assert resolved == ResolvedSnapshot(snapshot=SNAPSHOT, actual_commit="base")
        assert ancestors.calls == []

    def test_first_ancestor_with_snapshot_wins(self) -> None:
        """Falls back to the most recent ancestor that has a snapshot."""
        store = FakeStore({"p2": SNAPSHOT, "p3": {}})

        resolved = SnapshotResolver(store.fetch, FakeAncestors(["p1", "p2", "p3"])).resolve("o/r", "base", 3)

        assert resolved.actual_commit == "p2"
        assert store.fetched == ["base", "p1", "p2"]

    def test_exhaustion_fetch_count(self) -> None:
        """Exhaustion performs exactly depth + 1 fetches."""
        store = FakeStore({})
        ancestors = FakeAncestors(["p1", "p2", "p3", "p4", "p5"])

        resolved = SnapshotResolver(store.fetch, ancestors).resolve("o/r", "base", 3)

        assert resolved == ResolvedSnapshot(snapshot=None, actual_commit=None)
        assert store.fetched == ["base", "p1", "p2", "p3"]

    def test_zero_depth(self) -> None:
        """With no fallback depth only the base commit is tried."""
        store = FakeStore({})
        ancestors = FakeAncestors(["p1"])

        resolved = SnapshotResolver(store.fetch, ancestors).resolve("o/r", "base", 0)

        assert resolved.snapshot is None
        assert store.fetched == ["base"]
        assert ancestors.calls == []

    def test_malformed_snapshot_falls_back(self) -> None:
        """A malformed snapshot is treated like a missing one."""
        def fetch(repo: str, commit: str) -> SizeSnapshot:
            if commit == "base":
                raise SnapshotFormatError("bad json")
            return SNAPSHOT

        resolved = SnapshotResolver(fetch, FakeAncestors(["p1"])).resolve("o/r", "base", 1)

        assert resolved.actual_commit == "p1"

    def test_ancestor_lookup_failure(self) -> None:
        """History errors end the search without raising."""
        store = FakeStore({})

        resolved = SnapshotResolver(store.fetch, FakeAncestors([], error=True)).resolve("o/r", "base", 3)

        assert resolved == ResolvedSnapshot(snapshot=None, actual_commit=None)

    def test_short_history(self) -> None:
        """Fewer ancestors than the depth is fine."""
        store = FakeStore({})

        SnapshotResolver(store.fetch, FakeAncestors(["p1"])).resolve("o/r", "base", 3)

        assert store.fetched == ["base", "p1"]

    def test_garbled_history_response(self) -> None:
        """A non-JSON commits response from GitHub ends the search without raising."""
        session = MagicMock()
        session.request.return_value.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "", 0)
        store = FakeStore({})

        resolved = SnapshotResolver(store.fetch, GitHubAncestorLookup(GitHubClient("t", session=session))).resolve(
            "o/r", "base", 3
        )

        assert resolved == ResolvedSnapshot(snapshot=None, actual_commit=None)
        assert store.fetched == ["base"]

    def test_unexpected_history_shape(self) -> None:
        """A commits response of the wrong shape ends the search without raising."""
        session = MagicMock()
        session.request.return_value.json.return_value = {"message": "Not Found"}
        store = FakeStore({})

        resolved = SnapshotResolver(store.fetch, GitHubAncestorLookup(GitHubClient("t", session=session))).resolve(
            "o/r", "base", 3
        )

        assert resolved.snapshot is None
