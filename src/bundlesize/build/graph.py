"""Dependency graph traversal over bundler manifests."""

from __future__ import annotations

from typing import FrozenSet, List

from bundlesize.errors import MissingChunkError
from bundlesize.models import Manifest


def walk_dependency_tree(start_key: str, manifest: Manifest) -> FrozenSet[str]:
    """Collect every chunk reachable from ``start_key`` through static or dynamic imports.

    The start chunk is part of the result. Chunks are visited at most once, so
    import cycles terminate. A chunk key that the manifest references but does
    not define raises :class:`MissingChunkError`.
    """
    visited: set[str] = set()
    stack: List[str] = [start_key]
    while stack:
        key = stack.pop()
        if key in visited:
            continue
        chunk = manifest.get(key)
        if chunk is None:
            raise MissingChunkError(key)
        visited.add(key)
        stack.extend(reversed(chunk.dynamic_imports))
        stack.extend(reversed(chunk.imports))
    return frozenset(visited)
