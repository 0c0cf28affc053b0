"""Tests for manifest dependency traversal."""

from __future__ import annotations

import pytest

from bundlesize.build.graph import walk_dependency_tree
from bundlesize.errors import MissingChunkError
from bundlesize.models import ManifestChunk


class TestWalkDependencyTree:
    """Test walk_dependency_tree."""

    def test_static_and_dynamic_imports(self) -> None:
        """Follows both import kinds and includes the start chunk."""
        manifest = {
            "main": ManifestChunk(file="main.js", imports=("shared",), dynamic_imports=("lazy",)),
            "shared": ManifestChunk(file="shared.js"),
            "lazy": ManifestChunk(file="lazy.js", imports=("shared",)),
            "unrelated": ManifestChunk(file="other.js"),
        }

        assert walk_dependency_tree("main", manifest) == {"main", "shared", "lazy"}

    def test_cycles_terminate(self) -> None:
        """Import cycles are visited once."""
        manifest = {
            "a": ManifestChunk(file="a.js", imports=("b",)),
            "b": ManifestChunk(file="b.js", dynamic_imports=("a",)),
        }

        assert walk_dependency_tree("a", manifest) == {"a", "b"}

    def test_missing_chunk_raises(self) -> None:
        """Dangling references raise MissingChunkError."""
        manifest = {"main": ManifestChunk(file="main.js", imports=("ghost",))}

        with pytest.raises(MissingChunkError, match="Chunk not found in manifest: ghost"):
            walk_dependency_tree("main", manifest)

    def test_missing_start_raises(self) -> None:
        """A missing start chunk is reported too."""
        with pytest.raises(MissingChunkError):
            walk_dependency_tree("main", {})
