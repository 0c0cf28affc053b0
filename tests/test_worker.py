"""Tests for the per-entry build job."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from bundlesize.build.worker import BuildRequest, get_sizes
from bundlesize.entries import DEFAULT_EXTERNALS, normalize_entry
from bundlesize.errors import BuildError


class TestGetSizes:
    """Test get_sizes."""

    def test_returns_chunk_sizes(self, tmp_path: Path, fake_bundler, caplog: pytest.LogCaptureFixture) -> None:
        """Measures the main chunk under the entry id plus its imports."""
        request = BuildRequest(
            entry=normalize_entry("react"),
            index=0,
            total=2,
            root_dir=tmp_path,
            bundler=fake_bundler,
        )

        with caplog.at_level(logging.INFO):
            sizes = dict(get_sizes(request))

        assert set(sizes) == {"react", "_vendor.js"}
        assert sizes["_vendor.js"].parsed == len("export const vendor = 1;")
        assert "Compiling 1/2: [react]" in caplog.text
        assert "Completed 1/2: [react]" in caplog.text

    def test_uses_resolved_externals(self, tmp_path: Path, fake_bundler) -> None:
        """Externals are resolved before building."""
        request = BuildRequest(entry=normalize_entry("lib"), index=0, total=1, root_dir=tmp_path, bundler=fake_bundler)
        get_sizes(request)

        assert fake_bundler.externals_seen["lib"] == DEFAULT_EXTERNALS

    def test_build_errors_propagate(self, tmp_path: Path, fake_bundler) -> None:
        """Bundler failures are not swallowed."""
        fake_bundler.fail_for.add("broken")
        request = BuildRequest(
            entry=normalize_entry("broken"), index=0, total=1, root_dir=tmp_path, bundler=fake_bundler
        )

        with pytest.raises(BuildError):
            get_sizes(request)
