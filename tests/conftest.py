"""Shared fixtures."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Set

import pytest

from bundlesize.build.bundler import BuildOptions, BuildOutput
from bundlesize.build.measure import VIRTUAL_ENTRY_NAME
from bundlesize.errors import BuildError
from bundlesize.models import EntryDescriptor, parse_manifest
from bundlesize.utils.files import safe_dirname


@dataclass
class FakeBundler:
    """Writes a tiny manifest plus chunk files instead of running vite.

    Every entry gets a main chunk whose content is ``body`` repeated, and a
    ``_vendor.js`` chunk shared across entries.
    """

    body: str = "console.log('x');"
    fail_for: Set[str] = field(default_factory=set)
    calls: List[str] = field(default_factory=list)
    externals_seen: Dict[str, Sequence[str]] = field(default_factory=dict)

    def build(
        self,
        entry: EntryDescriptor,
        externals: Sequence[str],
        root_dir: Path,
        options: BuildOptions,
    ) -> BuildOutput:
        self.calls.append(entry.id)
        self.externals_seen[entry.id] = tuple(externals)
        if entry.id in self.fail_for:
            raise BuildError(f"vite failed to build {entry.id}")

        out_dir = root_dir / "build" / safe_dirname(entry.id) / "dist"
        out_dir.mkdir(parents=True, exist_ok=True)
        main = self.body * (len(entry.id) % 5 + 1)
        (out_dir / "entry.js").write_text(main, encoding="utf-8")
        (out_dir / "vendor.js").write_text("export const vendor = 1;", encoding="utf-8")
        raw = {
            "entry.tsx": {"file": "entry.js", "name": VIRTUAL_ENTRY_NAME, "imports": ["_vendor.js"]},
            "_vendor.js": {"file": "vendor.js", "name": "vendor"},
        }
        (out_dir / "manifest.json").write_text(json.dumps(raw), encoding="utf-8")
        return BuildOutput(manifest=parse_manifest(raw), out_dir=out_dir)


@pytest.fixture
def fake_bundler() -> FakeBundler:
    return FakeBundler()
