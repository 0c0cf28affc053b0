"""Per-entry build job executed inside a pool worker."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from bundlesize.build.bundler import BuildOptions, Bundler
from bundlesize.build.measure import measure_build
from bundlesize.entries import resolve_externals
from bundlesize.models import EntryDescriptor, SizeEntry

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BuildRequest:
    """Everything a worker needs to build and measure one entry; must stay picklable."""

    entry: EntryDescriptor
    index: int
    total: int
    root_dir: Path
    bundler: Bundler
    options: BuildOptions = field(default_factory=BuildOptions)


def get_sizes(request: BuildRequest) -> List[Tuple[str, SizeEntry]]:
    """Build one entry and return the sizes of every chunk in its bundle."""
    entry = request.entry
    position = f"{request.index + 1}/{request.total}"
    LOGGER.info("Compiling %s: [%s]", position, entry.id)

    externals = resolve_externals(entry, request.root_dir)
    output = request.bundler.build(entry, externals, request.root_dir, request.options)
    sizes = measure_build(entry.id, output, output.entry_chunk_name)

    entry_size = dict(sizes).get(entry.id, SizeEntry(parsed=0, gzip=0))
    LOGGER.info(
        "Completed %s: [%s] import=%s externals=%s parsed=%d gzip=%d",
        position,
        entry.id,
        entry.describe(),
        ", ".join(externals),
        entry_size.parsed,
        entry_size.gzip,
    )
    return sizes
