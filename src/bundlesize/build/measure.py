"""Chunk size measurement."""

from __future__ import annotations

import gzip
import logging
from typing import List, Protocol, Tuple

from bundlesize.build.graph import walk_dependency_tree
from bundlesize.errors import BuildError
from bundlesize.models import Manifest, SizeEntry

LOGGER = logging.getLogger(__name__)

VIRTUAL_ENTRY_NAME = "_virtual_entry"

# Bundler runtime helpers that end up in every build and say nothing about the entry.
SCAFFOLDING_CHUNKS = frozenset({"preload-helper", "modulepreload-polyfill"})


class ChunkSource(Protocol):
    manifest: Manifest

    def read_chunk(self, file: str) -> bytes: ...


def measure_chunk(data: bytes) -> SizeEntry:
    """Raw and maximum-level gzip size; ``mtime=0`` keeps the gzip header stable."""
    compressed = gzip.compress(data, compresslevel=9, mtime=0)
    return SizeEntry(parsed=len(data), gzip=len(compressed))


def find_main_chunk(manifest: Manifest, entry_chunk_name: str = VIRTUAL_ENTRY_NAME) -> str:
    for key, chunk in manifest.items():
        if chunk.name == entry_chunk_name:
            return key
    entries = [key for key, chunk in manifest.items() if chunk.is_entry]
    if len(entries) == 1:
        return entries[0]
    raise BuildError(f"No main entry chunk named {entry_chunk_name!r} found in manifest")


def measure_build(
    entry_id: str,
    output: ChunkSource,
    entry_chunk_name: str = VIRTUAL_ENTRY_NAME,
) -> List[Tuple[str, SizeEntry]]:
    """Measure every chunk that belongs to ``entry_id``'s bundle.

    The main chunk is reported under the entry id, other chunks under their
    manifest key, which stays unique where logical names repeat. Known
    scaffolding chunks are left out.
    """
    manifest = output.manifest
    main_key = find_main_chunk(manifest, entry_chunk_name)

    sizes: dict[str, SizeEntry] = {}
    for key in sorted(walk_dependency_tree(main_key, manifest)):
        chunk = manifest[key]
        if key != main_key and chunk.name in SCAFFOLDING_CHUNKS:
            LOGGER.debug("Skipping scaffolding chunk %s", key)
            continue
        try:
            data = output.read_chunk(chunk.file)
        except OSError as exc:
            raise BuildError(f"Output chunk not found for {chunk.file}") from exc
        name = entry_id if key == main_key else key
        sizes[name] = measure_chunk(data)

    return sorted(sizes.items())
