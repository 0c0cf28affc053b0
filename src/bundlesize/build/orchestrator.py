"""Fans entry builds out over a bounded process pool and merges the results."""

from __future__ import annotations

import concurrent.futures
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from bundlesize.build.bundler import BuildOptions, Bundler, ViteBundler
from bundlesize.build.worker import BuildRequest, get_sizes
from bundlesize.errors import BuildError
from bundlesize.models import EntryDescriptor, SizeEntry, SizeSnapshot
from bundlesize.snapshot import merge_sizes

LOGGER = logging.getLogger(__name__)

MAX_CONCURRENCY = 32

ExecutorFactory = Callable[[int], concurrent.futures.Executor]


def default_concurrency() -> int:
    return os.cpu_count() or 1


def _process_pool(max_workers: int) -> concurrent.futures.Executor:
    return concurrent.futures.ProcessPoolExecutor(max_workers=max_workers)


def pool_size(requested: Optional[int], entry_count: int) -> int:
    """Workers to start: the requested count (or the core count), capped."""
    size = requested if requested and requested > 0 else default_concurrency()
    return max(1, min(size, MAX_CONCURRENCY, entry_count))


@dataclass(slots=True)
class BuildStats:
    entries: int = 0
    chunks: int = 0
    workers: int = 0
    per_entry: Dict[str, int] = field(default_factory=dict)


class SnapshotBuilder:
    """Coordinates parallel entry builds into a single size snapshot."""

    def __init__(
        self,
        root_dir: Path,
        *,
        bundler: Optional[Bundler] = None,
        concurrency: Optional[int] = None,
        options: Optional[BuildOptions] = None,
        executor_factory: ExecutorFactory = _process_pool,
    ) -> None:
        self.root_dir = Path(root_dir)
        self.bundler = bundler if bundler is not None else ViteBundler()
        self.concurrency = concurrency
        self.options = options if options is not None else BuildOptions()
        self.executor_factory = executor_factory
        self.stats = BuildStats()

    def _requests(self, entries: Sequence[EntryDescriptor]) -> List[BuildRequest]:
        return [
            BuildRequest(
                entry=entry,
                index=index,
                total=len(entries),
                root_dir=self.root_dir,
                bundler=self.bundler,
                options=self.options,
            )
            for index, entry in enumerate(entries)
        ]

    def build(self, entries: Sequence[EntryDescriptor]) -> SizeSnapshot:
        """Build every entry; any single failure aborts the whole run.

        Results are merged in entry order, so when two entries emit a chunk with
        the same name the later entry wins.
        """
        if not entries:
            raise BuildError("No entrypoints to build")

        requests = self._requests(entries)
        workers = pool_size(self.concurrency, len(requests))
        self.stats = BuildStats(entries=len(requests), workers=workers)
        LOGGER.info("Starting bundle size snapshot creation with %d workers...", workers)

        results: List[Optional[List[Tuple[str, SizeEntry]]]] = [None] * len(requests)
        executor = self.executor_factory(workers)
        failed = True
        try:
            futures = {executor.submit(get_sizes, request): index for index, request in enumerate(requests)}
            done, not_done = concurrent.futures.wait(futures, return_when=concurrent.futures.FIRST_EXCEPTION)
            for future in done:
                index = futures[future]
                exc = future.exception()
                if exc is not None:
                    for pending in not_done:
                        pending.cancel()
                    entry_id = requests[index].entry.id
                    LOGGER.error("Error processing bundle for %s: %s", entry_id, exc)
                    raise BuildError(f"Failed to build {entry_id}: {exc}") from exc
                results[index] = future.result()
            failed = False
        finally:
            # In-flight builds of a failed run are abandoned, not awaited.
            executor.shutdown(wait=not failed, cancel_futures=True)

        pairs: List[Tuple[str, SizeEntry]] = []
        for request, sizes in zip(requests, results):
            sizes = sizes or []
            self.stats.per_entry[request.entry.id] = len(sizes)
            pairs.extend(sizes)
        self.stats.chunks = len(pairs)
        return merge_sizes(pairs)


def build_snapshot(
    entries: Sequence[EntryDescriptor],
    root_dir: Path,
    *,
    bundler: Optional[Bundler] = None,
    concurrency: Optional[int] = None,
    options: Optional[BuildOptions] = None,
) -> SizeSnapshot:
    return SnapshotBuilder(root_dir, bundler=bundler, concurrency=concurrency, options=options).build(entries)
