"""Diff engine comparing a base snapshot against a head snapshot."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from bundlesize.models import (
    NO_CHANGE,
    REMOVED,
    ComparisonEntry,
    ComparisonResult,
    FileCounts,
    MetricDiff,
    SizeEntry,
    SizeSnapshot,
    Totals,
)

_EMPTY = SizeEntry(parsed=0, gzip=0)

# Display rank by the parsed metric.
_INCREASED = 1
_NEW = 2
_DECREASED = 3
_REMOVED = 4
_UNCHANGED = 5


def _relative(previous: int, current: int, is_new: bool, is_removed: bool) -> Optional[float]:
    if is_new:
        return None
    if is_removed:
        return REMOVED
    if previous > 0:
        return current / previous - 1
    # A zero-sized base is reported as no relative change.
    return NO_CHANGE


def _metric(previous: int, current: int, is_new: bool, is_removed: bool) -> MetricDiff:
    return MetricDiff(
        previous=previous,
        current=current,
        absolute_diff=current - previous,
        relative_diff=_relative(previous, current, is_new, is_removed),
    )


def _category(entry: ComparisonEntry) -> int:
    if entry.is_new:
        return _NEW
    if entry.is_removed:
        return _REMOVED
    relative = entry.parsed.relative_diff or 0
    if relative > 0:
        return _INCREASED
    if relative < 0:
        return _DECREASED
    return _UNCHANGED


def sort_key(entry: ComparisonEntry) -> Tuple[int, int, str]:
    return (_category(entry), -abs(entry.parsed.absolute_diff), entry.id)


def compute_totals(entries: Iterable[ComparisonEntry]) -> Totals:
    """Sum absolute diffs; percentages are relative to the summed previous sizes."""
    total_parsed = total_gzip = previous_parsed = previous_gzip = 0
    for entry in entries:
        total_parsed += entry.parsed.absolute_diff
        total_gzip += entry.gzip.absolute_diff
        previous_parsed += entry.parsed.previous
        previous_gzip += entry.gzip.previous
    return Totals(
        total_parsed=total_parsed,
        total_gzip=total_gzip,
        total_parsed_percent=total_parsed / previous_parsed if previous_parsed > 0 else 0,
        total_gzip_percent=total_gzip / previous_gzip if previous_gzip > 0 else 0,
    )


def compare_entry(bundle_id: str, base: Optional[SizeEntry], head: Optional[SizeEntry]) -> ComparisonEntry:
    is_new = base is None
    is_removed = head is None and not is_new
    previous = base or _EMPTY
    current = head or _EMPTY
    return ComparisonEntry(
        id=bundle_id,
        parsed=_metric(previous.parsed, current.parsed, is_new, is_removed),
        gzip=_metric(previous.gzip, current.gzip, is_new, is_removed),
        is_new=is_new,
        is_removed=is_removed,
    )


def calculate_size_diff(base: Optional[SizeSnapshot], head: Optional[SizeSnapshot]) -> ComparisonResult:
    """Compare two snapshots; a missing snapshot counts as empty."""
    base = base or {}
    head = head or {}

    entries: List[ComparisonEntry] = [
        compare_entry(bundle_id, base.get(bundle_id), head.get(bundle_id))
        for bundle_id in set(base) | set(head)
    ]
    entries.sort(key=sort_key)

    counts = FileCounts(total=len(entries))
    for entry in entries:
        if entry.is_new:
            counts.added += 1
        elif entry.is_removed:
            counts.removed += 1
        elif entry.parsed.absolute_diff != 0 or entry.gzip.absolute_diff != 0:
            counts.changed += 1

    return ComparisonResult(entries=entries, totals=compute_totals(entries), file_counts=counts)
