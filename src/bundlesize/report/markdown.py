"""Markdown and JSON rendering of a :class:`ComparisonResult`."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from bundlesize.config import DEFAULT_MAX_DETAILS_LINES
from bundlesize.errors import ReportError
from bundlesize.models import ComparisonEntry, ComparisonResult, MetricDiff, Totals
from bundlesize.report.diff import compute_totals
from bundlesize.report.formatting import (
    DEFAULT_BYTE_FORMATTER,
    DEFAULT_PERCENT_FORMATTER,
    ByteSizeFormatter,
    PercentFormatter,
)


def _icon(color: str, arrow: str) -> str:
    return f"<sup>${{\\tiny{{\\color{{{color}}}{arrow}}}}}$</sup>"


ICON_INCREASE = _icon("red", "▲")
ICON_NEW = _icon("orangered", "▲")
ICON_DECREASE = _icon("green", "▼")
ICON_REMOVED = _icon("cornflowerblue", "▼")
ICON_NONE = " "


def render_json(result: ComparisonResult) -> str:
    return json.dumps(result.to_dict(), indent=2)


@dataclass(frozen=True, slots=True)
class ReportOptions:
    track: Tuple[str, ...] = ()
    max_details_lines: int = DEFAULT_MAX_DETAILS_LINES


class MarkdownRenderer:
    """Renders a size comparison as a pull request friendly markdown fragment."""

    def __init__(
        self,
        byte_formatter: ByteSizeFormatter = DEFAULT_BYTE_FORMATTER,
        percent_formatter: PercentFormatter = DEFAULT_PERCENT_FORMATTER,
    ) -> None:
        self.byte_formatter = byte_formatter
        self.percent_formatter = percent_formatter

    def format_change(
        self,
        absolute: int,
        relative: Optional[float],
        *,
        is_new: bool = False,
        is_removed: bool = False,
    ) -> str:
        if is_new:
            icon, label = ICON_NEW, "new"
        elif is_removed:
            icon, label = ICON_REMOVED, "removed"
        else:
            ratio = relative or 0
            icon = ICON_INCREASE if ratio > 0 else ICON_DECREASE if ratio < 0 else ICON_NONE
            label = self.percent_formatter.format(ratio)
        return f"{icon}{self.byte_formatter.format(absolute)}<sup>({label})</sup>"

    def _metric_change(self, entry: ComparisonEntry, metric: MetricDiff) -> str:
        return self.format_change(
            metric.absolute_diff,
            metric.relative_diff,
            is_new=entry.is_new,
            is_removed=entry.is_removed,
        )

    def entry_line(self, entry: ComparisonEntry) -> str:
        return (
            f"**{entry.id}**&emsp;**parsed:**{self._metric_change(entry, entry.parsed)} "
            f"**gzip:**{self._metric_change(entry, entry.gzip)}"
        )

    def summary_line(self, totals: Totals) -> str:
        parsed = self.format_change(totals.total_parsed, totals.total_parsed_percent)
        gzip = self.format_change(totals.total_gzip, totals.total_gzip_percent)
        return f"**Total Size Change:**{parsed} - **Total Gzip Change:**{gzip}"

    def _details(self, summary: str, entries: Sequence[ComparisonEntry]) -> str:
        lines = "\n".join(self.entry_line(entry) for entry in entries)
        return f"<details>\n<summary>{summary}</summary>\n\n{lines}\n\n</details>"

    def _tracked(self, result: ComparisonResult, track: Sequence[str]) -> List[ComparisonEntry]:
        tracked = []
        for bundle_id in track:
            entry = result.get(bundle_id)
            if entry is None:
                raise ReportError(f"Tracked bundle not found in head snapshot: {bundle_id}")
            tracked.append(entry)
        return tracked

    def render(self, result: ComparisonResult, options: ReportOptions = ReportOptions()) -> str:
        tracked = self._tracked(result, options.track) if options.track else None
        totals = compute_totals(tracked) if tracked is not None else result.totals
        counts = result.file_counts

        header = (
            f"{self.summary_line(totals)}\n"
            f"Files: {counts.total} total ({counts.added} added, "
            f"{counts.removed} removed, {counts.changed} changed)"
        )
        blocks = [header]

        if tracked is not None:
            blocks.append("\n".join(self.entry_line(entry) for entry in tracked))
            tracked_ids = set(options.track)
            others = [e for e in result.entries if e.id not in tracked_ids and e.is_changed]
            shown = others[: options.max_details_lines]
            if shown:
                summary = f"Show {len(others)} more bundle changes"
                if len(others) > len(shown):
                    summary = f"Show {len(shown)} of {len(others)} more bundle changes"
                blocks.append(self._details(summary, shown))
        else:
            changed = [e for e in result.entries if e.is_changed]
            shown = changed[: options.max_details_lines]
            if shown:
                summary = f"Show details for {len(shown)} bundles"
                hidden = len(changed) - len(shown)
                if hidden:
                    summary += f" ({hidden} more not shown)"
                blocks.append(self._details(summary, shown))

        return "\n\n".join(blocks)
