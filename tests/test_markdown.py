"""Tests for the markdown report renderer."""

from __future__ import annotations

import pytest

from bundlesize.errors import ReportError
from bundlesize.models import SizeEntry
from bundlesize.report.diff import calculate_size_diff
from bundlesize.report.formatting import ByteSizeFormatter, PercentFormatter
from bundlesize.report.markdown import (
    ICON_DECREASE,
    ICON_INCREASE,
    ICON_NEW,
    ICON_REMOVED,
    MarkdownRenderer,
    ReportOptions,
)

BUTTON = "@mui/material/Button/index.js"
TEXT_FIELD = "@mui/material/TextField/index.js"
RED_UP = "<sup>${\\tiny{\\color{red}▲}}$</sup>"


def _snap(**sizes: tuple[int, int]) -> dict[str, SizeEntry]:
    return {name: SizeEntry(parsed=parsed, gzip=gzip) for name, (parsed, gzip) in sizes.items()}


class TestFormatChange:
    """Test MarkdownRenderer.format_change."""

    def test_icons(self) -> None:
        """Icons follow the direction and the new/removed flags."""
        renderer = MarkdownRenderer()

        assert renderer.format_change(400, 0.0267) == f"{ICON_INCREASE}+400B<sup>(+2.67%)</sup>"
        assert renderer.format_change(-500, -0.0333) == f"{ICON_DECREASE}-500B<sup>(-3.33%)</sup>"
        assert renderer.format_change(3500, None, is_new=True) == f"{ICON_NEW}+3.5KB<sup>(new)</sup>"
        assert renderer.format_change(-22000, -1, is_removed=True) == f"{ICON_REMOVED}-22KB<sup>(removed)</sup>"
        assert renderer.format_change(0, 0) == " 0B<sup>(0.00%)</sup>"

    def test_icon_markup(self) -> None:
        """The increase icon is a small colored TeX arrow."""
        assert ICON_INCREASE == RED_UP

    def test_custom_formatters(self) -> None:
        """Injected formatters are used."""
        renderer = MarkdownRenderer(
            byte_formatter=ByteSizeFormatter(decimal_separator=","),
            percent_formatter=PercentFormatter(decimal_separator=","),
        )
        assert renderer.format_change(3500, 0.5) == f"{ICON_INCREASE}+3,5KB<sup>(+50,00%)</sup>"


class TestRender:
    """Test MarkdownRenderer.render."""

    def test_size_increase_report(self) -> None:
        """Summary, file counts and changed bundles in a details block."""
        result = calculate_size_diff(
            _snap(**{BUTTON: (15000, 4500), TEXT_FIELD: (22000, 6500)}),
            _snap(**{BUTTON: (15400, 4600), TEXT_FIELD: (22000, 6500)}),
        )

        report = MarkdownRenderer().render(result)

        assert report == (
            f"**Total Size Change:**{RED_UP}+400B<sup>(+1.08%)</sup> - "
            f"**Total Gzip Change:**{RED_UP}+100B<sup>(+0.91%)</sup>\n"
            "Files: 2 total (0 added, 0 removed, 1 changed)\n"
            "\n"
            "<details>\n"
            "<summary>Show details for 1 bundles</summary>\n"
            "\n"
            f"**{BUTTON}**&emsp;**parsed:**{RED_UP}+400B<sup>(+2.67%)</sup> "
            f"**gzip:**{RED_UP}+100B<sup>(+2.22%)</sup>\n"
            "\n"
            "</details>"
        )

    def test_no_changes(self) -> None:
        """Without changes only the header is rendered."""
        snapshot = _snap(**{BUTTON: (15000, 4500)})
        report = MarkdownRenderer().render(calculate_size_diff(snapshot, snapshot))

        assert report == (
            "**Total Size Change:** 0B<sup>(0.00%)</sup> - **Total Gzip Change:** 0B<sup>(0.00%)</sup>\n"
            "Files: 1 total (0 added, 0 removed, 0 changed)"
        )

    def test_details_are_capped(self) -> None:
        """Only max_details_lines bundles are listed, with a count of the rest."""
        base = {f"icon{i:02d}": SizeEntry(parsed=1000, gzip=300) for i in range(5)}
        head = {f"icon{i:02d}": SizeEntry(parsed=1050, gzip=310) for i in range(5)}

        report = MarkdownRenderer().render(calculate_size_diff(base, head), ReportOptions(max_details_lines=2))

        assert "<summary>Show details for 2 bundles (3 more not shown)</summary>" in report
        assert "**icon01**" in report
        assert "**icon02**" not in report

    def test_tracked_bundles(self) -> None:
        """Tracked bundles are always shown and drive the totals."""
        base = _snap(**{BUTTON: (15000, 4500), TEXT_FIELD: (22000, 6500)})
        head = _snap(**{BUTTON: (15000, 4500), TEXT_FIELD: (23000, 6600)})
        head.update(_snap(extra=(100, 50)))

        report = MarkdownRenderer().render(calculate_size_diff(base, head), ReportOptions(track=(BUTTON,)))
        header, tracked, details = report.split("\n\n", 2)

        assert header.startswith("**Total Size Change:** 0B<sup>(0.00%)</sup>")
        assert "Files: 3 total (1 added, 0 removed, 1 changed)" in header
        assert tracked.startswith(f"**{BUTTON}**&emsp;**parsed:** 0B<sup>(0.00%)</sup>")
        assert "<summary>Show 2 more bundle changes</summary>" in details
        assert f"**{TEXT_FIELD}**" in details
        assert "**extra**" in details

    def test_unknown_tracked_bundle(self) -> None:
        """Tracking an unknown id is an error."""
        result = calculate_size_diff({}, _snap(a=(1, 1)))

        with pytest.raises(ReportError, match="Tracked bundle not found in head snapshot: missing"):
            MarkdownRenderer().render(result, ReportOptions(track=("missing",)))
