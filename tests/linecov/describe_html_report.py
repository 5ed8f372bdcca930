"""Tests for linecov.html_report — source pages and the summary index."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from linecov.config import ReportConfig
from linecov.html_report import (
    BG_COVERED,
    BG_NON_EXECUTABLE,
    BG_UNCOVERED,
    HtmlReport,
    SummaryAggregator,
    render_source_page,
    status_style,
    write_source_page,
)
from linecov.models import (
    CoverageStatus,
    FileSummary,
    Hits,
    Instruction,
    LineAnnotation,
    LineStatus,
    TestMethod,
)
from linecov.report import ReportOutcome

FIXED_TIME = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def _line_divs(page: str) -> list[str]:
    return [line for line in page.splitlines() if line.startswith("<div")]


def describe_render_source_page():
    def it_renders_one_div_per_source_line():
        annotations = [
            LineAnnotation(1, LineStatus.COVERED, 1),
            LineAnnotation(2, LineStatus.NON_EXECUTABLE),
            LineAnnotation(3, LineStatus.UNCOVERED),
        ]
        page = render_source_page("app.py", ["a", "", "c"], annotations)
        divs = _line_divs(page)
        assert len(divs) == 3
        assert BG_COVERED in divs[0]
        assert BG_NON_EXECUTABLE in divs[1]
        assert BG_UNCOVERED in divs[2]

    def it_renders_blank_lines_as_non_breaking_space():
        page = render_source_page("app.py", [""], [LineAnnotation(1, LineStatus.NON_EXECUTABLE)])
        assert _line_divs(page)[0].endswith("&nbsp;</span>&nbsp;</div>")

    def it_escapes_markup_in_source():
        page = render_source_page(
            "app.py", ['if a < b && c > "d":'], [LineAnnotation(1, LineStatus.UNCOVERED)]
        )
        assert 'if a &lt; b &amp;&amp; c &gt; "d":' in page
        assert "a < b" not in page

    def it_shows_icon_only_when_tests_attribute_to_line():
        annotations = [
            LineAnnotation(1, LineStatus.COVERED, 3, (TestMethod("Foo", "Bar", 2),)),
            LineAnnotation(2, LineStatus.COVERED, 1),
        ]
        divs = _line_divs(render_source_page("app.py", ["a", "b"], annotations))
        assert "&#9432;" in divs[0]
        assert "&#9432;" not in divs[1]

    def it_lists_tests_with_counts_in_tooltip():
        tests = (TestMethod("Foo", "Bar", 2), TestMethod("Foo", "Baz", 1))
        annotation = LineAnnotation(1, LineStatus.COVERED, 3, tests)
        div = _line_divs(render_source_page("app.py", ["x"], [annotation]))[0]
        assert 'title="Foo.Bar (2), Foo.Baz (1)"' in div
        assert 'title="Covered by tests: Foo.Bar (2), Foo.Baz (1) for 3"' in div

    def it_escapes_test_names_in_attributes():
        annotation = LineAnnotation(1, LineStatus.COVERED, 1, (TestMethod('C"<', "m", 1),))
        div = _line_divs(render_source_page("app.py", ["x"], [annotation]))[0]
        assert "C&quot;&lt;.m (1)" in div

    def it_treats_missing_annotations_as_non_executable():
        divs = _line_divs(render_source_page("app.py", ["a", "b"], []))
        assert all(BG_NON_EXECUTABLE in d for d in divs)

    def it_is_deterministic():
        annotations = [LineAnnotation(1, LineStatus.COVERED, 2, (TestMethod("A", "b", 2),))]
        first = render_source_page("app.py", ["x"], annotations)
        second = render_source_page("app.py", ["x"], annotations)
        assert first == second


def describe_write_source_page():
    def it_creates_parent_directories(tmp_path):
        target = write_source_page(tmp_path / "out", "pkg/sub/app.py", ["x"], [])
        assert target == (tmp_path / "out" / "pkg" / "sub" / "app.py.html").resolve()
        assert target.exists()

    def it_writes_traversal_paths_inside_output_dir(tmp_path):
        out = tmp_path / "out"
        target = write_source_page(out, "../../etc/evil", ["x"], [])
        assert target == (out / "etc" / "evil.html").resolve()
        assert not (tmp_path / "etc").exists()

    def it_overwrites_with_byte_identical_content(tmp_path):
        annotations = [LineAnnotation(1, LineStatus.COVERED, 1)]
        first = write_source_page(tmp_path, "app.py", ["x"], annotations).read_bytes()
        second = write_source_page(tmp_path, "app.py", ["x"], annotations).read_bytes()
        assert first == second

    def it_propagates_write_failures(tmp_path):
        blocker = tmp_path / "pkg"
        blocker.write_text("not a directory")
        with pytest.raises(OSError):
            write_source_page(tmp_path, "pkg/app.py", ["x"], [])


def describe_status_style():
    def it_maps_pass_and_fail():
        assert status_style(CoverageStatus.PASS) == BG_COVERED
        assert status_style(CoverageStatus.FAIL) == BG_UNCOVERED

    def it_accepts_status_values():
        assert status_style("pass") == BG_COVERED

    def it_rejects_unknown_status():
        with pytest.raises(ValueError):
            status_style("yellow")


def describe_summary_aggregator():
    def _aggregator(tmp_path, **overrides) -> SummaryAggregator:
        return SummaryAggregator(ReportConfig(output_dir=str(tmp_path), **overrides))

    def it_keeps_rows_in_insertion_order(tmp_path):
        agg = _aggregator(tmp_path)
        agg.add_file("z.py", FileSummary(1, 1, 1.0))
        agg.add_file("a.py", FileSummary(1, 0, 0.0))
        assert [r.name for r in agg.rows] == ["z.py", "a.py"]

    def it_derives_status_from_threshold_when_not_given(tmp_path):
        agg = _aggregator(tmp_path, threshold=0.5)
        agg.add_file("a.py", FileSummary(10, 5, 0.5))
        agg.add_file("b.py", FileSummary(10, 4, 0.4))
        assert [r.status for r in agg.rows] == [CoverageStatus.PASS, CoverageStatus.FAIL]

    def it_computes_grand_totals(tmp_path):
        agg = _aggregator(tmp_path)
        agg.add_file("a.py", FileSummary(10, 10, 1.0))
        agg.add_file("b.py", FileSummary(10, 0, 0.0))
        assert agg.totals() == FileSummary(20, 10, 0.5)

    def it_uses_empty_percentage_for_zero_totals(tmp_path):
        agg = _aggregator(tmp_path)
        assert agg.totals() == FileSummary(0, 0, 1.0)

    def it_renders_pass_at_exact_threshold(tmp_path):
        agg = _aggregator(tmp_path, threshold=0.5)
        agg.add_file("full.py", FileSummary(10, 10, 1.0))
        agg.add_file("empty.py", FileSummary(10, 0, 0.0))
        page = agg.render(0.5, FIXED_TIME)

        assert "<tr><th>Lines</th><td>20</td></tr>" in page
        assert "<tr><th>Covered Lines</th><td>10</td></tr>" in page
        assert "<tr><th>Threshold</th><td>50.00%</td></tr>" in page
        assert f'<tr><th>Percentage</th><td style="{BG_COVERED}">50.00%</td></tr>' in page

    def it_renders_fail_below_threshold(tmp_path):
        agg = _aggregator(tmp_path)
        agg.add_file("a.py", FileSummary(10, 4, 0.4))
        page = agg.render(0.5, FIXED_TIME)
        assert f'<tr><th>Percentage</th><td style="{BG_UNCOVERED}">40.00%</td></tr>' in page

    def it_links_each_file_relative_to_index(tmp_path):
        agg = _aggregator(tmp_path)
        agg.add_file("../src/a<b>.py", FileSummary(2, 1, 0.5))
        page = agg.render(0.9, FIXED_TIME)
        assert '<td><a href="src/a%3Cb%3E.py.html">../src/a&lt;b&gt;.py</a></td>' in page

    def it_includes_generation_time(tmp_path):
        page = _aggregator(tmp_path).render(0.9, FIXED_TIME)
        assert "<tr><th>Generated on</th><td>2024-05-01T12:30:00+00:00</td></tr>" in page

    def it_formats_with_configured_rounding(tmp_path):
        agg = _aggregator(tmp_path, rounding="truncate", percent_decimals=1)
        agg.add_file("a.py", FileSummary(3, 2, 2 / 3))
        page = agg.render(0.9, FIXED_TIME)
        assert "66.6%" in page
        assert "66.7%" not in page

    def it_flushes_index_and_resets_rows(tmp_path):
        agg = _aggregator(tmp_path / "report")
        agg.add_file("a.py", FileSummary(1, 1, 1.0))
        target = agg.flush(0.9, FIXED_TIME)

        assert target == tmp_path / "report" / "index.html"
        assert 'href="a.py.html"' in target.read_text()
        assert agg.rows == []


def describe_html_report():
    def it_writes_pages_and_index_through_renderer_calls(tmp_path):
        config = ReportConfig(output_dir=str(tmp_path), threshold=0.5)
        report = HtmlReport(config, generated_at=FIXED_TIME)
        hits = Hits()
        hits.record(1, 2, TestMethod("Foo", "Bar", 2))
        instructions = [Instruction(1, 1, 2), Instruction(2, 3, 3)]

        report.start()
        report.write_file_summary("app.py", FileSummary(3, 2, 2 / 3), CoverageStatus.PASS)
        report.write_detailed("app.py", ["a", "b", "c"], instructions, hits)
        index = report.finish(ReportOutcome(3, 2, 2 / 3, 0.5, CoverageStatus.PASS))

        page = (tmp_path / "app.py.html").read_text()
        divs = _line_divs(page)
        assert BG_COVERED in divs[0] and BG_COVERED in divs[1]
        assert BG_UNCOVERED in divs[2]
        assert report.pages == [(tmp_path / "app.py.html").resolve()]
        assert index == tmp_path / "index.html"
        assert "66.67%" in index.read_text()
