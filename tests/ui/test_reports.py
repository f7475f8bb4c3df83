"""Tests for report rendering."""

from chbp.domain.models import (
    InternalLinkReport,
    LinkCheckResult,
    LinkError,
    LinkSource,
    SQLValidationError,
    SQLValidationReport,
    StructuralViolation,
)
from chbp.ui.reports import (
    report_external_links,
    report_internal_links,
    report_sql,
    report_structure,
    truncate,
    truncate_left,
)


class RecordingReporter:
    """Collects every reported line by level."""

    def __init__(self):
        self.lines = []
        self.tables = []

    def info(self, message):
        self.lines.append(("info", message))

    def warning(self, message):
        self.lines.append(("warning", message))

    def success(self, message):
        self.lines.append(("success", message))

    def error(self, message):
        self.lines.append(("error", message))

    def table(self, title, columns, rows):
        self.tables.append((title, columns, rows))

    def messages(self, level):
        return [message for kind, message in self.lines if kind == level]


class TestTruncation:
    def test_short_text_unchanged(self):
        assert truncate("https://a.io", 56) == "https://a.io"
        assert truncate_left("a.md", 12) == "a.md"

    def test_truncate_keeps_prefix(self):
        url = "https://clickhouse.com/docs/" + "x" * 60
        assert truncate(url, 56) == url[:53] + "..."
        assert len(truncate(url, 56)) == 56

    def test_truncate_left_keeps_suffix(self):
        assert truncate_left("rules/schema-order-by.md", 12) == "...der-by.md"


class TestReports:
    """Tests for the report functions."""

    def test_structure_pass(self):
        reporter = RecordingReporter()
        assert report_structure(reporter, [], 3)
        assert reporter.messages("success") == ["✓ All 3 rule files are valid"]

    def test_structure_fail(self):
        reporter = RecordingReporter()
        violations = [
            StructuralViolation(file="a.md", rule_title="A", reason="Missing explanation"),
            StructuralViolation(file="a.md", rule_title="A", reason="Missing title"),
        ]
        assert not report_structure(reporter, violations, 1)
        assert reporter.messages("error")[-1] == "2 problem(s) in 1 file(s)"

    def test_sql_skipped_passes(self):
        reporter = RecordingReporter()
        assert report_sql(reporter, SQLValidationReport(skipped=True))
        assert reporter.lines == []

    def test_sql_fail(self):
        reporter = RecordingReporter()
        report = SQLValidationReport(checked=2, errors=[SQLValidationError(
            file="a.md", rule_title="A", example_label="Correct",
            error="Syntax error", sql="SELEC 1", category="engine",
        )])
        assert not report_sql(reporter, report)
        assert "    Error [engine]: Syntax error" in reporter.messages("error")

    def test_internal_warnings_do_not_fail(self):
        reporter = RecordingReporter()
        report = InternalLinkReport(
            files_checked=1,
            warnings=[LinkError(file="a.md", link="#nowhere", message="Unknown anchor")],
        )
        assert report_internal_links(reporter, report)
        assert reporter.messages("warning") == ["  a.md: #nowhere (Unknown anchor)"]

    def test_external_table_and_retries(self):
        reporter = RecordingReporter()
        source = LinkSource(skill="s", file="rules/schema-order-by.md")
        results = [
            LinkCheckResult(url="https://gone.io", success=False, status_code=404,
                            error="404 Not Found", source=source, retries_used=2),
            LinkCheckResult(url="https://ok.io", success=True, status_code=200, source=source),
        ]

        assert not report_external_links(reporter, results)

        title, columns, rows = reporter.tables[0]
        assert columns == ["URL", "Status", "Source"]
        assert rows == [
            ["https://gone.io", "404 ✗", "...der-by.md"],
            ["https://ok.io", "200 ✓", "...der-by.md"],
        ]
        assert "Summary: 2 links checked, 1 passed, 1 failed" in reporter.messages("info")
        assert "    (Verified with 2 retries)" in reporter.messages("error")
