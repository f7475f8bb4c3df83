"""
Human-readable validation reports.

Each function prints per-item blocks followed by a pass/fail summary line
and returns True when there was nothing to report.
"""

from typing import Sequence

from ..domain.models import (
    InternalLinkReport,
    LinkCheckResult,
    SQLValidationReport,
    StructuralViolation,
)
from ..protocols import ProgressReporter

URL_WIDTH = 56
SOURCE_WIDTH = 12


def truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[:width - 3] + "..."


def truncate_left(text: str, width: int) -> str:
    return text if len(text) <= width else "..." + text[-(width - 3):]


def report_structure(
    reporter: ProgressReporter,
    violations: Sequence[StructuralViolation],
    rule_count: int,
) -> bool:
    if not violations:
        reporter.success(f"✓ All {rule_count} rule files are valid")
        return True

    reporter.error("✗ Validation failed:")
    for violation in violations:
        title = f" ({violation.rule_title})" if violation.rule_title else ""
        reporter.error(f"  {violation.file}{title}")
        reporter.error(f"    {violation.reason}")
    files = len({violation.file for violation in violations})
    reporter.error(f"{len(violations)} problem(s) in {files} file(s)")
    return False


def report_sql(reporter: ProgressReporter, report: SQLValidationReport) -> bool:
    if report.skipped:
        return True
    if report.ok:
        reporter.success(f"✓ All {report.checked} SQL examples are valid")
        return True

    reporter.error("✗ SQL validation failed:")
    for error in report.errors:
        reporter.error(f"  {error.file} ({error.rule_title})")
        reporter.error(f"    Example: {error.example_label or '(unlabeled)'}")
        reporter.error(f"    SQL: {error.sql}")
        reporter.error(f"    Error [{error.category}]: {error.error}")
    reporter.error(f"{len(report.errors)} of {report.checked} SQL examples failed")
    return False


def report_internal_links(reporter: ProgressReporter, report: InternalLinkReport) -> bool:
    for warning in report.warnings:
        reporter.warning(f"  {warning.file}: {warning.link} ({warning.message})")

    if report.ok:
        reporter.success(f"✓ All internal links are valid ({report.files_checked} files)")
        return True

    reporter.error("✗ Link checking failed:")
    for error in report.errors:
        reporter.error(f"  {error.file}")
        reporter.error(f"    Link: {error.link}")
        reporter.error(f"    {error.message}")
    reporter.error(f"{len(report.errors)} broken internal link(s)")
    return False


def _status_text(result: LinkCheckResult) -> str:
    if result.success:
        return f"{result.status_code} ✓"
    if result.status_code:
        return f"{result.status_code} ✗"
    return "ERR ✗"


def report_external_links(reporter: ProgressReporter, results: Sequence[LinkCheckResult]) -> bool:
    """
    Print the summary table (results must already be sorted) and the failure details.
    """
    rows = [
        [truncate(result.url, URL_WIDTH), _status_text(result), truncate_left(result.source.file, SOURCE_WIDTH)]
        for result in results
    ]
    reporter.table("External Links Check Summary", ["URL", "Status", "Source"], rows)

    failures = [result for result in results if not result.success]
    passed = len(results) - len(failures)
    reporter.info(f"Summary: {len(results)} links checked, {passed} passed, {len(failures)} failed")

    if not failures:
        reporter.success(f"✓ All {len(results)} external links are valid")
        return True

    reporter.error("✗ External link checking failed:")
    for failure in failures:
        reporter.error(f"  {failure.source.file} [{failure.source.skill}]")
        reporter.error(f"    Link: {failure.url}")
        if failure.status_code:
            reporter.error(f"    Status: {failure.status_code}")
        if failure.error:
            reporter.error(f"    Error: {failure.error}")
        reporter.error(f"    (Verified with {failure.retries_used} retries)")
    return False
