"""
SQL validation of rule examples.

Each SQL example is screened against a deny-list of dangerous constructs and
only then handed to the sandboxed engine. A deny-list hit is never executed.
"""

import re
from typing import Iterable, List, Optional, Tuple

from ..domain.exceptions import EngineUnavailableError
from ..domain.models import Rule, SQLValidationError, SQLValidationReport
from ..protocols import ProgressReporter, SQLEngine
from ..ui import NullProgressReporter

SECURITY = "security"
ENGINE = "engine"


def _call(name: str) -> re.Pattern:
    return re.compile(rf"\b{name}\s*\(", re.IGNORECASE)


DANGEROUS_PATTERNS: List[Tuple[re.Pattern, str]] = [
    # File system access
    (_call("file"), "file() table function (file system access)"),
    (_call("fileCluster"), "fileCluster() table function (file system access)"),
    # Network and cloud storage access
    (_call("url"), "url() table function (HTTP access)"),
    (_call("urlCluster"), "urlCluster() table function (HTTP access)"),
    (_call("s3"), "s3() table function (cloud storage access)"),
    (_call("s3Cluster"), "s3Cluster() table function (cloud storage access)"),
    (_call("gcs"), "gcs() table function (cloud storage access)"),
    (_call("azureBlobStorage"), "azureBlobStorage() table function (cloud storage access)"),
    (_call("hdfs"), "hdfs() table function (HDFS access)"),
    (_call("hdfsCluster"), "hdfsCluster() table function (HDFS access)"),
    # Database connections
    (_call("mysql"), "mysql() table function (database access)"),
    (_call("postgresql"), "postgresql() table function (database access)"),
    (_call("mongodb"), "mongodb() table function (database access)"),
    (_call("sqlite"), "sqlite() table function (database access)"),
    (_call("odbc"), "odbc() table function (ODBC access)"),
    (_call("jdbc"), "jdbc() table function (JDBC access)"),
    # Command execution and remote access
    (_call("executable"), "executable() table function (command execution)"),
    (_call("remote"), "remote() table function (remote server access)"),
    (_call("remoteSecure"), "remoteSecure() table function (remote server access)"),
    (_call("cluster"), "cluster() table function (cluster access)"),
    (_call("clusterAllReplicas"), "clusterAllReplicas() table function (cluster access)"),
    (_call("input"), "input() table function (stdin access)"),
    # Timing and error-based exfiltration
    (_call("sleep"), "sleep() function (timing attack vector)"),
    (_call("sleepEachRow"), "sleepEachRow() function (timing attack vector)"),
    (_call("throwIf"), "throwIf() function (error-based exfiltration)"),
]
# system.* tables are allowed: examples use them and clickhouse-local holds no data


QUOTES = ("'", '"', "`")


def strip_comments(sql: str) -> str:
    """
    Replace comments outside quoted spans with a space.

    Quoted spans are copied unchanged, including backslash and doubled-quote
    escapes, so a comment marker inside a literal never starts a comment.
    """
    out: List[str] = []
    i, n = 0, len(sql)
    while i < n:
        ch = sql[i]
        if ch in QUOTES:
            end = i + 1
            while end < n:
                if sql[end] == "\\":
                    end += 2
                elif sql[end] == ch:
                    if end + 1 < n and sql[end + 1] == ch:
                        end += 2
                    else:
                        end += 1
                        break
                else:
                    end += 1
            out.append(sql[i:end])
            i = end
        elif sql.startswith("--", i) or ch == "#":
            newline = sql.find("\n", i)
            i = n if newline == -1 else newline
            out.append(" ")
        elif sql.startswith("/*", i):
            close = sql.find("*/", i + 2)
            i = n if close == -1 else close + 2
            out.append(" ")
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def normalize_sql(sql: str) -> str:
    """
    Strip comments and identifier quoting so a call cannot hide behind them.

    `file/**/(`, `file--x\\n(` and `` `file`( `` all normalize to a plain call.
    """
    text = re.sub(r"[`\"]", "", strip_comments(sql))
    return re.sub(r"\s+", " ", text)


def find_dangerous_pattern(sql: str) -> Optional[str]:
    """
    Check a snippet against the deny-list.

    Both the comment-stripped text and the raw text are scanned.

    Returns:
        A "Security: ..." message for the first match, or None
    """
    candidates = (normalize_sql(sql), re.sub(r"\s+", " ", re.sub(r"[`\"]", "", sql)))
    for pattern, description in DANGEROUS_PATTERNS:
        if any(pattern.search(text) for text in candidates):
            return f"Security: SQL contains dangerous pattern: {description}"
    return None


class SQLValidator:
    """
    Validates SQL examples of parsed rules against a sandboxed engine.
    """

    def __init__(self, engine: SQLEngine, progress: ProgressReporter | None = None):
        self.engine = engine
        self.progress = progress or NullProgressReporter()

    def check_snippet(self, sql: str) -> Optional[Tuple[str, str]]:
        """
        Validate one snippet.

        Returns:
            (category, message) on failure, None when the snippet is valid
        """
        danger = find_dangerous_pattern(sql)
        if danger:
            return SECURITY, danger

        error = self.engine.validate(sql)
        if error:
            return ENGINE, error
        return None

    def validate(self, rules: Iterable[Rule]) -> SQLValidationReport:
        """
        Validate every SQL example in the rule set.

        Snippets run one at a time. When the engine cannot be acquired the
        report is marked as skipped and carries no errors.
        """
        try:
            self.engine.ensure_available()
        except EngineUnavailableError as e:
            self.progress.warning(f"Skipping SQL validation (ClickHouse binary not available): {e}")
            return SQLValidationReport(skipped=True)

        report = SQLValidationReport()
        for rule in rules:
            for example in rule.examples:
                if not example.is_sql or not example.has_code:
                    continue

                report.checked += 1
                failure = self.check_snippet(example.code)
                if failure:
                    category, message = failure
                    report.errors.append(SQLValidationError(
                        file=rule.filename,
                        rule_title=rule.title,
                        example_label=example.label,
                        error=message,
                        sql=SQLValidationError.preview(example.code),
                        category=category,
                    ))
        return report
