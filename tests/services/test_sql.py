"""Tests for the SQL deny-list and SQLValidator."""

from unittest.mock import Mock

import pytest

from chbp.domain.exceptions import EngineUnavailableError
from chbp.domain.models import Example, Rule
from chbp.services.sql import (
    SQLValidator,
    find_dangerous_pattern,
    normalize_sql,
    strip_comments,
)


def make_rule(*examples: Example, filename: str = "query-x.md") -> Rule:
    return Rule(
        id=filename[:-3],
        filename=filename,
        title="Some rule",
        impact="HIGH",
        explanation="Why.",
        examples=list(examples),
    )


@pytest.fixture
def engine():
    """Fake engine that accepts every snippet."""
    mock = Mock()
    mock.ensure_available.return_value = None
    mock.validate.return_value = None
    return mock


class TestDenyList:
    """Tests for find_dangerous_pattern."""

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM file('/etc/passwd', 'CSV')",
        "SELECT * FROM FILE('/etc/passwd')",
        "SELECT * FROM file  \n\t ('/etc/passwd')",
        "SELECT * FROM file/* hidden */('/etc/passwd')",
        "SELECT * FROM file-- trailing comment\n('/etc/passwd')",
        "SELECT * FROM `file`('/etc/passwd')",
        "SELECT * FROM url('http://evil', CSV)",
        "SELECT * FROM s3('https://bucket/x')",
        "SELECT * FROM mysql('host', 'db', 't', 'u', 'p')",
        "SELECT * FROM postgresql('host', 'db', 't', 'u', 'p')",
        "SELECT * FROM executable('script.sh', 'TSV', 'x String')",
        "SELECT * FROM remote('host', system.one)",
        "SELECT * FROM cluster('c', system.one)",
        "SELECT * FROM input('x String')",
        "SELECT sleep(3)",
        "SELECT throwIf(number = 1) FROM numbers(2)",
        "SELECT '--', file('/etc/passwd')",
        "SELECT '--', file/**/('/etc/passwd', 'CSV')",
        "SELECT '#', file/**/('/etc/passwd', 'CSV')",
        "SELECT '/*', file/**/('/etc/passwd', 'CSV')",
        "SELECT 'it''s -- here', file/**/('x')",
        "SELECT 'a\\' -- b', file/**/('x')",
    ])
    def test_dangerous_sql_is_flagged(self, sql):
        result = find_dangerous_pattern(sql)
        assert result is not None
        assert result.startswith("Security: SQL contains dangerous pattern:")

    @pytest.mark.parametrize("sql", [
        "SELECT count() FROM numbers(10)",
        "SELECT * FROM system.tables",
        "SELECT profile, urlPath FROM t",
        "SELECT filename FROM t",
        "ALTER TABLE foo UPDATE x = 1 WHERE 1",
    ])
    def test_safe_sql_passes(self, sql):
        assert find_dangerous_pattern(sql) is None

    def test_description_names_the_construct(self):
        assert "file() table function" in find_dangerous_pattern("SELECT * FROM file('x')")

    def test_normalize_strips_comments(self):
        assert normalize_sql("a /* x\ny */ b -- c\n d") == "a b d"

    def test_comment_markers_inside_literals_are_kept(self):
        assert strip_comments("SELECT '--', '#', '/*' /* c */ x -- d") == "SELECT '--', '#', '/*'   x  "


class TestSQLValidator:
    """Tests for SQLValidator with a fake engine."""

    def test_security_violation_never_reaches_engine(self, engine):
        rule = make_rule(Example(label="Bad", language="sql", code="SELECT * FROM file('/etc/passwd', 'CSV')"))

        report = SQLValidator(engine).validate([rule])

        engine.validate.assert_not_called()
        assert len(report.errors) == 1
        assert report.errors[0].category == "security"
        assert report.errors[0].example_label == "Bad"

    def test_engine_error_reported_verbatim(self, engine):
        """DDL blocked by the sandbox is an engine error, not a security one."""
        message = "Code: 164. DB::Exception: Cannot execute query in readonly mode. (READONLY)"
        engine.validate.return_value = message
        rule = make_rule(Example(label="Incorrect", language="sql", code="ALTER TABLE foo UPDATE x=1 WHERE 1"))

        report = SQLValidator(engine).validate([rule])

        engine.validate.assert_called_once_with("ALTER TABLE foo UPDATE x=1 WHERE 1")
        assert report.errors[0].category == "engine"
        assert report.errors[0].error == message
        assert report.errors[0].rule_title == "Some rule"
        assert report.errors[0].file == "query-x.md"

    def test_only_sql_examples_are_checked(self, engine):
        rule = make_rule(
            Example(label="Bad", language="", code="SELECT 1"),
            Example(label="Good", language="SQL", code="SELECT 2"),
            Example(label="Usage", language="python", code="client.query('x')"),
            Example(label="Empty", language="sql", code="  "),
        )

        report = SQLValidator(engine).validate([rule])

        assert report.checked == 2
        assert [call.args[0] for call in engine.validate.call_args_list] == ["SELECT 1", "SELECT 2"]
        assert report.ok

    def test_reports_every_failure(self, engine):
        engine.validate.side_effect = ["Syntax error: 1", None, "Syntax error: 3"]
        rules = [
            make_rule(Example(label="Bad", code="SELEC 1"), filename="a.md"),
            make_rule(Example(label="Good", code="SELECT 2"), filename="b.md"),
            make_rule(Example(label="Bad", code="SELEC 3"), filename="c.md"),
        ]

        report = SQLValidator(engine).validate(rules)

        assert [error.file for error in report.errors] == ["a.md", "c.md"]
        assert report.checked == 3

    def test_engine_unavailable_degrades_to_skip(self, engine):
        engine.ensure_available.side_effect = EngineUnavailableError("Unsupported platform 'Windows'")
        progress = Mock()
        rule = make_rule(Example(label="Bad", code="SELEC 1"))

        report = SQLValidator(engine, progress=progress).validate([rule])

        assert report.skipped
        assert report.ok
        engine.validate.assert_not_called()
        progress.warning.assert_called_once()

    def test_sql_preview_is_truncated(self, engine):
        engine.validate.return_value = "Exception"
        long_sql = "SELECT " + ", ".join(str(n) for n in range(100))
        report = SQLValidator(engine).validate([make_rule(Example(label="Bad", code=long_sql))])

        assert report.errors[0].sql == long_sql[:100] + "..."
