"""Shared pytest fixtures for all tests."""

import shutil
import textwrap
from pathlib import Path

import pytest

from chbp.services.parser import RuleParser
from chbp.services.structure import StructuralValidator


@pytest.fixture
def parser():
    """Create a RuleParser instance."""
    return RuleParser()


@pytest.fixture
def validator():
    """Create a StructuralValidator instance."""
    return StructuralValidator()


@pytest.fixture
def data_dir():
    """Get the path to the test data directory."""
    return Path(__file__).parent / "data"


@pytest.fixture
def skill_dir(data_dir, tmp_path):
    """A writable copy of the sample skill."""
    target = tmp_path / "skill"
    shutil.copytree(data_dir / "skill", target)
    return target


@pytest.fixture
def rules_dir(skill_dir):
    return skill_dir / "rules"


@pytest.fixture
def write_rule(tmp_path):
    """Write a rule file into a temporary rules directory."""
    directory = tmp_path / "rules"
    directory.mkdir(exist_ok=True)

    def _write(filename: str, content: str) -> Path:
        path = directory / filename
        path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def complete_rule_text():
    """Rule file text that satisfies every structural check."""
    return textwrap.dedent("""
        ---
        title: Use LowCardinality for Repeated Strings
        impact: HIGH
        impactDescription: 2-5x smaller columns
        tags: types, strings
        ---

        ## Use LowCardinality for Repeated Strings

        Dictionary encoding shrinks columns with few distinct values.

        **Incorrect:**

        ```sql
        SELECT toString(number % 3) AS status FROM numbers(10)
        ```

        **Correct:**

        ```sql
        SELECT toLowCardinality(toString(number % 3)) AS status FROM numbers(10)
        ```

        Reference: [LowCardinality](https://clickhouse.com/docs/en/sql-reference/data-types/lowcardinality)
    """).lstrip()
