"""
Discovery and batch loading of rule files.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from ..domain.exceptions import RuleParseError
from ..domain.models import Rule
from .parser import RuleParser

IGNORED_RULE_FILES = {"README.md"}


def list_rule_files(rules_dir: Path) -> List[Path]:
    """
    List rule files in a directory.

    Files starting with an underscore (sections, templates) and README.md
    are not rules.

    Returns:
        List[Path]: Rule files sorted by name
    """
    if not rules_dir.is_dir():
        return []
    return sorted(
        path for path in rules_dir.glob("*.md")
        if path.is_file()
        and not path.name.startswith("_")
        and path.name not in IGNORED_RULE_FILES
    )


def load_rule_set(
    rules_dir: Path,
    parser: Optional[RuleParser] = None,
) -> Tuple[List[Rule], List[RuleParseError]]:
    """
    Parse every rule file in a directory.

    A malformed file is recorded and skipped; it never stops the batch.

    Returns:
        Tuple of the parsed rules and the per-file parse errors
    """
    parser = parser or RuleParser()
    rules: List[Rule] = []
    errors: List[RuleParseError] = []

    for path in list_rule_files(rules_dir):
        try:
            rules.append(parser.parse_file(path))
        except RuleParseError as e:
            errors.append(e)

    return rules, errors
