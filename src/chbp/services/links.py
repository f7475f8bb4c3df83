"""
Internal link checking for rule files.

Relative links to other files must name a file in the rules directory.
Anchor links are checked on a best-effort basis and only produce warnings.
"""

import re
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Tuple

from ..domain.models import InternalLinkReport, LinkError

LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
NUMBERED_ANCHOR_PATTERN = re.compile(r"^#\d+-")
ANCHOR_WORD_PATTERN = re.compile(r"^#(\w+)")


def extract_markdown_links(content: str) -> List[str]:
    """Return the targets of all [text](target) links, in order."""
    return [match.group(2).strip() for match in LINK_PATTERN.finditer(content)]


def is_internal_link(link: str) -> bool:
    return not link.startswith(("http://", "https://"))


class InternalLinkChecker:
    """
    Resolves relative and anchor links against a known set of rule files.
    """

    def __init__(self, filenames: Iterable[str]):
        self.filenames = set(filenames)

    def check(self, filename: str, content: str) -> Tuple[List[LinkError], List[LinkError]]:
        """
        Check the internal links of one file.

        Returns:
            Tuple of (errors, warnings)
        """
        errors: List[LinkError] = []
        warnings: List[LinkError] = []

        for link in extract_markdown_links(content):
            if not is_internal_link(link) or link.startswith("mailto:"):
                continue

            if link.startswith("#"):
                if not self._anchor_plausible(link):
                    warnings.append(LinkError(
                        file=filename,
                        link=link,
                        message="Anchor does not match a numbered section or a rule file prefix",
                    ))
                continue

            target = PurePosixPath(link.split("#", 1)[0].split("?", 1)[0])
            if not target.suffix:
                continue
            if target.name not in self.filenames:
                errors.append(LinkError(
                    file=filename,
                    link=link,
                    message=f"Referenced file does not exist: {target.name}",
                ))

        return errors, warnings

    def _anchor_plausible(self, link: str) -> bool:
        """Numbered anchors (#1-schema-design, #21-use-prewhere) and rule-prefix anchors pass."""
        if NUMBERED_ANCHOR_PATTERN.match(link):
            return True
        match = ANCHOR_WORD_PATTERN.match(link)
        if not match:
            return False
        prefix = match.group(1)
        return any(name.startswith(prefix) for name in self.filenames)

    @classmethod
    def check_directory(cls, rules_dir: Path) -> InternalLinkReport:
        """
        Check every Markdown file in the rules directory.
        """
        paths = sorted(path for path in rules_dir.glob("*.md") if path.is_file())
        checker = cls(path.name for path in rules_dir.iterdir() if path.is_file())

        report = InternalLinkReport(files_checked=len(paths))
        for path in paths:
            errors, warnings = checker.check(path.name, path.read_text(encoding="utf-8"))
            report.errors.extend(errors)
            report.warnings.extend(warnings)
        return report
