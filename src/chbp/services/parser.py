"""
Rule file parser.

Turns the raw text of one rule file into a Rule: YAML frontmatter for the
metadata, then a walk over the Markdown body that picks out the title, the
explanation, the labeled code examples and the reference link.
"""

import re
from pathlib import Path
from typing import List, Optional

import yaml

from ..domain.exceptions import RuleParseError
from ..domain.models import Example, Rule

FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*$\n?", re.DOTALL | re.MULTILINE)
FENCE_PATTERN = re.compile(r"^\s*(`{3,}|~{3,})\s*([\w+#.-]*)")
TITLE_PATTERN = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
HEADING_PATTERN = re.compile(r"^#{2,6}\s+(.+?)\s*#*\s*$")
BOLD_LABEL_PATTERN = re.compile(r"^\*\*([^*]+?)\*\*\s*:?\s*$")
REFERENCE_PATTERN = re.compile(r"^references?\s*:\s*(.*)$", re.IGNORECASE)
MARKDOWN_URL_PATTERN = re.compile(r"\[[^\]]*\]\((https?://[^)\s]+)\)")
BARE_URL_PATTERN = re.compile(r"https?://[^\s)>\]]+")


class RuleParser:
    """
    Parses rule files into Rule records.

    Parsing is pure: nothing is cached between calls and the input is never
    modified.
    """

    def parse_file(self, path: Path) -> Rule:
        """
        Read and parse one rule file.

        Raises:
            RuleParseError: If the file cannot be read or is malformed
        """
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RuleParseError(path.name, f"Cannot read file: {e}") from e
        return self.parse(text, path.name)

    def parse(self, text: str, filename: str) -> Rule:
        """
        Parse the raw text of a rule file.

        Args:
            text: File content
            filename: File name, used for the rule id and in error messages

        Returns:
            Rule: The parsed rule

        Raises:
            RuleParseError: If the frontmatter is malformed or a code fence is never closed
        """
        frontmatter, body = self._split_frontmatter(text, filename)
        frontmatter_title = str(frontmatter.get("title") or "").strip()

        rule_id = filename[:-3] if filename.endswith(".md") else filename
        title_from_body: Optional[str] = None
        explanation: List[str] = []
        notes: List[str] = []
        examples: List[Example] = []
        reference: Optional[str] = None

        label = ""
        seen_label = False
        fence: Optional[str] = None
        language = ""
        description = ""
        code_lines: List[str] = []
        lead: List[str] = []
        trailing: List[str] = []
        last_example: Optional[int] = None

        def flush_trailing() -> None:
            if last_example is not None and trailing:
                examples[last_example] = examples[last_example].model_copy(
                    update={"trailing_text": "\n".join(trailing).strip()}
                )
            trailing.clear()

        def flush_lead() -> None:
            # Prose under a label that never got a code block
            prose = "\n".join(lead).strip()
            if prose:
                notes.append(f"**{label}:**\n\n{prose}" if label else prose)
            lead.clear()

        for line in body.splitlines():
            if fence is not None:
                if line.strip().startswith(fence) and not line.strip().strip(fence[0]):
                    examples.append(Example(
                        label=label,
                        description=description,
                        language=language.lower(),
                        code="\n".join(code_lines),
                    ))
                    last_example = len(examples) - 1
                    fence = None
                    seen_label = True
                else:
                    code_lines.append(line)
                continue

            fence_match = FENCE_PATTERN.match(line)
            if fence_match:
                flush_trailing()
                description = "\n".join(lead).strip()
                lead.clear()
                fence = fence_match.group(1)
                language = fence_match.group(2)
                code_lines = []
                continue

            # The first heading before any prose or label is the title; below
            # a frontmatter title only a level 1 or 2 heading qualifies
            title_match = TITLE_PATTERN.match(line)
            if (
                title_match
                and title_from_body is None
                and not seen_label
                and not any(text.strip() for text in explanation)
                and (len(title_match.group(1)) <= 2 or not frontmatter_title)
            ):
                title_from_body = title_match.group(2).strip()
                continue

            label_match = HEADING_PATTERN.match(line) or BOLD_LABEL_PATTERN.match(line)
            if label_match:
                flush_trailing()
                flush_lead()
                label = label_match.group(1).strip().rstrip(":").strip()
                seen_label = True
                last_example = None
                continue

            reference_match = REFERENCE_PATTERN.match(line.strip())
            if reference_match:
                found = self._first_url(reference_match.group(1))
                if found and reference is None:
                    reference = found
                continue

            if not seen_label:
                explanation.append(line)
            elif last_example is not None:
                trailing.append(line)
            else:
                lead.append(line)

        if fence is not None:
            raise RuleParseError(filename, "Unterminated code block")
        flush_trailing()
        flush_lead()

        title = frontmatter_title or (title_from_body or "").strip()
        impact_description = frontmatter.get("impactDescription", frontmatter.get("impact_description"))
        body_text = "\n\n".join(part for part in ["\n".join(explanation).strip(), *notes] if part)

        return Rule(
            id=rule_id,
            filename=filename,
            title=title,
            impact=str(frontmatter.get("impact") or "").strip().upper(),
            impact_description=str(impact_description).strip() if impact_description else None,
            tags=self._parse_tags(frontmatter.get("tags")),
            explanation=body_text,
            examples=examples,
            reference=reference,
        )

    def _split_frontmatter(self, text: str, filename: str) -> tuple[dict, str]:
        """Separate the leading YAML block from the Markdown body."""
        text = text.replace("\r\n", "\n").lstrip("\ufeff")
        if not text.startswith("---"):
            return {}, text

        match = FRONTMATTER_PATTERN.match(text)
        if not match:
            raise RuleParseError(filename, "Frontmatter block is not terminated with '---'")

        try:
            data = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise RuleParseError(filename, f"Invalid frontmatter: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise RuleParseError(
                filename,
                f"Frontmatter must be key: value pairs, got {type(data).__name__}",
            )
        return data, text[match.end():]

    @staticmethod
    def _parse_tags(raw) -> List[str]:
        if raw is None:
            return []
        items = raw if isinstance(raw, list) else str(raw).split(",")
        tags: List[str] = []
        for item in items:
            tag = str(item).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    @staticmethod
    def _first_url(text: str) -> Optional[str]:
        match = MARKDOWN_URL_PATTERN.search(text)
        if match:
            return match.group(1)
        match = BARE_URL_PATTERN.search(text)
        return match.group(0) if match else None
