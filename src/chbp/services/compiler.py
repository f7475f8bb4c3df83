"""
Compilation of the rule set into a single reference document.

Numbering and ordering depend only on section ranks and rule filenames, so
unchanged inputs always render to the same bytes.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..domain.exceptions import BuildError, OrphanRuleError
from ..domain.models import (
    CompiledDocument,
    CompiledRule,
    CompiledSection,
    Rule,
    Section,
    SkillMetadata,
)
from ..protocols import ProgressReporter
from ..ui import NullProgressReporter
from .metadata import MetadataStore, bump_version, load_sections
from .parser import RuleParser
from .rules import load_rule_set

AGENT_NOTE = (
    "> **Note:**  \n"
    "> This document is mainly for agents and LLMs to follow when maintaining,  \n"
    "> generating, or refactoring ClickHouse schemas and queries. Humans  \n"
    "> may also find it useful, but guidance here is optimized for automation  \n"
    "> and consistency by AI-assisted workflows."
)


def slugify(heading: str) -> str:
    """GitHub-style anchor for a heading: '1.1 Use PREWHERE' -> '11-use-prewhere'."""
    text = re.sub(r"[^\w\- ]", "", heading.strip().lower())
    return text.replace(" ", "-")


def section_heading(section: Section) -> str:
    return f"{section.rank}. {section.name}"


def rule_heading(compiled: CompiledRule) -> str:
    return f"{compiled.number} {compiled.rule.title}"


class RuleCompiler:
    """
    Groups rules into sections, numbers them, and renders the document.
    """

    def __init__(self, sections: Sequence[Section], metadata: SkillMetadata):
        self.sections = sorted(sections, key=lambda section: section.rank)
        self.metadata = metadata

    def section_for(self, filename: str) -> Optional[Section]:
        """Longest declared prefix that owns the filename."""
        owners = [section for section in self.sections if section.owns(filename)]
        return max(owners, key=lambda section: len(section.prefix)) if owners else None

    def compile(self, rules: Sequence[Rule], version: Optional[str] = None) -> CompiledDocument:
        """
        Build the numbered document model.

        Raises:
            OrphanRuleError: If any rule matches no section prefix
        """
        grouped: Dict[str, List[Rule]] = {section.prefix: [] for section in self.sections}
        orphans: List[str] = []

        for rule in rules:
            section = self.section_for(rule.filename)
            if section is None:
                orphans.append(rule.filename)
            else:
                grouped[section.prefix].append(rule)

        if orphans:
            raise OrphanRuleError(sorted(orphans))

        compiled_sections = []
        for section in self.sections:
            ordered = sorted(grouped[section.prefix], key=lambda rule: rule.filename)
            compiled_sections.append(CompiledSection(
                section=section,
                rules=[
                    CompiledRule(number=f"{section.rank}.{index}", rule=rule)
                    for index, rule in enumerate(ordered, start=1)
                ],
            ))

        return CompiledDocument(
            version=version or self.metadata.version,
            metadata=self.metadata,
            sections=compiled_sections,
        )

    def render(self, document: CompiledDocument) -> str:
        """Render the compiled document as Markdown."""
        parts: List[str] = [self._render_header(document), self._render_toc(document)]
        for compiled_section in document.sections:
            parts.append(self._render_section(compiled_section))
        if document.metadata.references:
            parts.append(self._render_references(document.metadata.references))
        return "\n\n---\n\n".join(parts) + "\n"

    def _render_header(self, document: CompiledDocument) -> str:
        metadata = document.metadata
        lines = [f"# {metadata.title}", "", f"**Version {document.version}**  "]
        for value in (metadata.organization, metadata.date):
            if value:
                lines.append(f"{value}  ")
        lines[-1] = lines[-1].rstrip()
        lines.extend(["", AGENT_NOTE])
        if metadata.abstract:
            lines.extend(["", "---", "", "## Abstract", "", metadata.abstract.strip()])
        return "\n".join(lines)

    def _render_toc(self, document: CompiledDocument) -> str:
        lines = ["## Table of Contents", ""]
        for compiled_section in document.sections:
            section = compiled_section.section
            heading = section_heading(section)
            entry = f"{section.rank}. [{section.name}](#{slugify(heading)})"
            if section.impact:
                entry += f" — **{section.impact}**"
            lines.append(entry)
            for compiled in compiled_section.rules:
                lines.append(
                    f"   - {compiled.number} [{compiled.rule.title}](#{slugify(rule_heading(compiled))})"
                )
        return "\n".join(lines)

    def _render_section(self, compiled_section: CompiledSection) -> str:
        section = compiled_section.section
        lines = [f"## {section_heading(section)}", ""]
        if section.impact:
            lines.extend([f"**Impact: {section.impact}**", ""])
        if section.description:
            lines.extend([section.description, ""])
        for compiled in compiled_section.rules:
            lines.append(self._render_rule(compiled))
            lines.append("")
        return "\n".join(lines).rstrip()

    def _render_rule(self, compiled: CompiledRule) -> str:
        rule = compiled.rule
        impact = rule.impact
        if rule.impact_description:
            impact = f"{impact} ({rule.impact_description})"

        lines = [f"### {rule_heading(compiled)}", "", f"**Impact: {impact}**", ""]
        if rule.explanation:
            lines.extend([rule.explanation, ""])
        for example in rule.examples:
            if example.label:
                lines.extend([f"**{example.label}:**", ""])
            if example.description:
                lines.extend([example.description, ""])
            lines.extend([f"```{example.language}", example.code, "```", ""])
            if example.trailing_text:
                lines.extend([example.trailing_text, ""])
        if rule.reference:
            lines.extend([f"Reference: [{rule.reference}]({rule.reference})", ""])
        return "\n".join(lines).rstrip()

    @staticmethod
    def _render_references(references: Sequence[str]) -> str:
        lines = ["## References", ""]
        lines.extend(f"{index}. [{url}]({url})" for index, url in enumerate(references, start=1))
        return "\n".join(lines)


class BuildService:
    """
    Loads rules, sections and metadata, then writes the compiled document.

    In upgrade mode the version is bumped and persisted once the document
    has been written.
    """

    def __init__(
        self,
        rules_dir: Path,
        sections_path: Path,
        metadata_store: MetadataStore,
        output_path: Path,
        parser: Optional[RuleParser] = None,
        progress: ProgressReporter | None = None,
    ):
        self.rules_dir = rules_dir
        self.sections_path = sections_path
        self.metadata_store = metadata_store
        self.output_path = output_path
        self.parser = parser or RuleParser()
        self.progress = progress or NullProgressReporter()

    def build(self, upgrade: bool = False) -> CompiledDocument:
        """
        Compile and write the document.

        Raises:
            BuildError: On parse errors or orphan rules
            SectionsLoadError, MetadataError: On bad section or metadata files
        """
        rules, errors = load_rule_set(self.rules_dir, self.parser)
        if errors:
            details = "\n".join(f"  {error}" for error in errors)
            raise BuildError(f"Cannot build with unparseable rule files:\n{details}")
        self.progress.info(f"Parsed {len(rules)} rules from {self.rules_dir}")

        sections = load_sections(self.sections_path)
        metadata = self.metadata_store.read()
        version = bump_version(metadata.version) if upgrade else metadata.version

        compiler = RuleCompiler(sections, metadata)
        document = compiler.compile(rules, version=version)

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(compiler.render(document), encoding="utf-8", newline="\n")
        self.progress.success(f"✓ Wrote {document.rule_count} rules to {self.output_path}")

        if upgrade:
            persisted = self.metadata_store.bump()
            if persisted != version:
                raise BuildError(
                    f"metadata.json changed during the build: wrote {version} to the document "
                    f"but the stored version is now {persisted}"
                )
            self.progress.success(f"✓ Version bumped {metadata.version} -> {version}")

        return document
