"""
Domain models for chbp.

Contains the core data structures shared by the parser, the validators and
the compiler.
"""

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Rule Domain Models ---

class Impact(str, Enum):
    """Severity levels, ordered from highest to lowest effect."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM_HIGH = "MEDIUM-HIGH"
    MEDIUM = "MEDIUM"
    LOW_MEDIUM = "LOW-MEDIUM"
    LOW = "LOW"

    @classmethod
    def is_valid(cls, value: Optional[str]) -> bool:
        return value in {member.value for member in cls}


class ExampleKind(str, Enum):
    NEGATIVE = "negative"
    POSITIVE = "positive"
    UNCLASSIFIED = "unclassified"


# Synonyms matched as whole words; negative is checked first so that
# "Incorrect" never counts as "correct".
LABEL_SYNONYMS = {
    ExampleKind.NEGATIVE: frozenset({"incorrect", "wrong", "bad"}),
    ExampleKind.POSITIVE: frozenset({"correct", "good", "usage", "example"}),
}


def classify_label(label: str) -> ExampleKind:
    """Classify an example label as a negative case, a positive case, or neither."""
    words = set(re.findall(r"[a-z]+", (label or "").lower()))
    for kind in (ExampleKind.NEGATIVE, ExampleKind.POSITIVE):
        if words & LABEL_SYNONYMS[kind]:
            return kind
    return ExampleKind.UNCLASSIFIED


class Example(BaseModel):
    """
    One labeled code illustration within a rule.
    """
    model_config = ConfigDict(frozen=True)

    label: str = Field("", description="Heading or bold label preceding the code block")
    description: str = Field("", description="Prose between the label and the code block")
    language: str = Field("", description="Declared code-fence language, empty if none")
    code: str = Field("", description="Raw source of the fenced block")
    trailing_text: str = Field("", description="Prose following the block, before the next label")

    @property
    def kind(self) -> ExampleKind:
        return classify_label(self.label)

    @property
    def is_sql(self) -> bool:
        """Examples without a declared language are treated as SQL."""
        return self.language.lower() in ("", "sql")

    @property
    def has_code(self) -> bool:
        return bool(self.code.strip())


class Rule(BaseModel):
    """
    One best-practice entry parsed from a rule file.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Filename without extension, unique within the rule set")
    filename: str
    title: str = ""
    impact: str = ""
    impact_description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    explanation: str = ""
    examples: List[Example] = Field(default_factory=list)
    reference: Optional[str] = None

    def examples_of(self, kind: ExampleKind) -> List[Example]:
        return [example for example in self.examples if example.kind == kind]


class Section(BaseModel):
    """
    A named, ranked grouping of rules sharing a filename prefix.
    """
    model_config = ConfigDict(frozen=True)

    rank: int
    name: str
    prefix: str
    impact: str = ""
    description: str = ""

    def owns(self, filename: str) -> bool:
        return filename.startswith(f"{self.prefix}-")


class SkillMetadata(BaseModel):
    """Contents of the skill's metadata.json."""
    version: str = "0.1.0"
    organization: str = ""
    date: str = ""
    title: str = "ClickHouse Best Practices"
    abstract: str = ""
    references: List[str] = Field(default_factory=list)


# --- Validation Result Models ---

class StructuralViolation(BaseModel):
    file: str
    rule_title: str
    reason: str


class SQLValidationError(BaseModel):
    file: str
    rule_title: str
    example_label: str
    error: str
    sql: str
    category: str = Field(..., description="'security' or 'engine'")

    @staticmethod
    def preview(sql: str, limit: int = 100) -> str:
        return sql[:limit] + ("..." if len(sql) > limit else "")


class SQLValidationReport(BaseModel):
    errors: List[SQLValidationError] = Field(default_factory=list)
    checked: int = 0
    skipped: bool = Field(False, description="True when the engine was unavailable")

    @property
    def ok(self) -> bool:
        return not self.errors


class LinkError(BaseModel):
    file: str
    link: str
    message: str


class InternalLinkReport(BaseModel):
    errors: List[LinkError] = Field(default_factory=list)
    warnings: List[LinkError] = Field(default_factory=list)
    files_checked: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


class LinkSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill: str
    file: str


class LinkInfo(BaseModel):
    url: str
    source: LinkSource


class LinkCheckResult(BaseModel):
    """
    Outcome of probing one external URL.
    """
    url: str
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    source: LinkSource
    retries_used: int = 0


# --- Compiled Document Models ---

class CompiledRule(BaseModel):
    number: str = Field(..., description="Hierarchical number, e.g. '2.3'")
    rule: Rule


class CompiledSection(BaseModel):
    section: Section
    rules: List[CompiledRule] = Field(default_factory=list)


class CompiledDocument(BaseModel):
    version: str
    metadata: SkillMetadata
    sections: List[CompiledSection] = Field(default_factory=list)

    @property
    def rule_count(self) -> int:
        return sum(len(section.rules) for section in self.sections)


# --- HTTP Probe Models ---

class ProbeResponse(BaseModel):
    """Status line of an HTTP response, after redirects."""
    status: int
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
