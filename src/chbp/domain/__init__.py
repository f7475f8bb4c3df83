"""
Domain layer for chbp.

Contains all domain models and exceptions with no external dependencies
beyond pydantic.
"""

from .models import (
    Impact,
    ExampleKind,
    classify_label,
    Example,
    Rule,
    Section,
    SkillMetadata,
    StructuralViolation,
    SQLValidationError,
    SQLValidationReport,
    LinkError,
    InternalLinkReport,
    LinkSource,
    LinkInfo,
    LinkCheckResult,
    CompiledRule,
    CompiledSection,
    CompiledDocument,
    ProbeResponse,
)
from .exceptions import (
    RuleParseError,
    SectionsLoadError,
    MetadataError,
    BuildError,
    OrphanRuleError,
    EngineUnavailableError,
    LinkProbeError,
    ProbeTimeoutError,
    DnsLookupError,
    ConnectionRefusedProbeError,
)

__all__ = [
    # Models
    "Impact",
    "ExampleKind",
    "classify_label",
    "Example",
    "Rule",
    "Section",
    "SkillMetadata",
    "StructuralViolation",
    "SQLValidationError",
    "SQLValidationReport",
    "LinkError",
    "InternalLinkReport",
    "LinkSource",
    "LinkInfo",
    "LinkCheckResult",
    "CompiledRule",
    "CompiledSection",
    "CompiledDocument",
    "ProbeResponse",
    # Exceptions
    "RuleParseError",
    "SectionsLoadError",
    "MetadataError",
    "BuildError",
    "OrphanRuleError",
    "EngineUnavailableError",
    "LinkProbeError",
    "ProbeTimeoutError",
    "DnsLookupError",
    "ConnectionRefusedProbeError",
]
