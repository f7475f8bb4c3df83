"""
Services layer for chbp.

Contains parsing, validation and compilation logic.
"""

from .parser import RuleParser
from .rules import list_rule_files, load_rule_set
from .structure import StructuralValidator
from .sql import SQLValidator, find_dangerous_pattern
from .links import InternalLinkChecker, extract_markdown_links
from .external_links import ExternalLinkChecker, collect_external_links, sort_results
from .metadata import MetadataStore, bump_version, load_sections
from .compiler import BuildService, RuleCompiler

__all__ = [
    "RuleParser",
    "list_rule_files",
    "load_rule_set",
    "StructuralValidator",
    "SQLValidator",
    "find_dangerous_pattern",
    "InternalLinkChecker",
    "extract_markdown_links",
    "ExternalLinkChecker",
    "collect_external_links",
    "sort_results",
    "MetadataStore",
    "bump_version",
    "load_sections",
    "BuildService",
    "RuleCompiler",
]
