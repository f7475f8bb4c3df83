"""
Domain-specific exceptions for chbp.

Parse and load errors are localized to one file and are collected by the
callers; build errors stop compilation.
"""


class RuleParseError(Exception):
    """
    Raised when a rule file cannot be turned into a Rule.

    This indicates issues such as:
    - Frontmatter that is not valid YAML
    - Frontmatter that is not a key/value mapping
    - A file that cannot be read
    """

    def __init__(self, filename: str, message: str):
        self.filename = filename
        self.message = message
        super().__init__(f"{filename}: {message}")


class SectionsLoadError(Exception):
    """Raised when the section metadata file is missing or malformed."""
    pass


class MetadataError(Exception):
    """Raised when the skill metadata file cannot be read or holds a bad version."""
    pass


class BuildError(Exception):
    """Raised when the compiled document cannot be produced."""
    pass


class OrphanRuleError(BuildError):
    """Raised when a rule file matches no declared section prefix."""

    def __init__(self, filenames: list[str]):
        self.filenames = filenames
        super().__init__(
            "Rules do not match any section prefix: " + ", ".join(filenames)
        )


class EngineUnavailableError(Exception):
    """
    Raised when the clickhouse binary cannot be located or downloaded.

    SQL validation treats this as degraded mode rather than a failure.
    """
    pass


class LinkProbeError(Exception):
    """Base error for a failed HTTP probe that produced no status code."""
    pass


class ProbeTimeoutError(LinkProbeError):
    pass


class DnsLookupError(LinkProbeError):
    pass


class ConnectionRefusedProbeError(LinkProbeError):
    pass
