"""
Section definitions and skill metadata.

Sections come from the `_sections.md` file in the rules directory; the
version, organization and abstract come from the skill's metadata.json.
"""

import json
import re
from pathlib import Path
from typing import List

from pydantic import ValidationError

from ..domain.exceptions import MetadataError, SectionsLoadError
from ..domain.models import Section, SkillMetadata

SECTION_HEADING_PATTERN = re.compile(r"^##\s+(\d+)\.\s+(.+?)\s+\(([\w-]+)\)\s*$")
FIELD_PATTERN = re.compile(r"^\*\*(Impact|Description):\*\*\s*(.*?)\s*$", re.IGNORECASE)
VERSION_PATTERN = re.compile(r"^\d+(\.\d+)*$")


def parse_sections(text: str, source: str = "_sections.md") -> List[Section]:
    """
    Parse section definitions.

    Each section is a heading of the form `## 2. Query Optimization (query)`
    followed by `**Impact:**` and `**Description:**` lines. A description
    continues over the following lines up to the next blank line or heading.

    Returns:
        List[Section]: Sections sorted by rank

    Raises:
        SectionsLoadError: If no sections are defined or a rank/prefix repeats
    """
    raw: List[dict] = []
    current_field = None

    for line in text.splitlines():
        heading = SECTION_HEADING_PATTERN.match(line)
        if heading:
            raw.append({
                "rank": int(heading.group(1)),
                "name": heading.group(2).strip(),
                "prefix": heading.group(3),
                "impact": "",
                "description": "",
            })
            current_field = None
            continue

        if not raw:
            continue

        field = FIELD_PATTERN.match(line.strip())
        if field:
            current_field = field.group(1).lower()
            raw[-1][current_field] = field.group(2)
        elif not line.strip() or line.startswith("#"):
            current_field = None
        elif current_field == "description":
            raw[-1]["description"] = f"{raw[-1]['description']} {line.strip()}".strip()

    if not raw:
        raise SectionsLoadError(f"No sections defined in {source}")

    sections = [Section(**{**item, "impact": item["impact"].upper()}) for item in raw]
    for attribute in ("rank", "prefix"):
        values = [getattr(section, attribute) for section in sections]
        duplicates = sorted({str(value) for value in values if values.count(value) > 1})
        if duplicates:
            raise SectionsLoadError(
                f"Duplicate section {attribute} in {source}: {', '.join(duplicates)}"
            )

    return sorted(sections, key=lambda section: section.rank)


def load_sections(path: Path) -> List[Section]:
    """
    Read and parse the sections file.

    Raises:
        SectionsLoadError: If the file is missing or malformed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SectionsLoadError(f"Cannot read sections file {path}: {e}") from e
    return parse_sections(text, path.name)


def bump_version(version: str) -> str:
    """
    Increment the last numeric component: "1.2.3" -> "1.2.4", "1.0" -> "1.1".

    Raises:
        MetadataError: If the version is not dot-separated integers
    """
    version = version.strip()
    if not VERSION_PATTERN.match(version):
        raise MetadataError(f"Cannot bump version '{version}': expected dot-separated numbers")
    parts = version.split(".")
    parts[-1] = str(int(parts[-1]) + 1)
    return ".".join(parts)


class MetadataStore:
    """
    Reads and writes metadata.json.

    Nothing is cached: every read goes to disk, so a bump always starts from
    the persisted value.
    """

    def __init__(self, path: Path):
        self.path = path

    def _load_raw(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise MetadataError(f"Cannot read metadata file {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise MetadataError(f"Invalid JSON in {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise MetadataError(f"{self.path} must contain a JSON object")
        return data

    def read(self) -> SkillMetadata:
        try:
            return SkillMetadata.model_validate(self._load_raw())
        except ValidationError as e:
            raise MetadataError(f"Invalid metadata in {self.path}: {e}") from e

    def write_version(self, version: str) -> None:
        """Persist a new version, leaving every other key untouched."""
        data = self._load_raw()
        data["version"] = version
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    def bump(self) -> str:
        """Read, increment and persist the version; returns the new value."""
        new_version = bump_version(self.read().version)
        self.write_version(new_version)
        return new_version
