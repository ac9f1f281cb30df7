"""Section registry: resolves the ordered sections governing one changelog entry."""

import json
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence

import structlog

from ..configuration.exceptions import ConfigurationError
from ..configuration.models import ChangelogOptions, SectionsDescription
from .models import Item, Section

logger = structlog.get_logger(__name__)

ISSUES_SECTION = "issues"
MERGED_SECTION = "merged"

ISSUES_PREFIX = "**Closed issues:**"
MERGED_PREFIX = "**Merged pull requests:**"
BREAKING_PREFIX = "**Breaking changes:**"
ENHANCEMENTS_PREFIX = "**Implemented enhancements:**"
BUGS_PREFIX = "**Fixed bugs:**"


def _normalize_key(key: Any) -> str:
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


def _decode_sections(sections_desc: SectionsDescription) -> Mapping[Any, Any]:
    if isinstance(sections_desc, str):
        try:
            decoded = json.loads(sections_desc)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"There was a problem parsing your JSON string for sections: {exc}") from exc
    else:
        decoded = sections_desc
    if not isinstance(decoded, Mapping):
        raise ConfigurationError(f"Sections must be a JSON object or mapping of name to section, got {type(decoded).__name__}")
    return decoded


def parse_sections(sections_desc: SectionsDescription) -> list[Section]:
    """Parse a section override into section definitions.

    Args:
        sections_desc: JSON object text or a mapping of section name to
            ``{"prefix": ..., "labels": [...]}``. Keys may be strings or
            symbolic (enum members and the like).

    Raises:
        ConfigurationError: If the JSON is invalid or an entry is malformed.

    Returns:
        Sections in the iteration order of the input, with no items.
    """
    sections: list[Section] = []
    seen: set[str] = set()
    for raw_name, raw_value in _decode_sections(sections_desc).items():
        name = _normalize_key(raw_name)
        if not isinstance(raw_value, Mapping):
            raise ConfigurationError(f"Section '{name}' must be an object with 'prefix' and 'labels'")
        value = {_normalize_key(k): v for k, v in raw_value.items()}

        missing = [key for key in ("prefix", "labels") if key not in value]
        if missing:
            raise ConfigurationError(f"Section '{name}' is missing required key(s): {', '.join(missing)}")

        prefix = value["prefix"]
        labels = value["labels"]
        if not isinstance(prefix, str):
            raise ConfigurationError(f"Section '{name}' prefix must be a string")
        if isinstance(labels, (str, bytes)) or not isinstance(labels, Sequence) or not all(isinstance(label, str) for label in labels):
            raise ConfigurationError(f"Section '{name}' labels must be a list of strings")
        if name in seen:
            raise ConfigurationError(f"Section '{name}' is defined more than once")
        seen.add(name)

        sections.append(Section(name=name, prefix=prefix, labels=list(labels)))
    return sections


def default_sections(options: ChangelogOptions) -> list[Section]:
    """The built-in labeled sections, in their fixed order."""
    return [
        Section(name="breaking", prefix=BREAKING_PREFIX, labels=list(options.breaking_labels)),
        Section(name="enhancements", prefix=ENHANCEMENTS_PREFIX, labels=list(options.enhancement_labels)),
        Section(name="bugs", prefix=BUGS_PREFIX, labels=list(options.bug_labels)),
    ]


def fallback_sections() -> list[Section]:
    """Sections catching unmatched issues and unmatched pull requests."""
    return [
        Section(name=ISSUES_SECTION, prefix=ISSUES_PREFIX, labels=[]),
        Section(name=MERGED_SECTION, prefix=MERGED_PREFIX, labels=[]),
    ]


class SectionRegistry:
    """Ordered sections for one generation run, with label-matching helpers."""

    def __init__(self, sections: list[Section]) -> None:
        """Initialize with already-resolved sections, rejecting duplicate names."""
        names = [section.name for section in sections]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Section names must be unique, duplicated: {', '.join(duplicates)}")
        self.sections = sections

    @classmethod
    def resolve(cls, options: ChangelogOptions) -> "SectionRegistry":
        """Resolve fresh sections from the options.

        Configured sections replace the defaults, added sections extend them,
        and the two fallback sections always come last.
        """
        if options.configure_sections is not None:
            labeled = parse_sections(options.configure_sections)
            mode = "configured"
        elif options.add_sections is not None:
            labeled = default_sections(options) + parse_sections(options.add_sections)
            mode = "added"
        else:
            labeled = default_sections(options)
            mode = "default"
        registry = cls(labeled + fallback_sections())
        logger.debug("Resolved changelog sections", mode=mode, sections=registry.names)
        return registry

    def __iter__(self) -> Iterator[Section]:
        return iter(self.sections)

    def __len__(self) -> int:
        return len(self.sections)

    @property
    def names(self) -> list[str]:
        return [section.name for section in self.sections]

    def get(self, name: str) -> Section | None:
        """Look up a section by name."""
        for section in self.sections:
            if section.name == name:
                return section
        return None

    @property
    def labeled_sections(self) -> list[Section]:
        return [section for section in self.sections if not section.is_fallback]

    @property
    def populated_sections(self) -> list[Section]:
        return [section for section in self.sections if section.issues]

    def fallback_for(self, item: Item) -> Section | None:
        """The fallback section for the kind of item (merged pull request or issue)."""
        return self.get(MERGED_SECTION if item.is_pull_request else ISSUES_SECTION)
