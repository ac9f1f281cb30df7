"""Changelog generation module."""

from .entry import Entry
from .generator import ChangelogGenerator
from .markdown import MarkdownWriter
from .models import (
    ChangelogResult,
    ChangelogStatus,
    IssueFetcher,
    Item,
    ReleaseTag,
    Section,
)
from .sections import SectionRegistry, parse_sections

__all__ = [
    "ChangelogStatus",
    "ChangelogResult",
    "Item",
    "Section",
    "ReleaseTag",
    "IssueFetcher",
    "SectionRegistry",
    "parse_sections",
    "MarkdownWriter",
    "Entry",
    "ChangelogGenerator",
]
