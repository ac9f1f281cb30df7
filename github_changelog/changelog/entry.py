"""Sorting of issues and pull requests into sections for a single tagged entry."""

from datetime import date, datetime
from typing import Sequence

import structlog

from ..configuration.models import ChangelogOptions
from .markdown import MarkdownWriter
from .models import Item
from .sections import SectionRegistry

logger = structlog.get_logger(__name__)


class Entry:
    """Builds the changelog entry for one tag.

    Sections are re-resolved on every call to ``generate_entry_for_tag`` so
    items from one tag never leak into the entry of another.
    """

    def __init__(self, options: ChangelogOptions) -> None:
        """Initialize with changelog options."""
        self.options = options
        self.sections: SectionRegistry | None = None

    def create_sections(self) -> SectionRegistry:
        """Resolve a fresh, empty set of sections."""
        self.sections = SectionRegistry.resolve(self.options)
        return self.sections

    @property
    def has_content(self) -> bool:
        """Whether the last classification put any item in a section."""
        return bool(self.sections and self.sections.populated_sections)

    def generate_entry_for_tag(
        self,
        pull_requests: Sequence[Item],
        issues: Sequence[Item],
        tag_name: str,
        tag_time: date | datetime,
        previous_tag: str | None = None,
        tag_link: str | None = None,
    ) -> str:
        """Generate the markdown entry for a tag.

        Args:
            pull_requests: Merged pull requests of the release window
            issues: Closed issues of the release window
            tag_name: Name shown in the header
            tag_time: Date shown in the header
            previous_tag: Older tag for the comparison link, None for the first release
            tag_link: Ref used in links when it differs from the name (e.g. HEAD)

        Returns:
            The rendered entry
        """
        sections = self.create_sections()
        self.sort_into_sections(pull_requests, issues)
        writer = MarkdownWriter(self.options.repository_url, author=self.options.author)
        return writer.entry(sections, tag_name, tag_time, previous_tag, tag_link)

    def sort_into_sections(self, pull_requests: Sequence[Item], issues: Sequence[Item]) -> None:
        """Append every issue, then every pull request, to its section(s)."""
        sections = self.sections if self.sections is not None else self.create_sections()
        for issue in issues:
            self._sort_item(sections, issue)
        for pull_request in pull_requests:
            self._sort_item(sections, pull_request)

        for section in sections:
            logger.debug("Sorted items into section", section=section.name, count=len(section.issues))

    def _excluded(self, item: Item) -> bool:
        exclude_labels = self.options.exclude_labels
        if exclude_labels and not item.label_set.isdisjoint(exclude_labels):
            logger.debug("Dropping item with excluded label", number=item.number, labels=item.labels)
            return True
        include_labels = self.options.include_labels
        if include_labels and item.labels and item.label_set.isdisjoint(include_labels):
            logger.debug("Dropping item without included label", number=item.number, labels=item.labels)
            return True
        return False

    def _sort_item(self, sections: SectionRegistry, item: Item) -> None:
        if self._excluded(item):
            return

        matched = False
        for section in sections.labeled_sections:
            if section.matches(item):
                section.issues.append(item)
                matched = True
        if matched:
            return

        add_unmatched = self.options.add_pr_wo_labels if item.is_pull_request else self.options.add_issues_wo_labels
        fallback = sections.fallback_for(item)
        if not add_unmatched or fallback is None:
            logger.debug("Omitting item matching no section", number=item.number, pull_request=item.is_pull_request)
            return
        fallback.issues.append(item)
