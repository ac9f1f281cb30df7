"""Main changelog generation orchestration."""

from datetime import date, datetime, time, timezone
from typing import Sequence

import structlog

from ..configuration.exceptions import ConfigurationError
from ..configuration.models import ChangelogOptions
from .entry import Entry
from .models import ChangelogResult, ChangelogStatus, IssueFetcher, ReleaseTag

logger = structlog.get_logger(__name__)


def tag_boundary(value: date | datetime) -> datetime:
    """Turn a tag date into an aware datetime usable as a window bound.

    Plain dates cover the whole day, naive datetimes are taken as UTC.
    """
    if not isinstance(value, datetime):
        return datetime.combine(value, time.max, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ChangelogGenerator:
    """Orchestrates changelog generation with a pluggable issue fetcher.

    The fetcher handles all GitHub operations. Each tag gets its own Entry so
    section state never crosses tags.
    """

    def __init__(self, options: ChangelogOptions, fetcher: IssueFetcher) -> None:
        """Initialize with changelog options and the fetcher supplying items.

        Args:
            options: Label rules, section overrides and rendering options
            fetcher: Implementation of the IssueFetcher protocol
        """
        self.options = options
        self.fetcher = fetcher

    async def generate_entry(self, tag: ReleaseTag, previous_tag: ReleaseTag | None = None) -> str:
        """Generate the entry for a tag covering everything since the previous tag."""
        _, content = await self._build_entry(tag, previous_tag)
        return content

    async def generate_unreleased(self, latest_tag: ReleaseTag | None) -> str | None:
        """Generate the entry for changes after the newest tag, None if there are none."""
        unreleased = ReleaseTag(name=self.options.unreleased_label, date=datetime.now(timezone.utc), link="HEAD")
        entry, content = await self._build_entry(unreleased, latest_tag, until_now=True)
        if not entry.has_content:
            logger.info("No unreleased changes found")
            return None
        return content

    async def _build_entry(self, tag: ReleaseTag, previous_tag: ReleaseTag | None, until_now: bool = False) -> tuple[Entry, str]:
        since = tag_boundary(previous_tag.date) if previous_tag else None
        until = None if until_now else tag_boundary(tag.date)
        logger.info("Processing tag", tag=tag.name, previous_tag=previous_tag.name if previous_tag else None)

        issues, pull_requests = await self.fetcher.fetch_closed_issues_and_pull_requests(since, until)
        logger.info("Fetched items for tag", tag=tag.name, issues=len(issues), pull_requests=len(pull_requests))

        entry = Entry(self.options)
        content = entry.generate_entry_for_tag(
            pull_requests,
            issues,
            tag.name,
            tag.date,
            previous_tag=previous_tag.target if previous_tag else None,
            tag_link=tag.target,
        )
        return entry, content

    async def generate(self, tags: Sequence[ReleaseTag]) -> ChangelogResult:
        """Generate the full changelog, newest entry first.

        Args:
            tags: Release tags in any order

        Raises:
            ConfigurationError: If the section configuration is invalid

        Returns:
            Result of the generation process
        """
        try:
            ordered = sorted(tags, key=lambda tag: tag_boundary(tag.date), reverse=True)
            entries: list[str] = []

            if self.options.unreleased:
                unreleased = await self.generate_unreleased(ordered[0] if ordered else None)
                if unreleased is not None:
                    entries.append(unreleased)

            for index, tag in enumerate(ordered):
                previous_tag = ordered[index + 1] if index + 1 < len(ordered) else None
                entries.append(await self.generate_entry(tag, previous_tag))

            if not entries:
                return ChangelogResult(status=ChangelogStatus.NO_CONTENT, error="No tags or unreleased changes to document")

            content = f"{self.options.header}\n\n" + "".join(entries)
            logger.info("Generated changelog", entries=len(entries))
            return ChangelogResult(status=ChangelogStatus.SUCCESS, content=content, tags=[tag.name for tag in ordered])

        except ConfigurationError:
            raise
        except Exception as e:
            logger.exception("Failed to generate changelog")
            return ChangelogResult(status=ChangelogStatus.ERROR, error=str(e))
