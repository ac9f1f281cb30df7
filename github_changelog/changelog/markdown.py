"""Markdown rendering for changelog entries."""

from datetime import date, datetime, timezone
from typing import Iterable

import structlog

from .models import Item, Section

logger = structlog.get_logger(__name__)


def format_tag_date(value: date | datetime) -> str:
    """Format a tag date as YYYY-MM-DD, converting aware datetimes to UTC."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d")


class MarkdownWriter:
    """Renders populated sections into the markdown of one tagged entry."""

    def __init__(self, repository_url: str, author: bool = True) -> None:
        """Initialize with the repository web URL used for tree and compare links."""
        self.repository_url = repository_url.rstrip("/")
        self.author = author

    def header(self, tag_name: str, tag_time: date | datetime, previous_tag: str | None = None, tag_link: str | None = None) -> str:
        """Version header, followed by the comparison link when a previous tag exists."""
        target = tag_link or tag_name
        header = f"## [{tag_name}]({self.repository_url}/tree/{target}) ({format_tag_date(tag_time)})\n\n"
        if previous_tag:
            header += f"[Full Changelog]({self.repository_url}/compare/{previous_tag}...{target})\n\n"
        return header

    def item_line(self, item: Item) -> str:
        """One list line; pull requests carry their author."""
        line = f"- {item.title} [\\#{item.number}]({item.url})"
        if item.is_pull_request and self.author and item.author_login:
            line += f" ([{item.author_login}]({item.author_url}))"
        return line

    def section(self, section: Section) -> str:
        """Prefix, blank line, item lines, blank line. Empty sections render nothing."""
        if not section.issues:
            return ""
        lines = "".join(f"{self.item_line(item)}\n" for item in section.issues)
        return f"{section.prefix}\n\n{lines}\n"

    def entry(
        self,
        sections: Iterable[Section],
        tag_name: str,
        tag_time: date | datetime,
        previous_tag: str | None = None,
        tag_link: str | None = None,
    ) -> str:
        """Render a whole entry for one tag."""
        body = "".join(self.section(section) for section in sections)
        logger.debug("Rendered changelog entry", tag=tag_name, previous_tag=previous_tag, length=len(body))
        return self.header(tag_name, tag_time, previous_tag, tag_link) + body
