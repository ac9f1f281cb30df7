"""Data models for changelog generation."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Protocol

from pydantic import BaseModel, ConfigDict


class ChangelogStatus(str, Enum):
    """Status of changelog generation."""

    SUCCESS = "success"
    NO_CONTENT = "no_content"
    ERROR = "error"


def as_payload(raw: Any) -> dict[str, Any]:
    """Return a GitHub REST payload as a plain dictionary.

    githubkit models are dumped without their unset fields so that absent
    members (such as ``pull_request`` on a plain issue) stay absent.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, BaseModel):
        return raw.model_dump(exclude_unset=True)
    raise TypeError(f"Unsupported GitHub payload type: {type(raw).__name__}")


def _label_name(label: Any) -> str:
    if isinstance(label, str):
        return label
    return as_payload(label)["name"]


class Item(BaseModel):
    """A closed issue or merged pull request being classified."""

    model_config = ConfigDict(frozen=True)

    title: str
    number: int | str
    url: str
    labels: tuple[str, ...] = ()
    author_login: str | None = None
    author_url: str | None = None
    is_pull_request: bool = False
    merged_at: datetime | None = None

    @property
    def label_set(self) -> frozenset[str]:
        """Labels of the item as a set for membership tests."""
        return frozenset(self.labels)

    def has_label(self, name: str) -> bool:
        """Check whether the item carries a label (exact, case-sensitive)."""
        return name in self.labels

    @classmethod
    def from_github(cls, raw: Any, is_pull_request: bool | None = None) -> "Item":
        """Build an item from a GitHub REST payload or githubkit model.

        Args:
            raw: Decoded issue or pull request JSON, or a githubkit model.
            is_pull_request: Force the item kind. When None, the kind is
                inferred from the ``pull_request`` and ``merged_at`` members.

        Returns:
            The immutable item.
        """
        data = as_payload(raw)
        pull_request_data = data.get("pull_request")
        if isinstance(pull_request_data, BaseModel):
            pull_request_data = as_payload(pull_request_data)

        if is_pull_request is None:
            is_pull_request = bool(pull_request_data) or "merged_at" in data

        merged_at = data.get("merged_at")
        if merged_at is None and isinstance(pull_request_data, Mapping):
            merged_at = pull_request_data.get("merged_at")

        user = data.get("user") or {}
        if not isinstance(user, Mapping):
            user = as_payload(user)

        return cls(
            title=data["title"],
            number=data["number"],
            url=data["html_url"],
            labels=tuple(_label_name(label) for label in data.get("labels") or []),
            author_login=user.get("login"),
            author_url=user.get("html_url"),
            is_pull_request=is_pull_request,
            merged_at=merged_at if is_pull_request else None,
        )


@dataclass
class Section:
    """A named, ordered bucket of items with a rendering prefix and label rule.

    A section without labels is a fallback section: it never matches by label
    and only receives items that matched no labeled section.
    """

    name: str
    prefix: str
    labels: list[str] = field(default_factory=list)
    issues: list[Item] = field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        """Whether the section catches unmatched items."""
        return not self.labels

    def matches(self, item: Item) -> bool:
        """Whether the item carries at least one of the section labels."""
        return any(item.has_label(label) for label in self.labels)


@dataclass(frozen=True)
class ReleaseTag:
    """A tagged release bounding a changelog entry."""

    name: str
    date: date | datetime
    link: str | None = None

    @property
    def target(self) -> str:
        """Path segment used in tree and compare links."""
        return self.link or self.name


class ChangelogResult(BaseModel):
    """Result of changelog generation."""

    status: ChangelogStatus
    content: str | None = None
    tags: list[str] = []
    error: str | None = None


class IssueFetcher(Protocol):
    """Protocol for collaborators supplying the items of a release window."""

    async def fetch_closed_issues_and_pull_requests(
        self, since: datetime | None, until: datetime | None
    ) -> tuple[list[Item], list[Item]]:
        """Fetch closed issues and merged pull requests.

        Args:
            since: Exclusive lower bound, None for the beginning of history
            until: Inclusive upper bound, None for now

        Returns:
            Tuple of (issues, pull requests) in the order they should be listed
        """
        ...
