"""Fixtures for unit tests."""

from datetime import datetime, timezone
from typing import Any, Callable, Generator

import pytest
import structlog

from github_changelog.changelog.models import Item
from github_changelog.configuration.models import ChangelogOptions


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


def issue_payload(title: str, labels: list[str], number: str = "1", login: str = "user") -> dict[str, Any]:
    """REST payload of a closed issue."""
    return {
        "title": f"issue {title}",
        "labels": [{"name": label} for label in labels],
        "number": number,
        "html_url": f"https://github.com/owner/repo/issue/{number}",
        "user": {"login": login},
    }


def pr_payload(title: str, labels: list[str], number: str = "1", login: str = "user") -> dict[str, Any]:
    """REST payload of a merged pull request."""
    return {
        "pull_request": True,
        "title": f"pr {title}",
        "labels": [{"name": label} for label in labels],
        "number": number,
        "html_url": f"https://github.com/owner/repo/pull/{number}",
        "user": {"login": login, "html_url": f"https://github.com/{login}"},
        "merged_at": datetime(2017, 12, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def make_issue() -> Callable[..., Item]:
    """Factory building issue items."""

    def factory(title: str, labels: list[str], number: str = "1", login: str = "user") -> Item:
        return Item.from_github(issue_payload(title, labels, number, login))

    return factory


@pytest.fixture
def make_pr() -> Callable[..., Item]:
    """Factory building pull request items."""

    def factory(title: str, labels: list[str], number: str = "1", login: str = "user") -> Item:
        return Item.from_github(pr_payload(title, labels, number, login))

    return factory


@pytest.fixture
def options() -> ChangelogOptions:
    """Options with single bug, enhancement and breaking labels for owner/repo."""
    return ChangelogOptions(
        user="owner",
        project="repo",
        bug_labels=["bug"],
        enhancement_labels=["enhancement"],
        breaking_labels=["breaking"],
    )