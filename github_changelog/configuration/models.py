"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from github_changelog.utils.github import build_repository_url

SectionsDescription = str | Mapping[Any, Any]


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


def default_bug_labels() -> list[str]:
    """Labels that put an item in the fixed bugs section."""
    return ["bug", "Bug", "Type: Bug"]


def default_enhancement_labels() -> list[str]:
    """Labels that put an item in the implemented enhancements section."""
    return ["enhancement", "Enhancement", "Type: Enhancement"]


def default_breaking_labels() -> list[str]:
    """Labels that put an item in the breaking changes section."""
    return ["backwards-incompatible", "Backwards incompatible", "breaking"]


def default_exclude_labels() -> list[str]:
    """Labels that keep an item out of the changelog entirely."""
    return [
        "duplicate",
        "question",
        "invalid",
        "wontfix",
        "Duplicate",
        "Question",
        "Invalid",
        "Wontfix",
        "Meta: Exclude From Changelog",
    ]


@dataclass
class ChangelogOptions:
    """Options governing how issues and pull requests are sorted and rendered."""

    user: str = ""
    project: str = ""
    github_site: str = "https://github.com"
    bug_labels: list[str] = field(default_factory=default_bug_labels)
    enhancement_labels: list[str] = field(default_factory=default_enhancement_labels)
    breaking_labels: list[str] = field(default_factory=default_breaking_labels)
    exclude_labels: list[str] | None = field(default_factory=default_exclude_labels)
    include_labels: list[str] | None = None
    add_issues_wo_labels: bool = True
    add_pr_wo_labels: bool = True
    author: bool = True
    configure_sections: SectionsDescription | None = None
    add_sections: SectionsDescription | None = None
    unreleased: bool = True
    unreleased_label: str = "Unreleased"
    header: str = "# Changelog"

    @property
    def repository_url(self) -> str:
        """Web URL of the repository, e.g. https://github.com/owner/repo."""
        return build_repository_url(self.github_site, self.user, self.project)
