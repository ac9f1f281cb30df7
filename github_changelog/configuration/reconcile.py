"""Reconcile configuration between CLI arguments and environment variables."""

from pathlib import Path
from typing import TypeVar

import structlog

from github_changelog.changelog.sections import SectionRegistry
from github_changelog.configuration.env import settings
from github_changelog.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from github_changelog.configuration.models import ChangelogOptions, GitHubAuthenticationType
from github_changelog.utils.github import split_repository

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _first_defined(*values: T | None) -> T | None:
    for value in values:
        if value is not None:
            return value
    return None


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.
        github_app_installation_id (int | None): The GitHub App installation ID.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If no, partial, or conflicting credentials are configured.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    app_settings = {
        "GitHub App ID (command line option github_app_id, environment variable GITHUB_APP_ID)": github_app_id,
        "GitHub App private key path (command line option github_app_private_key_path, environment variable GITHUB_APP_PRIVATE_KEY_PATH)": (
            github_app_private_key_path
        ),
        "GitHub App installation ID (command line option github_app_installation_id, environment variable GITHUB_APP_INSTALLATION_ID)": (
            github_app_installation_id
        ),
    }
    any_app_setting = any(app_settings.values())

    if github_pat_token and any_app_setting:
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")
    if github_pat_token:
        return GitHubAuthenticationType.PAT
    if not any_app_setting:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
        )

    missing = [description for description, value in app_settings.items() if not value]
    if missing:
        raise GitHubAuthenticationConfigurationUndefinedError("Incomplete GitHub App configuration - missing settings include " + ", ".join(missing))
    return GitHubAuthenticationType.APP


async def reconcile_changelog_options(
    cli_repo: str | None = None,
    cli_github_site: str | None = None,
    cli_bug_labels: list[str] | None = None,
    cli_enhancement_labels: list[str] | None = None,
    cli_breaking_labels: list[str] | None = None,
    cli_exclude_labels: list[str] | None = None,
    cli_include_labels: list[str] | None = None,
    cli_configure_sections: str | None = None,
    cli_add_sections: str | None = None,
    cli_add_issues_wo_labels: bool = True,
    cli_add_pr_wo_labels: bool = True,
    cli_author: bool = True,
) -> ChangelogOptions:
    """Build changelog options from CLI values, falling back to environment settings.

    Sections are resolved here so that malformed JSON and clashing section
    names are reported before anything is fetched. An add_sections override
    is ignored, and not validated, when configure_sections is given.

    Raises:
        RequiredConfigurationElementError: If no repository is configured.
        ConfigurationError: If a section override is malformed or reuses a section name.
        ValueError: If the repository is not in 'owner/repo' format.
    """
    repo = _first_defined(cli_repo, settings.REPO)
    if not repo:
        raise RequiredConfigurationElementError(name="repository", cli_name="repo", env_name="REPO")
    user, project = split_repository(repo)

    defaults = ChangelogOptions()
    options = ChangelogOptions(
        user=user,
        project=project,
        github_site=_first_defined(cli_github_site, settings.GITHUB_SITE) or defaults.github_site,
        bug_labels=_first_defined(cli_bug_labels, settings.BUG_LABELS) or defaults.bug_labels,
        enhancement_labels=_first_defined(cli_enhancement_labels, settings.ENHANCEMENT_LABELS) or defaults.enhancement_labels,
        breaking_labels=_first_defined(cli_breaking_labels, settings.BREAKING_LABELS) or defaults.breaking_labels,
        exclude_labels=_first_defined(cli_exclude_labels, settings.EXCLUDE_LABELS, defaults.exclude_labels),
        include_labels=_first_defined(cli_include_labels, settings.INCLUDE_LABELS),
        configure_sections=_first_defined(cli_configure_sections, settings.CONFIGURE_SECTIONS) or None,
        add_sections=_first_defined(cli_add_sections, settings.ADD_SECTIONS) or None,
        add_issues_wo_labels=cli_add_issues_wo_labels,
        add_pr_wo_labels=cli_add_pr_wo_labels,
        author=cli_author,
    )

    SectionRegistry.resolve(options)

    logger.debug("Reconciled changelog options", user=user, project=project, github_site=options.github_site)
    return options
