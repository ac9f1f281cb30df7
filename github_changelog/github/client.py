"""Sets up the authenticated githubkit client."""

from pathlib import Path
from typing import TypeAlias

import structlog
from githubkit import GitHub
from githubkit.auth import (
    AppInstallationAuthStrategy,
    TokenAuthStrategy,
)

from github_changelog.configuration.models import GitHubAuthenticationType
from github_changelog.utils.github import split_repository

logger = structlog.get_logger(__name__)

GitHubClient: TypeAlias = GitHub[AppInstallationAuthStrategy] | GitHub[TokenAuthStrategy]


async def get_github_app_client(
    repo: str,
    github_app_id: int,
    github_app_private_key_path: Path,
    github_app_installation_id: int,
    github_api_url: str,
) -> GitHub[AppInstallationAuthStrategy]:
    """Returns a client authenticated as the GitHub App installation for the repository.

    The configured installation ID is used directly; the repository is only
    validated so that a malformed 'owner/repo' fails before any request.
    """
    split_repository(repo)
    private_key = Path(github_app_private_key_path).read_text()
    auth = AppInstallationAuthStrategy(
        app_id=github_app_id,
        private_key=private_key,
        installation_id=github_app_installation_id,
    )
    logger.debug("Authenticating as GitHub App installation", app_id=github_app_id, installation_id=github_app_installation_id)
    return GitHub(auth=auth, base_url=github_api_url)


async def get_github_pat_client(github_pat_token: str, github_api_url: str) -> GitHub[TokenAuthStrategy]:
    """Returns a client authenticated with a personal access token."""
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url)


async def get_github_client(
    repo: str,
    github_auth_type: GitHubAuthenticationType,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
    github_api_url: str,
) -> GitHubClient:
    """Returns an authenticated GitHub client for the chosen authentication type.

    Supports a custom base URL for GitHub Enterprise Server (GHES).
    Raises RuntimeError if the credentials for that type are incomplete.
    """
    if github_auth_type == GitHubAuthenticationType.APP:
        if not (github_app_id and github_app_private_key_path and github_app_installation_id):
            raise RuntimeError("GitHub App authentication requires app_id, private_key_path, and installation_id in config.")
        return await get_github_app_client(repo, github_app_id, github_app_private_key_path, github_app_installation_id, github_api_url)
    if not github_pat_token:
        raise RuntimeError("GitHub PAT authentication requires github_pat_token in config.")
    return await get_github_pat_client(github_pat_token, github_api_url)
