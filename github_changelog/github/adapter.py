"""GitHub changelog source adapter for the githubkit library."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Self

import structlog

from github_changelog.changelog.models import Item, as_payload
from github_changelog.configuration.models import GitHubAuthenticationType
from github_changelog.utils.github import split_repository
from github_changelog.utils.retry import retry_on_rate_limit

from .abc import ChangelogSourceBase
from .client import GitHubClient, get_github_client

logger = structlog.get_logger(__name__)


def _as_utc(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def in_window(moment: datetime | None, since: datetime | None, until: datetime | None) -> bool:
    """Whether a timestamp falls in the half-open window (since, until]."""
    if moment is None:
        return False
    if since is not None and moment <= since:
        return False
    if until is not None and moment > until:
        return False
    return True


class GitHubKitAdapter(ChangelogSourceBase):
    """Fetches closed issues and merged pull requests through githubkit.

    The closed history is listed once per adapter and every release window is
    sliced from it.
    """

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name
        self._closed_issues: list[Any] | None = None
        self._closed_pull_requests: list[Any] | None = None

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
    ) -> Self:
        """Create a new adapter for a repository.

        Args:
            repo: Repository in 'owner/repo' format
            github_auth_type: Type of authentication (PAT or APP)
            github_pat_token: Personal access token (required for PAT auth)
            github_app_id: GitHub App ID (required for APP auth)
            github_app_private_key_path: Path to private key file (required for APP auth)
            github_app_installation_id: Installation ID (required for APP auth)
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Returns:
            Configured GitHubKitAdapter instance
        """
        owner, repo_name = split_repository(repo)
        logger.info(
            "Creating client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        client = await get_github_client(
            repo=repo,
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
        )
        return cls(client, owner, repo_name)

    async def _paginate(self, fetch_page: Callable[[int], Awaitable[Any]], per_page: int) -> list[Any]:
        results: list[Any] = []
        page = 1
        while True:
            response = await fetch_page(page)
            items = response.parsed_data
            if not items:
                break
            results.extend(items)
            if len(items) < per_page:
                break
            page += 1
        return results

    @retry_on_rate_limit()
    async def list_closed_issues(self, since: datetime | None = None, per_page: int = 100, **kwargs: Any) -> list[Any]:
        """List closed issues for a repository, excluding pull requests, handling pagination.

        ``since`` filters on the last update time on the GitHub side, which is
        a superset of the issues closed after it.
        """
        if since is not None:
            kwargs["since"] = since

        async def fetch_page(page: int) -> Any:
            return await self.client.rest.issues.async_list_for_repo(
                owner=self.owner,
                repo=self.repo_name,
                state="closed",
                per_page=per_page,
                page=page,
                **kwargs,
            )

        everything = await self._paginate(fetch_page, per_page)
        issues = [issue for issue in everything if not as_payload(issue).get("pull_request")]
        logger.debug("Fetched closed issues", total=len(everything), issues=len(issues))
        return issues

    @retry_on_rate_limit()
    async def list_closed_pull_requests(self, per_page: int = 100, **kwargs: Any) -> list[Any]:
        """List closed pull requests for a repository, handling pagination."""

        async def fetch_page(page: int) -> Any:
            return await self.client.rest.pulls.async_list(
                owner=self.owner,
                repo=self.repo_name,
                state="closed",
                per_page=per_page,
                page=page,
                **kwargs,
            )

        pull_requests = await self._paginate(fetch_page, per_page)
        logger.debug("Fetched closed pull requests", total=len(pull_requests))
        return pull_requests

    async def _closed_history(self) -> tuple[list[Any], list[Any]]:
        if self._closed_issues is None:
            self._closed_issues = await self.list_closed_issues()
        if self._closed_pull_requests is None:
            self._closed_pull_requests = await self.list_closed_pull_requests()
        return self._closed_issues, self._closed_pull_requests

    async def fetch_closed_issues_and_pull_requests(
        self, since: datetime | None, until: datetime | None
    ) -> tuple[list[Item], list[Item]]:
        """Fetch issues closed and pull requests merged in (since, until].

        Closed pull requests that were never merged are left out.
        """
        raw_issues, raw_pull_requests = await self._closed_history()

        issues: list[Item] = []
        for raw in raw_issues:
            data = as_payload(raw)
            if in_window(_as_utc(data.get("closed_at")), since, until):
                issues.append(Item.from_github(data, is_pull_request=False))

        pull_requests: list[Item] = []
        for raw in raw_pull_requests:
            data = as_payload(raw)
            if in_window(_as_utc(data.get("merged_at")), since, until):
                pull_requests.append(Item.from_github(data, is_pull_request=True))

        logger.info(
            "Fetched items for release window",
            since=since.isoformat() if since else None,
            until=until.isoformat() if until else None,
            issues=len(issues),
            pull_requests=len(pull_requests),
        )
        return issues, pull_requests
