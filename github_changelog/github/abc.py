"""Base ABC for GitHub changelog sources."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from ..changelog.models import Item


class ChangelogSourceBase(ABC):
    """Base ABC for clients supplying issues and pull requests to the changelog."""

    @abstractmethod
    async def list_closed_issues(self, since: datetime | None = None, **kwargs: Any) -> list[Any]:
        """List closed issues (pull requests excluded) for a repository."""
        pass

    @abstractmethod
    async def list_closed_pull_requests(self, **kwargs: Any) -> list[Any]:
        """List closed pull requests for a repository."""
        pass

    @abstractmethod
    async def fetch_closed_issues_and_pull_requests(
        self, since: datetime | None, until: datetime | None
    ) -> tuple[list[Item], list[Item]]:
        """Fetch issues closed and pull requests merged within a release window."""
        pass
