"""Utility modules for shared functionality."""

from .github import build_repository_url, split_repository
from .retry import retry_on_rate_limit

__all__ = [
    "build_repository_url",
    "split_repository",
    "retry_on_rate_limit",
]
