"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any

import structlog
import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from github_changelog.changelog.generator import ChangelogGenerator
from github_changelog.changelog.models import ChangelogStatus, ReleaseTag
from github_changelog.configuration.exceptions import (
    ConfigurationError,
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from github_changelog.configuration.models import ChangelogOptions
from github_changelog.configuration.reconcile import reconcile_changelog_options, validate_github_authentication_configuration
from github_changelog.github.adapter import GitHubKitAdapter

load_dotenv()

logger = structlog.get_logger(__name__)

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Generate markdown changelogs from closed issues and merged pull requests.")

def configure_logging(debug: bool) -> None:
    """Send structlog output to stderr so the changelog itself can go to stdout."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def split_labels(value: str | None) -> list[str] | None:
    """Split a comma-separated label option, None when the option was not given."""
    if value is None:
        return None
    return [label.strip() for label in value.split(",") if label.strip()]


def parse_tag_date(value: str) -> date | datetime:
    """Parse an ISO tag date. A plain YYYY-MM-DD stays a date and covers the whole day."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"'{value}' is not an ISO date (YYYY-MM-DD) or datetime") from exc
    if len(value) == len("YYYY-MM-DD"):
        return parsed.date()
    return parsed


def parse_tag(value: str) -> ReleaseTag:
    """Parse a NAME@YYYY-MM-DD tag option."""
    name, separator, raw_date = value.rpartition("@")
    if not separator or not name:
        raise typer.BadParameter(f"Tag '{value}' must be given as NAME@YYYY-MM-DD")
    return ReleaseTag(name=name, date=parse_tag_date(raw_date))


def write_output(content: str, output: Path | None) -> None:
    """Write the changelog to a file, or to stdout when no file is given."""
    if output is None:
        typer.echo(content, nl=False)
        return
    output.write_text(content, encoding="utf-8")
    typer.echo(f"Changelog written to {output}", err=True)


@typer_app.callback()
def repo_callback(
    ctx: typer.Context,
    repo: Annotated[str, Argument(envvar="REPO", help="Repository name (owner/repo).")],
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = "https://api.github.com",
    github_site: Annotated[str | None, Option(envvar="GITHUB_SITE", help="GitHub web site used in links.")] = None,
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    github_app_installation_id: Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")] = None,
    bug_labels: Annotated[str | None, Option(help="Comma-separated labels for the fixed bugs section.")] = None,
    enhancement_labels: Annotated[str | None, Option(help="Comma-separated labels for the implemented enhancements section.")] = None,
    breaking_labels: Annotated[str | None, Option(help="Comma-separated labels for the breaking changes section.")] = None,
    exclude_labels: Annotated[str | None, Option(help="Comma-separated labels whose issues and pull requests are left out.")] = None,
    include_labels: Annotated[str | None, Option(help="Comma-separated labels; only items carrying one of them are listed.")] = None,
    configure_sections: Annotated[str | None, Option(help="JSON object of sections replacing the default ones.")] = None,
    add_sections: Annotated[str | None, Option(help="JSON object of sections added after the default ones.")] = None,
    issues_wo_labels: Annotated[bool, Option("--issues-wo-labels/--no-issues-wo-labels", help="List issues matching no section.")] = True,
    pr_wo_labels: Annotated[bool, Option("--pr-wo-labels/--no-pr-wo-labels", help="List pull requests matching no section.")] = True,
    author: Annotated[bool, Option("--author/--no-author", help="Add the author to pull request lines.")] = True,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Set the repository and changelog options for the current context."""
    configure_logging(debug)
    try:
        github_auth_type = asyncio.run(
            validate_github_authentication_configuration(
                github_pat_token=github_pat_token,
                github_app_id=github_app_id,
                github_app_private_key_path=github_app_private_key_path,
                github_app_installation_id=github_app_installation_id,
            )
        )
        options = asyncio.run(
            reconcile_changelog_options(
                cli_repo=repo,
                cli_github_site=github_site,
                cli_bug_labels=split_labels(bug_labels),
                cli_enhancement_labels=split_labels(enhancement_labels),
                cli_breaking_labels=split_labels(breaking_labels),
                cli_exclude_labels=split_labels(exclude_labels),
                cli_include_labels=split_labels(include_labels),
                cli_configure_sections=configure_sections,
                cli_add_sections=add_sections,
                cli_add_issues_wo_labels=issues_wo_labels,
                cli_add_pr_wo_labels=pr_wo_labels,
                cli_author=author,
            )
        )
    except (
        ConfigurationError,
        GitHubAuthenticationConfigurationUndefinedError,
        RequiredConfigurationElementError,
        ValueError,
    ) as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc

    ctx.ensure_object(dict)
    ctx.obj["repo"] = repo
    ctx.obj["options"] = options
    ctx.obj["adapter_kwargs"] = {
        "repo": repo,
        "github_auth_type": github_auth_type,
        "github_pat_token": github_pat_token,
        "github_app_id": github_app_id,
        "github_app_private_key_path": github_app_private_key_path,
        "github_app_installation_id": github_app_installation_id,
        "github_api_url": github_api_url,
    }


async def _create_generator(options: ChangelogOptions, adapter_kwargs: dict[str, Any]) -> ChangelogGenerator:
    adapter = await GitHubKitAdapter.create(**adapter_kwargs)
    return ChangelogGenerator(options, adapter)


@typer_app.command(name="entry")
def entry_cli(
    ctx: typer.Context,
    tag: Annotated[str, Option(help="Name of the tag to document.")],
    tag_date: Annotated[str, Option(help="Date of the tag, YYYY-MM-DD or an ISO datetime.")],
    previous_tag: Annotated[str | None, Option(help="Name of the previous tag, omit for the first release.")] = None,
    previous_tag_date: Annotated[str | None, Option(help="Date of the previous tag, YYYY-MM-DD or an ISO datetime.")] = None,
    output: Annotated[Path | None, Option(help="File to write the entry to instead of stdout.")] = None,
) -> None:
    """Generate the changelog entry of a single tag."""
    if (previous_tag is None) != (previous_tag_date is None):
        typer.echo("--previous-tag and --previous-tag-date must be given together", err=True)
        raise typer.Exit(1)

    options: ChangelogOptions = ctx.obj["options"]
    newer = ReleaseTag(name=tag, date=parse_tag_date(tag_date))
    older = ReleaseTag(name=previous_tag, date=parse_tag_date(previous_tag_date)) if previous_tag and previous_tag_date else None

    async def generate() -> str:
        generator = await _create_generator(options, ctx.obj["adapter_kwargs"])
        return await generator.generate_entry(newer, older)

    try:
        content = asyncio.run(generate())
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc
    write_output(content, output)


@typer_app.command(name="changelog")
def changelog_cli(
    ctx: typer.Context,
    tags: Annotated[list[str] | None, Option("--tag", help="Tag to document as NAME@YYYY-MM-DD, repeatable.")] = None,
    unreleased: Annotated[bool, Option("--unreleased/--no-unreleased", help="Add an entry for changes after the newest tag.")] = True,
    output: Annotated[Path | None, Option(help="File to write the changelog to instead of stdout.")] = None,
) -> None:
    """Generate a full changelog covering every given tag."""
    release_tags = [parse_tag(value) for value in tags or []]
    options: ChangelogOptions = ctx.obj["options"]
    options.unreleased = unreleased

    async def generate() -> Any:
        generator = await _create_generator(options, ctx.obj["adapter_kwargs"])
        return await generator.generate(release_tags)

    try:
        result = asyncio.run(generate())
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc

    if result.status == ChangelogStatus.ERROR:
        typer.echo(f"Failed to generate changelog: {result.error}", err=True)
        raise typer.Exit(1)
    if result.status == ChangelogStatus.NO_CONTENT:
        typer.echo(result.error, err=True)
        return
    write_output(result.content or "", output)
