"""Unit tests for the Typer command line interface."""

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Generator, Sequence
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from github_changelog.changelog.models import Item
from github_changelog.configuration.cli import parse_tag, parse_tag_date, typer_app
from github_changelog.github.adapter import in_window

runner = CliRunner()

CLEAN_ENV: dict[str, str | None] = {
    "REPO": None,
    "DEBUG": None,
    "GITHUB_API_URL": None,
    "GITHUB_SITE": None,
    "GITHUB_PAT_TOKEN": None,
    "GITHUB_APP_ID": None,
    "GITHUB_APP_PRIVATE_KEY_PATH": None,
    "GITHUB_APP_INSTALLATION_ID": None,
}

BASE_OPTIONS = ["--github-pat-token", "test-token"]


@pytest.fixture(autouse=True)
def cli_environment() -> Generator[MagicMock, None, None]:
    """Keep logging configuration and environment settings out of CLI tests."""
    with (
        patch("github_changelog.configuration.cli.configure_logging"),
        patch("github_changelog.configuration.reconcile.settings") as mock_settings,
    ):
        for name in (
            "REPO",
            "GITHUB_SITE",
            "BUG_LABELS",
            "ENHANCEMENT_LABELS",
            "BREAKING_LABELS",
            "EXCLUDE_LABELS",
            "INCLUDE_LABELS",
            "CONFIGURE_SECTIONS",
            "ADD_SECTIONS",
        ):
            setattr(mock_settings, name, None)
        yield mock_settings


@pytest.fixture
def fetcher() -> MagicMock:
    """Fetcher returning one bug fix pull request for every window."""
    pull_request = Item(
        title="Fix crash",
        number=2,
        url="https://github.com/owner/repo/pull/2",
        labels=("bug",),
        author_login="octocat",
        author_url="https://github.com/octocat",
        is_pull_request=True,
    )
    mock = MagicMock()
    mock.fetch_closed_issues_and_pull_requests = AsyncMock(return_value=([], [pull_request]))
    return mock


@pytest.fixture
def create_adapter(fetcher: MagicMock) -> Generator[AsyncMock, None, None]:
    """Patch adapter creation so no GitHub client is built."""
    with patch("github_changelog.configuration.cli.GitHubKitAdapter.create", new_callable=AsyncMock, return_value=fetcher) as create:
        yield create


def invoke(*args: str, options: Sequence[str] = ()) -> Any:
    """Run a command for owner/repo with a clean environment; group options precede the repository."""
    return runner.invoke(typer_app, [*BASE_OPTIONS, *options, "owner/repo", *args], env=CLEAN_ENV)


@pytest.mark.parametrize(
    "value,expected",
    [
        pytest.param("2017-12-04", date(2017, 12, 4), id="plain date"),
        pytest.param("2017-12-04T10:00:00", datetime(2017, 12, 4, 10, 0), id="naive datetime"),
        pytest.param("2017-12-04T10:00:00+02:00", datetime(2017, 12, 4, 8, 0, tzinfo=timezone.utc), id="aware datetime"),
    ],
)
def test_parse_tag_date(value: str, expected: date | datetime) -> None:
    """Plain dates stay dates, datetimes keep their time."""
    parsed = parse_tag_date(value)
    assert type(parsed) is type(expected)
    assert parsed == expected


def test_parse_tag() -> None:
    """Tags are split on the last @ into name and date."""
    tag = parse_tag("release@v1@2017-12-04")
    assert tag.name == "release@v1"
    assert tag.date == date(2017, 12, 4)


def test_parse_tag_without_date() -> None:
    """A tag without a date is rejected."""
    with pytest.raises(typer.BadParameter):
        parse_tag("1.0.0")


class TestEntryCommand:
    """Tests for the entry command."""

    def test_entry_printed_to_stdout(self, create_adapter: AsyncMock) -> None:
        """The entry for one tag is written to stdout."""
        result = invoke("entry", "--tag", "1.0.1", "--tag-date", "2017-12-04", "--previous-tag", "1.0.0", "--previous-tag-date", "2017-11-01")

        assert result.exit_code == 0, result.output
        assert "## [1.0.1](https://github.com/owner/repo/tree/1.0.1) (2017-12-04)" in result.output
        assert "[Full Changelog](https://github.com/owner/repo/compare/1.0.0...1.0.1)" in result.output
        assert "- Fix crash [\\#2](https://github.com/owner/repo/pull/2) ([octocat](https://github.com/octocat))" in result.output
        create_adapter.assert_awaited_once()
        assert create_adapter.await_args.kwargs["repo"] == "owner/repo"
        assert create_adapter.await_args.kwargs["github_pat_token"] == "test-token"

    def test_previous_tag_requires_date(self, create_adapter: AsyncMock) -> None:
        """The previous tag and its date must be given together."""
        result = invoke("entry", "--tag", "1.0.1", "--tag-date", "2017-12-04", "--previous-tag", "1.0.0")

        assert result.exit_code == 1
        create_adapter.assert_not_awaited()

    def test_tag_date_covers_the_whole_release_day(self, create_adapter: AsyncMock, fetcher: MagicMock) -> None:
        """A plain tag date keeps everything merged later that day in the entry."""
        result = invoke("entry", "--tag", "1.0.1", "--tag-date", "2017-12-04", "--previous-tag", "1.0.0", "--previous-tag-date", "2017-11-01")

        assert result.exit_code == 0, result.output
        since, until = fetcher.fetch_closed_issues_and_pull_requests.await_args.args
        assert until == datetime(2017, 12, 4, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert since == datetime(2017, 11, 1, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert in_window(datetime(2017, 12, 4, 15, 30, tzinfo=timezone.utc), since, until)

    def test_tag_datetime_is_an_exact_bound(self, create_adapter: AsyncMock, fetcher: MagicMock) -> None:
        """A tag given with a time ends the window at that time."""
        result = invoke("entry", "--tag", "1.0.1", "--tag-date", "2017-12-04T10:00:00")

        assert result.exit_code == 0, result.output
        assert "(2017-12-04)" in result.output
        fetcher.fetch_closed_issues_and_pull_requests.assert_awaited_once_with(None, datetime(2017, 12, 4, 10, 0, tzinfo=timezone.utc))

    def test_invalid_tag_date(self, create_adapter: AsyncMock) -> None:
        """Tag dates must be ISO dates or datetimes."""
        result = invoke("entry", "--tag", "1.0.1", "--tag-date", "04/12/2017")

        assert result.exit_code == 2
        create_adapter.assert_not_awaited()

    def test_label_and_author_options(self, create_adapter: AsyncMock) -> None:
        """Label options are split on commas and the author can be left out."""
        result = invoke("entry", "--tag", "1.0.0", "--tag-date", "2017-12-04", options=["--bug-labels", "defect, crash", "--no-author"])

        assert result.exit_code == 0, result.output
        assert "**Fixed bugs:**" not in result.output
        assert "**Merged pull requests:**" in result.output
        assert "([octocat]" not in result.output


class TestChangelogCommand:
    """Tests for the changelog command."""

    def test_changelog_written_to_file(self, create_adapter: AsyncMock, tmp_path: Path) -> None:
        """A full changelog is written to the output file, newest tag first."""
        output = tmp_path / "CHANGELOG.md"

        result = invoke("changelog", "--tag", "1.0.0@2017-11-01", "--tag", "1.0.1@2017-12-04", "--no-unreleased", "--output", str(output))

        assert result.exit_code == 0, result.output
        content = output.read_text(encoding="utf-8")
        assert content.startswith("# Changelog\n\n## [1.0.1](https://github.com/owner/repo/tree/1.0.1) (2017-12-04)")
        assert content.index("## [1.0.1]") < content.index("## [1.0.0]")
        assert "Unreleased" not in content

    def test_changelog_with_unreleased_entry(self, create_adapter: AsyncMock) -> None:
        """Changes after the newest tag are listed first."""
        result = invoke("changelog", "--tag", "1.0.0@2017-11-01")

        assert result.exit_code == 0, result.output
        assert "## [Unreleased](https://github.com/owner/repo/tree/HEAD)" in result.output

    def test_invalid_tag_format(self, create_adapter: AsyncMock) -> None:
        """Tags must be given as NAME@YYYY-MM-DD."""
        result = invoke("changelog", "--tag", "1.0.0")

        assert result.exit_code == 2
        create_adapter.assert_not_awaited()

    def test_nothing_to_document(self, create_adapter: AsyncMock, fetcher: MagicMock) -> None:
        """No tags and no unreleased changes is not an error."""
        fetcher.fetch_closed_issues_and_pull_requests.return_value = ([], [])

        result = invoke("changelog")

        assert result.exit_code == 0
        assert "No tags or unreleased changes to document" in result.output

    def test_fetch_failure_exits_with_error(self, create_adapter: AsyncMock, fetcher: MagicMock) -> None:
        """A failure while fetching exits with status 1."""
        fetcher.fetch_closed_issues_and_pull_requests.side_effect = RuntimeError("API unavailable")

        result = invoke("changelog", "--tag", "1.0.0@2017-11-01")

        assert result.exit_code == 1
        assert "API unavailable" in result.output


class TestConfigurationErrors:
    """Tests for configuration problems reported by the CLI callback."""

    def test_missing_authentication(self, create_adapter: AsyncMock) -> None:
        """Without credentials the CLI exits before any request."""
        result = runner.invoke(typer_app, ["owner/repo", "entry", "--tag", "1.0.0", "--tag-date", "2017-12-04"], env=CLEAN_ENV)

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        create_adapter.assert_not_awaited()

    def test_malformed_sections(self, create_adapter: AsyncMock) -> None:
        """Malformed section JSON is reported as a configuration error."""
        result = invoke("entry", "--tag", "1.0.0", "--tag-date", "2017-12-04", options=["--configure-sections", "{ not json"])

        assert result.exit_code == 1
        assert "There was a problem parsing your JSON string for sections" in result.output
        create_adapter.assert_not_awaited()

    def test_malformed_repository(self, create_adapter: AsyncMock) -> None:
        """The repository must be given as owner/repo."""
        result = runner.invoke(
            typer_app,
            [*BASE_OPTIONS, "owner", "entry", "--tag", "1.0.0", "--tag-date", "2017-12-04"],
            env=CLEAN_ENV,
        )

        assert result.exit_code == 1
        assert "Configuration error" in result.output
