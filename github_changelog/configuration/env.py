"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_SITE: str | None = None
    REPO: str | None = None

    # GitHub PAT settings
    GITHUB_PAT_TOKEN: str | None = None

    # GitHub App settings
    GITHUB_APP_ID: int | None = None
    GITHUB_APP_PRIVATE_KEY_PATH: Path | None = None
    GITHUB_APP_INSTALLATION_ID: int | None = None

    # Changelog label rules (JSON lists, e.g. BUG_LABELS='["bug", "defect"]')
    BUG_LABELS: list[str] | None = None
    ENHANCEMENT_LABELS: list[str] | None = None
    BREAKING_LABELS: list[str] | None = None
    EXCLUDE_LABELS: list[str] | None = None
    INCLUDE_LABELS: list[str] | None = None

    # Section overrides as JSON objects
    CONFIGURE_SECTIONS: str | None = None
    ADD_SECTIONS: str | None = None


settings = Settings()
