"""Configuration settings for build_router.

Uses pydantic-settings to read the CI environment. Variable names follow the
ones Bitrise exports to every step, plus the step inputs
(``supported_regions``, ``all_tag_excludes``, ...). Empty values are treated
as unset.
"""

from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from build_router.errors import ConfigurationError

DEFAULT_API_BASE_URL = "https://api.bitrise.io/v0.1"
DEFAULT_PACKAGE_BASE = "com.circles.selfcare"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables. Fields can also be
    passed by name, which is how tests and the CLI build them.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    # Invocation identity
    parent_build: str = Field(
        default="",
        validation_alias=AliasChoices("SOURCE_BITRISE_BUILD_NUMBER", "parent_build"),
        description="Build number of the router build that started this one",
    )
    app_slug: str = Field(
        default="",
        validation_alias=AliasChoices("BITRISE_APP_SLUG", "app_slug"),
        description="Bitrise app slug",
    )
    build_slug: str = Field(
        default="",
        validation_alias=AliasChoices("BITRISE_BUILD_SLUG", "build_slug"),
        description="Slug of the running build",
    )
    build_number: str = Field(
        default="",
        validation_alias=AliasChoices("BITRISE_BUILD_NUMBER", "build_number"),
        description="Number of the running build",
    )
    access_token: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("access_token"),
        description="Bitrise personal access token",
    )
    triggered_workflow: str = Field(
        default="",
        validation_alias=AliasChoices(
            "BITRISE_TRIGGERED_WORKFLOW_ID", "triggered_workflow"
        ),
        description="Workflow started for every fan-out build",
    )

    # Regions
    supported_regions: str = Field(
        default="",
        validation_alias=AliasChoices("supported_regions"),
        description="Region map, one CODE=name pair per line",
    )
    all_tag_excludes: str = Field(
        default="",
        validation_alias=AliasChoices("all_tag_excludes"),
        description="Region codes skipped by an all-regions build, one per line",
    )
    default_region: str = Field(
        default="SG",
        validation_alias=AliasChoices("default_region"),
        description="Region code built for pull requests",
    )
    is_pull_request: bool = Field(
        default=False,
        validation_alias=AliasChoices("PR", "is_pull_request"),
        description="Whether the build runs for a pull request",
    )

    # Source references
    git_tag: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BITRISE_GIT_TAG", "git_tag"),
    )
    git_branch: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BITRISE_GIT_BRANCH", "git_branch"),
    )
    git_commit: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BITRISE_GIT_COMMIT", "git_commit"),
    )
    source_dir: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BITRISE_SOURCE_DIR", "source_dir"),
    )

    # Naming
    package_base: str = Field(
        default=DEFAULT_PACKAGE_BASE,
        validation_alias=AliasChoices("package_base"),
        description="Application package identifier of a release build",
    )

    # Orchestrator API
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        validation_alias=AliasChoices("api_base_url"),
    )
    api_timeout: int = Field(
        default=30,
        ge=1,
        validation_alias=AliasChoices("api_timeout"),
        description="Timeout for orchestrator API calls (seconds)",
    )

    # Logging
    verbose: bool = Field(
        default=False,
        validation_alias=AliasChoices("verbose"),
        description="Enable debug logging",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        validation_alias=AliasChoices("log_level"),
        description="Logging level",
    )

    @field_validator("git_tag", "git_branch", "git_commit", "source_dir", mode="before")
    @classmethod
    def _empty_as_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("is_pull_request", "verbose", mode="before")
    @classmethod
    def _empty_as_false(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return False
        return value

    @field_validator("default_region", mode="after")
    @classmethod
    def _upper_region(cls, value: str) -> str:
        return value.strip().upper()

    def require(self, *names: str) -> None:
        """Raise ConfigurationError if any named field is empty.

        Args:
            names: Field names that must hold a value.

        Raises:
            ConfigurationError: Naming every missing field.
        """
        missing = []
        for name in names:
            value = getattr(self, name)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if not value:
                missing.append(name)
        if missing:
            raise ConfigurationError(
                f"Missing required setting(s): {', '.join(missing)}"
            )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON, with the access token masked.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
