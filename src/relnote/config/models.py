"""Configuration models for relnote.

Two layers:

- :class:`ReleaseSettings` reads the process environment once, at startup.
- :class:`EngineConfig` is the explicit, immutable configuration passed into
  the pipeline. Core stages never look at the environment themselves.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from relnote.core.enrich import DEFAULT_SKIP_NOTES_MARKERS, normalize_repository_url
from relnote.core.rules import DEFAULT_RULE_TABLE, RuleTable

# Steps always run
NOTES_STEPS: tuple[str, ...] = ("release-notes", "changelog")
# Steps that need publishing credentials
PUBLISH_STEPS: tuple[str, ...] = ("git", "package", "github")


class ReleaseSettings(BaseSettings):
    """Settings read from environment variables."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    dry_run: bool = Field(
        default=False,
        validation_alias=AliasChoices("RELNOTE_DRY_RUN", "DRY_RUN"),
    )
    repository_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("RELNOTE_REPOSITORY_URL", "REPOSITORY_URL"),
    )
    include_commit_body: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("RELNOTE_COMMIT_BODY"),
    )
    ci: bool = Field(default=False, validation_alias=AliasChoices("CI"))
    github_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_TOKEN", "GH_TOKEN"),
    )
    branch: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_REF_NAME", "BRANCH_NAME"),
    )

    @property
    def can_publish(self) -> bool:
        return self.ci and self.github_token is not None


class EngineConfig(BaseModel):
    """Immutable configuration for one release computation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    repository_url: str = ""
    include_commit_body: bool = True
    skip_notes_markers: tuple[str, ...] = DEFAULT_SKIP_NOTES_MARKERS
    group_by: Literal["section", "type"] = "section"
    include_unclassified: bool = False
    release_branch: str = "main"
    tag_prefix: str = "v"
    dry_run: bool = False
    current_branch: str | None = None
    publish: bool = False
    changelog_file: Path = Path("CHANGELOG.md")
    template_dir: Path | None = None
    rules: RuleTable = Field(default_factory=lambda: DEFAULT_RULE_TABLE)

    @field_validator("repository_url")
    @classmethod
    def _normalize_url(cls, value: str) -> str:
        return normalize_repository_url(value)

    @property
    def branches(self) -> list[str]:
        """Branches a release may be cut from."""
        if self.dry_run:
            return [self.current_branch or self.release_branch]
        return [self.release_branch]

    @property
    def steps(self) -> list[str]:
        """Pipeline steps to run, in order."""
        steps = list(NOTES_STEPS)
        if self.publish:
            steps.extend(PUBLISH_STEPS)
        return steps

    @property
    def writes_changelog(self) -> bool:
        return not self.dry_run and "changelog" in self.steps
