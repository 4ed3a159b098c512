"""Shared fixtures for relnote tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from relnote.config.models import EngineConfig
from relnote.core.changelog import ChangelogRenderer
from relnote.core.commits import RawCommit, classify_commit
from relnote.core.enrich import EnrichedCommit, enrich_commit

ENV_VARS = (
    "RELNOTE_DRY_RUN",
    "DRY_RUN",
    "RELNOTE_REPOSITORY_URL",
    "REPOSITORY_URL",
    "RELNOTE_COMMIT_BODY",
    "CI",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "GITHUB_REF_NAME",
    "BRANCH_NAME",
)

REPO_URL = "https://github.com/acme/widgets"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the process environment (e.g. a CI runner) out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_commit() -> Callable[..., RawCommit]:
    """Build a RawCommit from keyword fields."""

    def _make(**fields: Any) -> RawCommit:
        return RawCommit.model_validate(fields)

    return _make


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(repository_url=REPO_URL, current_branch="feature/x")


@pytest.fixture
def make_enriched(engine_config: EngineConfig) -> Callable[..., EnrichedCommit]:
    """Classify and enrich a commit built from keyword fields."""

    def _make(**fields: Any) -> EnrichedCommit:
        commit = RawCommit.model_validate(fields)
        return EnrichedCommit(
            classified=classify_commit(commit, engine_config.rules),
            details=enrich_commit(commit, repository_url=engine_config.repository_url),
        )

    return _make


@pytest.fixture(scope="session")
def renderer() -> ChangelogRenderer:
    return ChangelogRenderer()


@pytest.fixture
def feat_commit(make_commit: Callable[..., RawCommit]) -> RawCommit:
    return make_commit(hash="feat1234567890", header="feat: add user authentication")


@pytest.fixture
def fix_commit(make_commit: Callable[..., RawCommit]) -> RawCommit:
    return make_commit(hash="fix12345678901", header="fix(core): handle null response")


@pytest.fixture
def breaking_commit(make_commit: Callable[..., RawCommit]) -> RawCommit:
    return make_commit(hash="brk12345678901", header="feat!: remove legacy API")


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    """Commit records as a changelog parser would emit them."""
    return [
        {
            "hash": "a1b2c3d4e5f60718293a",
            "type": "feat",
            "scope": "api",
            "subject": "add pagination",
            "header": "feat(api): add pagination",
            "body": "Adds cursor based pagination.",
            "author": {"name": "Ada", "email": "ada@example.com", "date": "2024-03-01T10:00:00Z"},
            "committer": {
                "name": "Ada",
                "email": "ada@example.com",
                "date": "2024-03-01T10:00:00Z",
            },
            "references": [{"issue": "12", "prefix": "#"}],
        },
        {
            "hash": "b2c3d4e5f60718293a4b",
            "type": "fix",
            "subject": "handle empty payload",
            "header": "fix: handle empty payload",
            "committer": {"date": "2024-03-02T10:00:00Z"},
        },
        {
            "hash": "c3d4e5f60718293a4b5c",
            "type": "docs",
            "subject": "update readme",
            "header": "docs: update readme",
        },
        {
            "hash": "d4e5f60718293a4b5c6d",
            "type": "ci",
            "subject": "cache dependencies",
            "header": "ci: cache dependencies",
        },
    ]
