"""Tests for the relnote command line."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from relnote import __version__
from relnote.cli.app import app
from relnote.cli.commands.generate import read_commit_records
from relnote.exceptions import CommitParseError

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner()

PYPROJECT = """\
[project]
name = "widgets"
version = "1.2.3"

[project.urls]
Repository = "https://github.com/acme/widgets"
"""


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("BRANCH_NAME", "main")
    (tmp_path / "pyproject.toml").write_text(PYPROJECT, encoding="utf-8")
    return tmp_path


@pytest.fixture
def commits_file(tmp_path: Path, sample_records) -> Path:
    path = tmp_path / "commits.json"
    path.write_text(json.dumps(sample_records), encoding="utf-8")
    return path


class TestReadCommitRecords:
    """Tests for read_commit_records()."""

    def test_list(self, tmp_path: Path):
        """A JSON list is returned as is."""
        path = tmp_path / "c.json"
        path.write_text('[{"type": "feat"}]', encoding="utf-8")

        assert read_commit_records(str(path)) == [{"type": "feat"}]

    def test_object_with_commits(self, tmp_path: Path):
        """An object with a commits key is unwrapped."""
        path = tmp_path / "c.json"
        path.write_text('{"commits": [{"type": "fix"}]}', encoding="utf-8")

        assert read_commit_records(str(path)) == [{"type": "fix"}]

    def test_empty_file(self, tmp_path: Path):
        """An empty document means no commits."""
        path = tmp_path / "c.json"
        path.write_text("\n", encoding="utf-8")

        assert read_commit_records(str(path)) == []

    @pytest.mark.parametrize("text", ["{not json", '"just a string"', "[1, 2]"])
    def test_invalid(self, tmp_path: Path, text: str):
        """Malformed documents raise CommitParseError."""
        path = tmp_path / "c.json"
        path.write_text(text, encoding="utf-8")

        with pytest.raises(CommitParseError):
            read_commit_records(str(path))

    def test_missing_file(self, tmp_path: Path):
        """A missing file raises CommitParseError."""
        with pytest.raises(CommitParseError):
            read_commit_records(str(tmp_path / "missing.json"))


class TestGenerateCommand:
    """Tests for the generate command."""

    def test_release(self, project: Path, commits_file: Path):
        """A feat commit produces a minor bump."""
        result = runner.invoke(
            app, ["generate", str(commits_file), "--project", str(project), "-c", "1.2.3"]
        )

        assert result.exit_code == 0, result.output
        assert "RELEASE" in result.output
        assert "minor" in result.output
        assert "1.3.0" in result.output
        assert "add pagination" in result.output

    def test_stdin(self, project: Path, sample_records):
        """Commits can be piped in on stdin."""
        result = runner.invoke(
            app,
            ["generate", "-", "--project", str(project)],
            input=json.dumps(sample_records),
        )

        assert result.exit_code == 0, result.output
        assert "first release" in result.output

    def test_no_commits(self, project: Path):
        """An empty commit list is not an error."""
        result = runner.invoke(app, ["generate", "--project", str(project)], input="[]")

        assert result.exit_code == 0, result.output
        assert "Nothing to do" in result.output
        assert "No releasable changes" in result.output

    def test_write_changelog(self, project: Path, commits_file: Path):
        """--write prepends the notes to CHANGELOG.md."""
        result = runner.invoke(
            app,
            ["generate", str(commits_file), "--project", str(project), "-c", "1.2.3", "--write"],
        )

        assert result.exit_code == 0, result.output
        changelog = (project / "CHANGELOG.md").read_text(encoding="utf-8")
        assert changelog.startswith(
            "# Changelog\n\n## [1.3.0](https://github.com/acme/widgets/compare/v1.2.3...v1.3.0)"
        )

    def test_custom_changelog_file(self, project: Path, commits_file: Path):
        """--changelog-file overrides the configured changelog path."""
        target = project / "docs" / "CHANGES.md"
        target.parent.mkdir()

        result = runner.invoke(
            app,
            [
                "generate",
                str(commits_file),
                "--project",
                str(project),
                "--write",
                "--changelog-file",
                str(target),
            ],
        )

        assert result.exit_code == 0, result.output
        assert target.read_text(encoding="utf-8").startswith("# Changelog\n\n## 1.0.0")
        assert not (project / "CHANGELOG.md").exists()

    def test_dry_run_does_not_write(
        self, project: Path, commits_file: Path, monkeypatch: pytest.MonkeyPatch
    ):
        """Dry runs never touch the changelog."""
        monkeypatch.setenv("RELNOTE_DRY_RUN", "true")

        result = runner.invoke(
            app, ["generate", str(commits_file), "--project", str(project), "--write"]
        )

        assert result.exit_code == 0, result.output
        assert "DRY-RUN" in result.output
        assert not (project / "CHANGELOG.md").exists()

    def test_output_file(self, project: Path, commits_file: Path):
        """--output writes the rendered markdown."""
        out = project / "notes.md"

        result = runner.invoke(
            app,
            ["generate", str(commits_file), "--project", str(project), "-o", str(out)],
        )

        assert result.exit_code == 0, result.output
        text = out.read_text(encoding="utf-8")
        assert text.startswith("## 1.0.0 (")
        assert "### ✨ Features" in text

    def test_invalid_version(self, project: Path, commits_file: Path):
        """A malformed current version exits with an error."""
        result = runner.invoke(
            app, ["generate", str(commits_file), "--project", str(project), "-c", "one"]
        )

        assert result.exit_code == 1
        assert "Invalid version format" in result.output

    def test_invalid_commits(self, project: Path):
        """Malformed commit input exits with an error."""
        result = runner.invoke(app, ["generate", "--project", str(project)], input="{oops")

        assert result.exit_code == 1
        assert "Error reading commits" in result.output

    def test_invalid_config(self, tmp_path: Path, commits_file: Path):
        """Invalid configuration exits before any commit is read."""
        (tmp_path / "pyproject.toml").write_text(
            '[tool.relnote]\ngroup_by = "author"\n', encoding="utf-8"
        )

        result = runner.invoke(app, ["generate", str(commits_file), "--project", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error loading config" in result.output


class TestOtherCommands:
    """Tests for rules, config and --version."""

    def test_rules(self, project: Path):
        """The rule table lists every default rule."""
        result = runner.invoke(app, ["rules", "--project", str(project)])

        assert result.exit_code == 0, result.output
        assert "Features" in result.output
        assert "Chores" in result.output
        assert "severity rules" in result.output

    def test_config(self, project: Path):
        """The effective configuration shows branches and steps."""
        result = runner.invoke(app, ["config", "--project", str(project)])

        assert result.exit_code == 0, result.output
        assert "release-notes, changelog" in result.output
        assert "main" in result.output

    def test_config_publish_steps(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        """CI credentials add the publishing steps."""
        monkeypatch.setenv("CI", "true")
        monkeypatch.setenv("GITHUB_TOKEN", "secret")

        result = runner.invoke(app, ["config", "--project", str(project)])

        assert result.exit_code == 0, result.output
        assert "github" in result.output

    def test_version(self):
        """--version prints the package version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
