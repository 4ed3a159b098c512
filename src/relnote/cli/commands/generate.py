"""Implementation of the 'generate' command.

The generate command computes the release decision for a set of commits and
renders the release notes. It writes the changelog only outside dry runs.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.markdown import Markdown
from rich.panel import Panel

from relnote.config import load_config
from relnote.core.changelog import ChangelogRenderer, write_changelog
from relnote.core.commits import parse_commits
from relnote.core.pipeline import generate_release
from relnote.core.version import Version
from relnote.exceptions import CommitParseError, RelnoteError

if TYPE_CHECKING:
    from rich.console import Console


def read_commit_records(source: str | None) -> list[dict[str, Any]]:
    """Read commit records from a JSON file, or stdin for ``-``/``None``.

    The document is either a list of commits or an object with a
    ``commits`` list.

    Raises:
        CommitParseError: If the document cannot be read or has the wrong shape
    """
    try:
        if source in (None, "-"):
            text = sys.stdin.read()
        else:
            text = Path(source).read_text(encoding="utf-8")
    except OSError as e:
        raise CommitParseError(f"Could not read commits from {source}", details=str(e)) from e

    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CommitParseError("Commits input is not valid JSON", details=str(e)) from e

    if isinstance(data, dict):
        data = data.get("commits", [])
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise CommitParseError("Commits input must be a list of objects")
    return data


def run_generate(
    commits_source: str | None,
    project_path: str | None,
    current_version: str | None,
    version_override: str | None,
    output: str | None,
    write: bool,
    console: Console,
    err_console: Console,
    changelog_file: str | None = None,
) -> None:
    """Run the generate command.

    Args:
        commits_source: JSON file with commit records, or ``-`` for stdin
        project_path: Optional path to the project directory
        current_version: Latest released version (e.g. "1.2.3")
        version_override: Manual version override (e.g. "2.0.0")
        output: Optional file to write the rendered notes to
        write: Whether to prepend the notes to the changelog file
        console: Console for standard output
        err_console: Console for error output
        changelog_file: Changelog path overriding the configured one
    """
    project_dir = Path(project_path) if project_path else Path.cwd()

    # Load configuration and templates before touching any commit
    try:
        config = load_config(project_dir)
        renderer = ChangelogRenderer(config.template_dir)
    except RelnoteError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e

    try:
        current = Version.parse(current_version) if current_version else None
        override = Version.parse(version_override) if version_override else None
    except RelnoteError as e:
        err_console.print(f"[red]Invalid version format:[/] {e}")
        raise SystemExit(1) from e

    try:
        commits = parse_commits(read_commit_records(commits_source))
    except RelnoteError as e:
        err_console.print(f"[red]Error reading commits:[/] {e}")
        raise SystemExit(1) from e

    if not commits:
        console.print("[yellow]No commits found since last release. Nothing to do.[/]")

    result = generate_release(
        commits,
        config,
        current_version=current,
        version_override=override,
        renderer=renderer,
    )
    decision = result.decision

    mode_str = "[yellow]DRY-RUN[/]" if config.dry_run else "[green]RELEASE[/]"
    if decision.should_release:
        target = result.release.version or "?"
        source = str(decision.current_version) if decision.current_version else "first release"
        console.print(
            f"\n{mode_str} - [bold]{decision.bump}[/] bump: "
            f"[cyan]{source}[/] -> [green]{target}[/]\n"
        )
    else:
        console.print(
            f"\n{mode_str} - [yellow]No releasable changes found "
            "(only non-release commit types).[/]\n"
        )

    console.print(Panel(Markdown(result.notes), title="Release Notes", border_style="cyan"))

    if output:
        Path(output).write_text(result.notes, encoding="utf-8")
        console.print(f"  [green]✓[/] Wrote release notes to {output}")

    if not write:
        return
    if not config.writes_changelog:
        console.print("[dim]Dry run: changelog not written.[/]")
        return
    if not decision.should_release and override is None:
        return

    changelog_path = Path(changelog_file) if changelog_file else project_dir / config.changelog_file
    try:
        write_changelog(changelog_path, result.notes)
    except OSError as e:
        err_console.print(f"[red]Error writing changelog:[/] {e}")
        raise SystemExit(1) from e
    console.print(f"  [green]✓[/] Updated {changelog_path}")
