"""Implementation of the 'rules' and 'config' commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.table import Table

from relnote.config import load_config
from relnote.exceptions import RelnoteError

if TYPE_CHECKING:
    from rich.console import Console

    from relnote.core.rules import RuleTable


def build_rules_table(table: RuleTable) -> Table:
    out = Table(title="Classification rules (first match wins)")
    out.add_column("#", justify="right", style="dim")
    out.add_column("Match")
    out.add_column("Section")
    out.add_column("Icon")
    out.add_column("Severity")
    out.add_column("Hidden")

    for index, rule in enumerate(table, start=1):
        out.add_row(
            str(index),
            rule.describe(),
            rule.section or "[dim]-[/]",
            rule.icon,
            str(rule.severity) if rule.severity is not None else "[dim]-[/]",
            "yes" if rule.hidden else "",
        )
    return out


def run_rules(project_path: str | None, console: Console, err_console: Console) -> None:
    """Print the rule table and its derived views."""
    try:
        config = load_config(Path(project_path) if project_path else None)
    except RelnoteError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e

    table = config.rules
    console.print(build_rules_table(table))
    console.print(
        f"[dim]{len(table.severity_rules)} severity rules, "
        f"{len(table.section_rules)} section rules[/]"
    )


def run_show_config(project_path: str | None, console: Console, err_console: Console) -> None:
    """Print the effective configuration, including branches and pipeline steps."""
    try:
        config = load_config(Path(project_path) if project_path else None)
    except RelnoteError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e

    out = Table(show_header=False, box=None)
    out.add_column("Key", style="cyan")
    out.add_column("Value")
    out.add_row("dry run", str(config.dry_run))
    out.add_row("branches", ", ".join(config.branches))
    out.add_row("steps", ", ".join(config.steps))
    out.add_row("repository", config.repository_url or "[dim]-[/]")
    out.add_row("commit bodies", str(config.include_commit_body))
    out.add_row("group by", config.group_by)
    out.add_row("changelog", str(config.changelog_file))
    console.print(out)
