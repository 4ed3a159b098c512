"""Command-line entry point."""

from __future__ import annotations

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from relnote import __version__
from relnote.cli.commands.generate import run_generate
from relnote.cli.commands.rules import run_rules, run_show_config

app = typer.Typer(
    name="relnote",
    help="Release notes and version bumps from conventional commits.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

ProjectOption = Annotated[
    str | None,
    typer.Option("--project", "-p", help="Project directory (defaults to the current directory)."),
]


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"relnote {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version."),
    ] = False,
) -> None:
    configure_logging(verbose)


@app.command()
def generate(
    commits: Annotated[
        str,
        typer.Argument(help="JSON file with commit records, or '-' for stdin."),
    ] = "-",
    project: ProjectOption = None,
    current_version: Annotated[
        str | None,
        typer.Option("--current-version", "-c", help="Latest released version."),
    ] = None,
    version_override: Annotated[
        str | None,
        typer.Option(
            "--version-override", help="Release this version instead of the computed one."
        ),
    ] = None,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Write the rendered notes to this file."),
    ] = None,
    changelog_file: Annotated[
        str | None,
        typer.Option("--changelog-file", help="Changelog to update instead of the configured one."),
    ] = None,
    write: Annotated[
        bool,
        typer.Option("--write/--no-write", help="Prepend the notes to the changelog file."),
    ] = False,
) -> None:
    """Decide the release bump and render release notes."""
    run_generate(
        commits_source=commits,
        project_path=project,
        current_version=current_version,
        version_override=version_override,
        output=output,
        write=write,
        console=console,
        err_console=err_console,
        changelog_file=changelog_file,
    )


@app.command()
def rules(project: ProjectOption = None) -> None:
    """Show the classification rule table."""
    run_rules(project, console, err_console)


@app.command("config")
def show_config(project: ProjectOption = None) -> None:
    """Show the effective configuration."""
    run_show_config(project, console, err_console)
