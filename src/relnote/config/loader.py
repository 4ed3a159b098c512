"""Configuration loading.

Settings come from two places, merged in this order (later wins):

1. ``[tool.relnote]`` in the nearest ``pyproject.toml`` (with the repository
   URL falling back to ``[project.urls]``)
2. Environment variables (see :class:`~relnote.config.models.ReleaseSettings`)
"""

from __future__ import annotations

import logging
import subprocess
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from relnote.config.models import EngineConfig, ReleaseSettings
from relnote.core.rules import RuleTable
from relnote.exceptions import ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

TOOL_KEY = "relnote"

REPOSITORY_URL_KEYS = ("Repository", "repository", "Source", "source", "Homepage", "homepage")


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml in ``start`` or any of its parents.

    Raises:
        ConfigNotFoundError: If no pyproject.toml is found
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}", details=str(e)) from e


def extract_relnote_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.relnote]`` table, or an empty dict."""
    return dict(pyproject.get("tool", {}).get(TOOL_KEY, {}))


def get_repository_url(pyproject: dict[str, Any]) -> str | None:
    urls = pyproject.get("project", {}).get("urls", {})
    for key in REPOSITORY_URL_KEYS:
        if urls.get(key):
            return str(urls[key])
    return None


def detect_current_branch(cwd: Path | None = None) -> str | None:
    """Ask git for the current branch; ``None`` when git is unavailable."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            cwd=cwd,
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as e:
        logger.debug("Could not detect current branch: %s", e)
        return None
    return result.stdout.strip() or None


def load_config(
    path: Path | None = None,
    settings: ReleaseSettings | None = None,
) -> EngineConfig:
    """Build the engine configuration.

    Args:
        path: Project directory (or a pyproject.toml file) to read from
        settings: Environment settings; read from the process environment if omitted

    Raises:
        ConfigValidationError: If any value is invalid
    """
    settings = settings if settings is not None else ReleaseSettings()
    project_dir = path.parent if path is not None and path.is_file() else path

    pyproject: dict[str, Any] = {}
    try:
        pyproject_path = path if path is not None and path.is_file() else find_pyproject_toml(path)
        pyproject = load_pyproject_toml(pyproject_path)
        logger.debug("Loaded configuration from %s", pyproject_path)
    except ConfigNotFoundError:
        logger.debug("No pyproject.toml found, using defaults")

    values = extract_relnote_config(pyproject)

    raw_rules = values.pop("rules", None)
    if raw_rules is not None:
        values["rules"] = RuleTable.from_config(raw_rules)

    if "repository_url" not in values:
        repository_url = get_repository_url(pyproject)
        if repository_url:
            values["repository_url"] = repository_url

    # Environment overrides
    if settings.repository_url:
        values["repository_url"] = settings.repository_url
    if settings.include_commit_body is not None:
        values["include_commit_body"] = settings.include_commit_body
    values["dry_run"] = settings.dry_run or bool(values.get("dry_run", False))
    values["publish"] = settings.can_publish
    values["current_branch"] = settings.branch or detect_current_branch(project_dir)

    try:
        return EngineConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigValidationError("Invalid relnote configuration", details=str(e)) from e
