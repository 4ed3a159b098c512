"""Release note rendering via Jinja2 templates.

The notes are composed from a fixed set of named fragments, one UTF-8 file
per fragment under ``relnote/templates`` (or a custom directory with the
same layout). All fragments are loaded when the renderer is created, so a
missing fragment fails before any commit is processed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from jinja2 import (
    ChainableUndefined,
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    pass_context,
)
from jinja2.runtime import Context

from relnote.core.enrich import normalize_repository_url
from relnote.exceptions import TemplateError, TemplateNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

TEMPLATE_SUFFIX = ".md.j2"

# Composition root first, then the partials it includes
FRAGMENTS: tuple[str, ...] = (
    "template",
    "header",
    "group",
    "commit",
    "note_group",
    "note",
    "footer",
)

ISO_FORMATS = frozenset({"iso", "date"})

CHANGELOG_TITLE = "# Changelog"


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """Top-level metadata of the release being rendered."""

    version: str = ""
    date: datetime | None = None
    repository_url: str = ""
    previous_tag: str | None = None
    tag_prefix: str = "v"

    @property
    def current_tag(self) -> str:
        return f"{self.tag_prefix}{self.version}" if self.version else ""

    @property
    def compare_url(self) -> str:
        base = normalize_repository_url(self.repository_url)
        if not base or not self.previous_tag or not self.current_tag:
            return ""
        return f"{base}/compare/{self.previous_tag}...{self.current_tag}"


def _release_date(candidate: Any) -> datetime | None:
    if candidate is None:
        return None
    if isinstance(candidate, Mapping):
        value = candidate.get("date")
    else:
        value = getattr(candidate, "date", None)
    return value if isinstance(value, datetime) else None


def resolve_release_date(*candidates: Any, now: datetime | None = None) -> datetime:
    """Return the first release date found among ``candidates``.

    Candidates are release metadata objects or mappings carrying a ``date``,
    nearest first. Falls back to ``now`` (current UTC time by default).
    """
    for candidate in candidates:
        date = _release_date(candidate)
        if date is not None:
            return date
    return now or datetime.now(UTC)


def format_release_date(date: datetime, fmt: str | None = "iso") -> str:
    """Format a release timestamp as ``YYYY-MM-DD`` or as the raw ISO timestamp."""
    if fmt in ISO_FORMATS:
        return date.strftime("%Y-%m-%d")
    return date.isoformat()


@pass_context
def _format_date(context: Context, fmt: str | None = "iso", release: Any = None) -> str:
    return format_release_date(resolve_release_date(release, context.get("next_release")), fmt)


class ChangelogRenderer:
    """Render grouped commits into release notes text."""

    def __init__(self, template_dir: Path | None = None) -> None:
        self.template_dir = template_dir or DEFAULT_TEMPLATE_DIR
        self._env = Environment(
            loader=FileSystemLoader(str(self.template_dir), encoding="utf-8"),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=ChainableUndefined,
        )
        self._env.globals["format_date"] = _format_date
        self._templates = {name: self._load(name) for name in FRAGMENTS}
        logger.debug("Loaded %d template fragments from %s", len(FRAGMENTS), self.template_dir)

    def _load(self, name: str) -> Template:
        filename = f"{name}{TEMPLATE_SUFFIX}"
        try:
            return self._env.get_template(filename)
        except TemplateNotFound as e:
            raise TemplateNotFoundError(
                f"Template fragment '{name}' not found",
                details=str(self.template_dir / filename),
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateNotFoundError(
                f"Template fragment '{name}' could not be read",
                details=str(e),
            ) from e
        except TemplateSyntaxError as e:
            raise TemplateError(
                f"Template fragment '{name}' is invalid: {e.message}",
                details=f"{filename}:{e.lineno}",
            ) from e

    def render(
        self,
        groups: Sequence[Any],
        note_groups: Sequence[Any] = (),
        release: ReleaseInfo | None = None,
        **extra: Any,
    ) -> str:
        """Render the composition root with the given groups and release metadata."""
        context = {
            "groups": list(groups),
            "note_groups": list(note_groups),
            "next_release": release or ReleaseInfo(),
            **extra,
        }
        return self._templates["template"].render(context).strip() + "\n"


def write_changelog(path: Path, content: str) -> Path:
    """Prepend a rendered entry to a changelog file, creating it if needed.

    A leading ``# Changelog`` title stays at the top of the file.
    """
    entry = content.strip() + "\n"
    if path.exists():
        existing = path.read_text(encoding="utf-8")
        if existing.startswith(CHANGELOG_TITLE):
            rest = existing[len(CHANGELOG_TITLE) :].lstrip("\n")
            new_content = f"{CHANGELOG_TITLE}\n\n{entry}\n{rest}"
        else:
            new_content = f"{entry}\n{existing}"
    else:
        new_content = f"{CHANGELOG_TITLE}\n\n{entry}"
    path.write_text(new_content.rstrip("\n") + "\n", encoding="utf-8")
    return path
