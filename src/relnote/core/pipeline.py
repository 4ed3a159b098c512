"""End-to-end release computation.

raw commits -> classify + enrich -> release decision
                                 -> groups -> rendered notes
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from relnote.core.changelog import ChangelogRenderer, ReleaseInfo
from relnote.core.commits import RawCommit, classify_commit, decide_release
from relnote.core.enrich import EnrichedCommit, enrich_commit
from relnote.core.grouping import CommitGroup, NoteGroup, build_groups, build_note_groups

if TYPE_CHECKING:
    from relnote.config.models import EngineConfig
    from relnote.core.commits import ReleaseDecision
    from relnote.core.version import Version

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReleaseResult:
    decision: ReleaseDecision
    release: ReleaseInfo
    commits: tuple[EnrichedCommit, ...]
    groups: tuple[CommitGroup, ...]
    note_groups: tuple[NoteGroup, ...]
    notes: str


def prepare_commits(commits: Sequence[RawCommit], config: EngineConfig) -> list[EnrichedCommit]:
    """Classify and enrich every commit, keeping the input order."""
    return [
        EnrichedCommit(
            classified=classify_commit(commit, config.rules),
            details=enrich_commit(
                commit,
                repository_url=config.repository_url,
                include_body=config.include_commit_body,
                skip_markers=config.skip_notes_markers,
            ),
        )
        for commit in commits
    ]


def generate_release(
    commits: Sequence[RawCommit],
    config: EngineConfig,
    *,
    current_version: Version | None = None,
    version_override: Version | None = None,
    release_date: datetime | None = None,
    renderer: ChangelogRenderer | None = None,
) -> ReleaseResult:
    """Compute the release decision and render the release notes.

    Args:
        commits: Commits since the last release, in log order
        config: Engine configuration
        current_version: Latest released version, if any
        version_override: Use this version instead of the computed one
        release_date: Date shown in the notes (defaults to now)
        renderer: Renderer to use; a default one is created if omitted
    """
    renderer = renderer or ChangelogRenderer(config.template_dir)

    enriched = prepare_commits(commits, config)
    decision = decide_release([c.classified for c in enriched], current_version)
    logger.debug("%d commits, bump=%s", len(enriched), decision.bump)

    version = version_override or decision.next_version
    release = ReleaseInfo(
        version=str(version) if version is not None else "",
        date=release_date,
        repository_url=config.repository_url,
        previous_tag=f"{config.tag_prefix}{current_version}" if current_version else None,
        tag_prefix=config.tag_prefix,
    )

    groups = build_groups(
        enriched,
        config.rules,
        group_by=config.group_by,
        include_unclassified=config.include_unclassified,
    )
    note_groups = build_note_groups(groups)
    notes = renderer.render(groups, note_groups, release, decision=decision)

    return ReleaseResult(
        decision=decision,
        release=release,
        commits=tuple(enriched),
        groups=tuple(groups),
        note_groups=tuple(note_groups),
        notes=notes,
    )
