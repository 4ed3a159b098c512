"""Grouping and ordering of enriched commits into release note sections.

Grouping happens in two passes. The first pass buckets commits by a working
title (the rule section, or the raw commit type when grouping by type). The
second pass reconciles each working title against the rule table so the
final title and icon are always the canonical ones.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from functools import cmp_to_key
from typing import Literal

from relnote.core.commits import Note
from relnote.core.enrich import EnrichedCommit
from relnote.core.rules import RuleTable

logger = logging.getLogger(__name__)

GroupBy = Literal["section", "type"]

UNCLASSIFIED_TITLE = "Other Changes"


@dataclass(frozen=True, slots=True)
class CommitGroup:
    title: str
    icon: str
    commits: tuple[EnrichedCommit, ...]


@dataclass(frozen=True, slots=True)
class NoteEntry:
    note: Note
    commit: EnrichedCommit

    @property
    def title(self) -> str:
        return self.note.title

    @property
    def text(self) -> str:
        return self.note.text


@dataclass(frozen=True, slots=True)
class NoteGroup:
    title: str
    notes: tuple[NoteEntry, ...]


def _timestamp(value: datetime | None) -> float:
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.timestamp()


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def compare_commits(a: EnrichedCommit, b: EnrichedCommit) -> int:
    """Order two commits within a group.

    1. Commits without a scope come first.
    2. Commits with the same scope are ordered by date (oldest first).
    3. Otherwise commits are ordered by scope.
    """
    a_scoped = bool(a.scope)
    b_scoped = bool(b.scope)
    if a_scoped != b_scoped:
        return 1 if a_scoped else -1
    if a.scope == b.scope:
        return _cmp(_timestamp(a.sort_date), _timestamp(b.sort_date))
    return _cmp(a.scope, b.scope)


def sort_commits(commits: Iterable[EnrichedCommit]) -> list[EnrichedCommit]:
    # sorted() is stable: full ties keep their input order
    return sorted(commits, key=cmp_to_key(compare_commits))


def is_visible(commit: EnrichedCommit, *, include_unclassified: bool = False) -> bool:
    if not commit.classified.is_classified:
        return include_unclassified
    return not commit.hidden and bool(commit.section)


def working_title(commit: EnrichedCommit, group_by: GroupBy = "section") -> str:
    if group_by == "type" or not commit.classified.is_classified:
        return commit.type or UNCLASSIFIED_TITLE
    return commit.section or UNCLASSIFIED_TITLE


def group_commits(
    commits: Iterable[EnrichedCommit],
    *,
    group_by: GroupBy = "section",
    include_unclassified: bool = False,
) -> list[CommitGroup]:
    """Bucket visible commits by working title, in discovery order.

    Hidden commits are dropped here; they still count for the release
    decision, which is computed separately.
    """
    buckets: dict[str, list[EnrichedCommit]] = {}
    icons: dict[str, str] = {}
    for commit in commits:
        if not is_visible(commit, include_unclassified=include_unclassified):
            continue
        title = working_title(commit, group_by)
        buckets.setdefault(title, []).append(commit)
        icons.setdefault(title, commit.icon)
    return [CommitGroup(title=t, icon=icons[t], commits=tuple(c)) for t, c in buckets.items()]


def reconcile_group(group: CommitGroup, table: RuleTable) -> CommitGroup:
    """Replace a working title and icon with the canonical ones from the rule table."""
    types = [c.type for c in group.commits if c.type]
    rule = table.find_section(group.title, types)
    if rule is None or rule.section is None:
        return replace(group, title=group.title.strip())
    if rule.section != group.title:
        logger.debug("Group %r reconciled to section %r", group.title, rule.section)
    return replace(group, title=rule.section, icon=rule.icon)


def merge_groups(groups: Iterable[CommitGroup]) -> list[CommitGroup]:
    """Merge groups that ended up with the same title after reconciliation."""
    merged: dict[str, CommitGroup] = {}
    for group in groups:
        existing = merged.get(group.title)
        if existing is None:
            merged[group.title] = group
        else:
            merged[group.title] = replace(existing, commits=existing.commits + group.commits)
    return list(merged.values())


def order_groups(groups: Sequence[CommitGroup], table: RuleTable) -> list[CommitGroup]:
    """Order groups by section declaration order; unknown titles go last."""
    last = len(table.section_rules)

    def position(group: CommitGroup) -> int:
        index = table.section_index(group.title)
        return last if index is None else index

    return sorted(groups, key=position)


def build_groups(
    commits: Iterable[EnrichedCommit],
    table: RuleTable,
    *,
    group_by: GroupBy = "section",
    include_unclassified: bool = False,
) -> list[CommitGroup]:
    """Group, reconcile, order and sort commits into the final sections."""
    groups = group_commits(commits, group_by=group_by, include_unclassified=include_unclassified)
    groups = merge_groups(reconcile_group(g, table) for g in groups)
    return [replace(g, commits=tuple(sort_commits(g.commits))) for g in order_groups(groups, table)]


def build_note_groups(groups: Iterable[CommitGroup]) -> list[NoteGroup]:
    """Collect commit notes (e.g. BREAKING CHANGE) grouped by note title."""
    buckets: dict[str, list[NoteEntry]] = {}
    for group in groups:
        for commit in group.commits:
            for note in commit.notes:
                title = note.title.strip() or "Notes"
                buckets.setdefault(title, []).append(NoteEntry(note=note, commit=commit))
    return [NoteGroup(title=t, notes=tuple(n)) for t, n in buckets.items()]
