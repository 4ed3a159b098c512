"""Core business logic for relnote.

This module contains the fundamental building blocks:
- Rule table and commit classification
- Release severity and version bumps
- Commit enrichment (links, PR detection, authors)
- Grouping and ordering of release note sections
- Release note rendering via Jinja2 templates
"""

from __future__ import annotations

from relnote.core.changelog import ChangelogRenderer, ReleaseInfo, write_changelog
from relnote.core.commits import (
    ClassifiedCommit,
    RawCommit,
    ReleaseDecision,
    calculate_bump,
    classify_commit,
    classify_commits,
    decide_release,
    parse_commits,
)
from relnote.core.enrich import CommitDetails, EnrichedCommit, enrich_commit
from relnote.core.grouping import CommitGroup, NoteGroup, build_groups, compare_commits
from relnote.core.pipeline import ReleaseResult, generate_release
from relnote.core.rules import DEFAULT_RULES, Rule, RuleTable
from relnote.core.version import BumpType, Version

__all__ = [
    # Rules
    "DEFAULT_RULES",
    # Version
    "BumpType",
    # Rendering
    "ChangelogRenderer",
    # Commits
    "ClassifiedCommit",
    "CommitDetails",
    # Grouping
    "CommitGroup",
    "EnrichedCommit",
    "NoteGroup",
    "RawCommit",
    "ReleaseDecision",
    "ReleaseInfo",
    # Pipeline
    "ReleaseResult",
    "Rule",
    "RuleTable",
    "Version",
    "build_groups",
    "calculate_bump",
    "classify_commit",
    "classify_commits",
    "compare_commits",
    "decide_release",
    "enrich_commit",
    "generate_release",
    "parse_commits",
    "write_changelog",
]
