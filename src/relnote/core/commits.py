"""Commit records, classification and release severity.

Commits arrive as structured records in the shape produced by
conventional-changelog parsers (``type``, ``scope``, ``subject``, ``notes``,
``references``...). Keys are accepted in snake_case or camelCase.

When a record has a header but no ``type``, the header is parsed as a
conventional commit (``type(scope)!: subject``).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from relnote.core.rules import DEFAULT_RULE_TABLE, Rule, RuleTable
from relnote.core.version import FIRST_RELEASE, BumpType, Version, max_bump
from relnote.exceptions import CommitParseError

logger = logging.getLogger(__name__)

# type(scope)!: subject
HEADER_PATTERN = re.compile(
    r"^(?P<type>\w+)"
    r"(?:\((?P<scope>[^)]*)\))?"
    r"(?P<breaking>!)?"
    r":\s*(?P<subject>.+)$"
)

BREAKING_NOTE_PATTERN = re.compile(r"^BREAKING[ -]CHANGES?$", re.IGNORECASE)


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Parsers emit null for fields they could not fill; those take the default
        if not isinstance(data, Mapping):
            return data
        return {key: value for key, value in data.items() if value is not None}


class Person(_Record):
    name: str = ""
    email: str = ""
    date: datetime | None = None


class HashPair(_Record):
    """Nested ``{long, short}`` hash object."""

    long: str = ""
    short: str = ""


class Reference(_Record):
    issue: str | None = None
    prefix: str = ""
    action: str | None = None
    owner: str | None = None
    repository: str | None = None
    raw: str = ""


class Note(_Record):
    title: str = ""
    text: str = ""


class RawCommit(_Record):
    """A commit record as received."""

    hash: str = ""
    short_hash: str = ""
    commit: HashPair | None = None
    tree_hash: str = ""
    tree: HashPair | None = None
    type: str | None = None
    scope: str | None = None
    subject: str = ""
    header: str = ""
    body: str | None = None
    footer: str | None = None
    breaking: bool = False
    notes: tuple[Note, ...] = ()
    references: tuple[Reference, ...] = ()
    mentions: tuple[str, ...] = ()
    author: Person = Person()
    committer: Person = Person()
    message: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fill_from_header(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        values = dict(data)

        header = values.get("header") or ""
        message = values.get("message") or ""
        if not header and message:
            first, _, rest = message.partition("\n")
            header = first.strip()
            values["header"] = header
            if values.get("body") is None and rest.strip():
                values["body"] = rest.strip()

        if not values.get("type") and header:
            m = HEADER_PATTERN.match(header)
            if m:
                values["type"] = m.group("type").lower()
                if values.get("scope") is None and m.group("scope"):
                    values["scope"] = m.group("scope")
                if not values.get("subject"):
                    values["subject"] = m.group("subject").strip()
                if m.group("breaking"):
                    values["breaking"] = True
            elif not values.get("subject"):
                values["subject"] = header

        # An empty scope means no scope
        if values.get("scope") == "":
            values["scope"] = None
        return values

    @property
    def is_breaking(self) -> bool:
        """Whether the commit carries a breaking-change marker."""
        if self.breaking:
            return True
        return any(BREAKING_NOTE_PATTERN.match(note.title.strip()) for note in self.notes)


def parse_commits(records: Iterable[Mapping[str, Any]]) -> list[RawCommit]:
    """Validate raw commit mappings, preserving their order.

    Raises:
        CommitParseError: If a record is not a valid commit
    """
    commits: list[RawCommit] = []
    for index, record in enumerate(records):
        try:
            commits.append(RawCommit.model_validate(record))
        except ValidationError as e:
            raise CommitParseError(
                f"Invalid commit record at position {index}", details=str(e)
            ) from e
    return commits


@dataclass(frozen=True, slots=True)
class ClassifiedCommit:
    """A commit together with the rule it matched (if any)."""

    commit: RawCommit
    section: str | None = None
    severity: BumpType = BumpType.NONE
    icon: str = ""
    hidden: bool = False
    rule: Rule | None = None

    @property
    def is_classified(self) -> bool:
        return self.rule is not None

    @property
    def effective_severity(self) -> BumpType:
        """Severity used for the release decision.

        Any commit with a breaking-change marker is at least MAJOR, matched or not.
        """
        if self.commit.is_breaking:
            return max_bump(self.severity, BumpType.MAJOR)
        return self.severity


def rule_matches(rule: Rule, commit: RawCommit) -> bool:
    """Structural match of one rule against one commit."""
    if rule.is_breaking_rule:
        return commit.is_breaking
    if rule.match_type:
        if rule.match_type != commit.type:
            return False
        return rule.match_scope is None or rule.match_scope == commit.scope
    # Scope-only override
    return rule.match_scope is not None and rule.match_scope == commit.scope


def match_rule(commit: RawCommit, rules: Iterable[Rule]) -> Rule | None:
    """Return the first rule matching ``commit``."""
    for rule in rules:
        if rule_matches(rule, commit):
            return rule
    return None


def classify_commit(commit: RawCommit, table: RuleTable = DEFAULT_RULE_TABLE) -> ClassifiedCommit:
    """Classify one commit using the first matching rule.

    Unmatched commits come back unclassified: no section, no icon and
    severity NONE.
    """
    rule = match_rule(commit, table)
    if rule is None:
        logger.debug("No rule matched commit %s (%r)", commit.hash or "?", commit.header)
        return ClassifiedCommit(commit=commit)
    return ClassifiedCommit(
        commit=commit,
        section=rule.section,
        severity=rule.severity or BumpType.NONE,
        icon=rule.icon,
        hidden=rule.hidden,
        rule=rule,
    )


def classify_commits(
    commits: Iterable[RawCommit], table: RuleTable = DEFAULT_RULE_TABLE
) -> list[ClassifiedCommit]:
    return [classify_commit(c, table) for c in commits]


def calculate_bump(commits: Iterable[ClassifiedCommit]) -> BumpType:
    """Reduce classified commits to one release severity.

    Returns:
        BumpType.NONE for an empty set, otherwise the most severe
        effective severity.
    """
    return max_bump(*(c.effective_severity for c in commits))


@dataclass(frozen=True, slots=True)
class ReleaseDecision:
    bump: BumpType
    current_version: Version | None = None
    next_version: Version | None = None

    @property
    def should_release(self) -> bool:
        return self.bump is not BumpType.NONE


def decide_release(
    commits: Sequence[ClassifiedCommit],
    current_version: Version | None = None,
) -> ReleaseDecision:
    """Compute the release decision and the next version, if any.

    Without a current version the first release starts at 1.0.0.
    """
    bump = calculate_bump(commits)
    if bump is BumpType.NONE:
        return ReleaseDecision(bump=bump, current_version=current_version)
    next_version = FIRST_RELEASE if current_version is None else current_version.bump(bump)
    return ReleaseDecision(bump=bump, current_version=current_version, next_version=next_version)


def get_breaking_changes(commits: Iterable[ClassifiedCommit]) -> list[ClassifiedCommit]:
    return [c for c in commits if c.commit.is_breaking]
