"""Declarative rule table for commit classification.

The same ordered table drives classification, severity and the order of
sections in the rendered notes, so the three can never disagree.

Rules are tried in declaration order and the first structural match wins.
A rule matches on one of:

- ``breaking = true``: the commit carries a breaking-change marker
- ``type`` (optionally narrowed by ``scope``): the commit type (and scope)
- ``scope`` alone: a scope-level override regardless of type
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from relnote.core.version import BumpType
from relnote.exceptions import ConfigValidationError


class Rule(BaseModel):
    """One classification rule."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    match_type: str | None = Field(default=None, alias="type")
    match_scope: str | None = Field(default=None, alias="scope")
    breaking: bool | None = None
    section: str | None = None
    severity: BumpType | None = None
    icon: str = ""
    hidden: bool = False

    @model_validator(mode="after")
    def _check_matcher(self) -> Rule:
        if not self.breaking and not self.match_type and not self.match_scope:
            raise ValueError("rule must match on at least one of type, scope or breaking")
        return self

    @property
    def is_breaking_rule(self) -> bool:
        return bool(self.breaking)

    def describe(self) -> str:
        if self.is_breaking_rule:
            return "breaking"
        if self.match_type and self.match_scope:
            return f"{self.match_type}({self.match_scope})"
        if self.match_type:
            return self.match_type
        return f"({self.match_scope})"


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule(breaking=True, section="💥 Breaking Changes", severity=BumpType.MAJOR, icon="💥"),
    Rule(match_scope="no-release", severity=BumpType.NONE, hidden=True),
    Rule(match_type="feat", section="✨ Features", severity=BumpType.MINOR, icon="✨"),
    Rule(match_type="fix", section="🐛 Bug Fixes", severity=BumpType.PATCH, icon="🐛"),
    Rule(match_type="perf", section="⚡ Performance", severity=BumpType.PATCH, icon="⚡"),
    Rule(match_type="revert", section="⏪ Reverts", severity=BumpType.PATCH, icon="⏪"),
    Rule(match_type="docs", section="📝 Documentation", severity=BumpType.NONE, icon="📝"),
    Rule(match_type="chore", section="🔧 Chores", severity=BumpType.NONE, icon="🔧"),
    Rule(match_type="refactor", section="♻️ Refactoring", severity=BumpType.NONE, icon="♻️"),
    Rule(match_type="test", section="✅ Tests", severity=BumpType.NONE, icon="✅"),
    Rule(match_type="style", section="🎨 Style", severity=BumpType.NONE, icon="🎨"),
    Rule(
        match_type="build", section="📦 Build System", severity=BumpType.NONE, icon="📦", hidden=True
    ),
    Rule(
        match_type="ci",
        section="👷 Continuous Integration",
        severity=BumpType.NONE,
        icon="👷",
        hidden=True,
    ),
)


class RuleTable:
    """Ordered, read-only collection of :class:`Rule` values.

    Two views are derived once at construction:

    - ``severity_rules``: rules that carry a severity
    - ``section_rules``: rules that carry a display section
    """

    __slots__ = ("_rules", "_section_rules", "_severity_rules")

    def __init__(self, rules: Iterable[Rule] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)
        self._severity_rules = tuple(r for r in self._rules if r.severity is not None)
        self._section_rules = tuple(r for r in self._rules if r.section)

    @classmethod
    def from_config(cls, raw_rules: Iterable[Mapping[str, Any]]) -> RuleTable:
        """Build a table from plain mappings (e.g. ``[[tool.relnote.rules]]``).

        Raises:
            ConfigValidationError: If any entry is malformed
        """
        rules: list[Rule] = []
        for index, raw in enumerate(raw_rules):
            try:
                rules.append(Rule.model_validate(raw))
            except ValidationError as e:
                raise ConfigValidationError(
                    f"Invalid rule at position {index}: {dict(raw)!r}",
                    details=str(e),
                ) from e
        if not rules:
            raise ConfigValidationError("Rule table must contain at least one rule")
        return cls(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    @property
    def severity_rules(self) -> tuple[Rule, ...]:
        return self._severity_rules

    @property
    def section_rules(self) -> tuple[Rule, ...]:
        return self._section_rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def section_index(self, title: str) -> int | None:
        """Position of the first section rule whose section equals ``title``."""
        wanted = title.strip()
        for index, rule in enumerate(self._section_rules):
            if rule.section is not None and rule.section.strip() == wanted:
                return index
        return None

    def find_section(self, title: str, types: Iterable[str] = ()) -> Rule | None:
        """Find the rule a group title belongs to.

        A rule whose section equals the trimmed title wins; otherwise the
        first section rule whose type is one of ``types``.
        """
        index = self.section_index(title)
        if index is not None:
            return self._section_rules[index]
        wanted = {t for t in types if t}
        for rule in self._section_rules:
            if rule.match_type and rule.match_type in wanted:
                return rule
        return None


DEFAULT_RULE_TABLE = RuleTable()
