"""Release severity and semantic version handling."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from relnote.exceptions import RelnoteError


class BumpType(str, Enum):
    """Release severity implied by a set of changes."""

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return BUMP_PRECEDENCE[self]


BUMP_PRECEDENCE: dict[BumpType, int] = {
    BumpType.NONE: 0,
    BumpType.PATCH: 1,
    BumpType.MINOR: 2,
    BumpType.MAJOR: 3,
}


def max_bump(*bumps: BumpType) -> BumpType:
    """Return the most severe bump, or NONE when called without arguments."""
    result = BumpType.NONE
    for bump in bumps:
        if bump.rank > result.rank:
            result = bump
    return result


_VERSION_RE = re.compile(r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @classmethod
    def parse(cls, value: str) -> Version:
        """Parse ``X.Y.Z`` or ``vX.Y.Z``.

        Raises:
            RelnoteError: If the string is not a plain semantic version
        """
        m = _VERSION_RE.match(value.strip())
        if m is None:
            raise RelnoteError(f"Invalid version: {value!r} (expected X.Y.Z)")
        return cls(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    def bump(self, kind: BumpType) -> Version:
        match kind:
            case BumpType.MAJOR:
                return Version(self.major + 1, 0, 0)
            case BumpType.MINOR:
                return Version(self.major, self.minor + 1, 0)
            case BumpType.PATCH:
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                return self


FIRST_RELEASE = Version(1, 0, 0)
