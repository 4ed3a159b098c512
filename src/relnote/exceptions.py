"""Exception hierarchy for relnote.

Every error raised on purpose by relnote derives from :class:`RelnoteError`
so the CLI can report it uniformly.
"""

from __future__ import annotations


class RelnoteError(Exception):
    """Base class for all relnote errors."""

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n{self.details}"
        return self.message


# Configuration


class ConfigError(RelnoteError):
    """Configuration could not be loaded."""


class ConfigNotFoundError(ConfigError):
    """A configuration file that was explicitly requested does not exist."""


class ConfigValidationError(ConfigError):
    """Configuration values (including the rule table) are invalid."""


# Templates


class TemplateError(RelnoteError):
    """Release note templates could not be loaded or rendered."""


class TemplateNotFoundError(TemplateError):
    """A required template fragment is missing or unreadable."""


# Input


class CommitParseError(RelnoteError):
    """Commit records could not be parsed."""


__all__ = [
    "CommitParseError",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "RelnoteError",
    "TemplateError",
    "TemplateNotFoundError",
]
