"""Presentation fields derived from raw commit records.

Enrichment is independent of classification: it only needs the raw commit
and the repository settings. Every field is always present; missing data
degrades to an empty string (or ``None`` for dates and the commit body).
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlsplit

from relnote.core.commits import ClassifiedCommit, Note, RawCommit, Reference

SHORT_HASH_LENGTH = 7

DEFAULT_SKIP_NOTES_MARKERS: tuple[str, ...] = (
    "[skip release notes]",
    "[release notes skip]",
    "[no release notes]",
)

_PR_PREFIXES = ("", "#")

# @user, but not the domain part of an email address
MENTION_PATTERN = re.compile(r"(?<![\w@])@([\w-]+)")


def normalize_repository_url(url: str | None) -> str:
    """Strip whitespace, trailing slashes and a ``.git`` suffix."""
    if not url:
        return ""
    base = url.strip().rstrip("/")
    if base.endswith(".git"):
        base = base[: -len(".git")]
    return base.rstrip("/")


def resolve_hash(commit: RawCommit) -> str:
    if commit.hash:
        return commit.hash
    if commit.commit is not None and commit.commit.long:
        return commit.commit.long
    return ""


def resolve_short_hash(commit: RawCommit) -> str:
    if commit.short_hash:
        return commit.short_hash
    if commit.commit is not None and commit.commit.short:
        return commit.commit.short
    return resolve_hash(commit)[:SHORT_HASH_LENGTH]


def resolve_tree_hashes(commit: RawCommit) -> tuple[str, str]:
    """Return ``(tree_hash, short_tree_hash)`` using the same fallbacks as the commit hash."""
    tree_hash = commit.tree_hash or (commit.tree.long if commit.tree is not None else "")
    short = commit.tree.short if commit.tree is not None and commit.tree.short else ""
    return tree_hash, short or tree_hash[:SHORT_HASH_LENGTH]


def find_pull_request(references: Iterable[Reference]) -> str:
    """Return the issue number of the first reference that looks like a PR."""
    for ref in references:
        if ref.issue and ref.prefix in _PR_PREFIXES:
            return ref.issue
    return ""


def repository_host(base_url: str) -> str:
    """Return ``scheme://host`` of a repository URL, or "" when it has none."""
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


def build_issue_links(
    references: Iterable[Reference], base_url: str, pr_number: str = ""
) -> tuple[Link, ...]:
    """Link every issue reference except the one used as the pull request.

    References to another repository (``owner/repo#12``) link to that
    repository on the same host.
    """
    host = repository_host(base_url)
    links: dict[str, Link] = {}
    pr_skipped = False
    for ref in references:
        if not ref.issue:
            continue
        if not pr_skipped and pr_number and ref.issue == pr_number and ref.prefix in _PR_PREFIXES:
            pr_skipped = True
            continue
        if ref.owner and ref.repository and host:
            repo_url = f"{host}/{ref.owner}/{ref.repository}"
            text = f"{ref.owner}/{ref.repository}{ref.prefix or '#'}{ref.issue}"
        else:
            repo_url = base_url
            text = f"{ref.prefix or '#'}{ref.issue}"
        if not repo_url:
            continue
        url = f"{repo_url}/issues/{ref.issue}"
        links.setdefault(url, Link(text=text, url=url))
    return tuple(links.values())


def build_mention_links(mentions: Iterable[str], base_url: str) -> tuple[Link, ...]:
    host = repository_host(base_url)
    if not host:
        return ()
    links: dict[str, Link] = {}
    for user in mentions:
        name = user.strip().lstrip("@")
        if name:
            links.setdefault(name, Link(text=f"@{name}", url=f"{host}/{name}"))
    return tuple(links.values())


def link_mentions(text: str, links: Iterable[Link]) -> str:
    """Turn known ``@user`` mentions in ``text`` into Markdown links."""
    urls = {link.text[1:]: link.url for link in links}
    if not urls or not text:
        return text

    def replace(m: re.Match[str]) -> str:
        url = urls.get(m.group(1))
        return f"[{m.group(0)}]({url})" if url else m.group(0)

    return MENTION_PATTERN.sub(replace, text)


def has_skip_marker(text: str | None, markers: Iterable[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(marker.lower() in lowered for marker in markers if marker)


@dataclass(frozen=True, slots=True)
class Link:
    text: str
    url: str

    @property
    def markdown(self) -> str:
        return f"[{self.text}]({self.url})"


@dataclass(frozen=True, slots=True)
class CommitDetails:
    """Presentation fields for one commit."""

    hash: str
    short_hash: str
    commit_url: str
    tree_hash: str
    short_tree_hash: str
    author_name: str
    author_email: str
    author_date: datetime | None
    committer_name: str
    committer_email: str
    committer_date: datetime | None
    pr_number: str
    pr_url: str
    issue_urls: tuple[Link, ...]
    mention_urls: tuple[Link, ...]
    commit_body: str | None


def enrich_commit(
    commit: RawCommit,
    *,
    repository_url: str | None = None,
    include_body: bool = True,
    skip_markers: Iterable[str] = DEFAULT_SKIP_NOTES_MARKERS,
) -> CommitDetails:
    """Derive the presentation fields of one commit.

    Args:
        commit: Raw commit record
        repository_url: Repository base URL used for commit and PR links
        include_body: Emit ``commit_body`` at all
        skip_markers: Body markers that suppress ``commit_body``
    """
    base = normalize_repository_url(repository_url)
    full_hash = resolve_hash(commit)
    tree_hash, short_tree_hash = resolve_tree_hashes(commit)

    commit_url = f"{base}/commit/{full_hash}" if base and full_hash else ""

    pr_number = find_pull_request(commit.references)
    pr_url = f"{base}/pull/{pr_number}" if base and pr_number else ""

    body = commit.body.strip() if commit.body else ""
    commit_body = None
    if include_body and body and not has_skip_marker(body, skip_markers):
        commit_body = body

    return CommitDetails(
        hash=full_hash,
        short_hash=resolve_short_hash(commit),
        commit_url=commit_url,
        tree_hash=tree_hash,
        short_tree_hash=short_tree_hash,
        author_name=commit.author.name,
        author_email=commit.author.email,
        author_date=commit.author.date,
        committer_name=commit.committer.name,
        committer_email=commit.committer.email,
        committer_date=commit.committer.date,
        pr_number=pr_number,
        pr_url=pr_url,
        issue_urls=build_issue_links(commit.references, base, pr_number),
        mention_urls=build_mention_links(commit.mentions, base),
        commit_body=commit_body,
    )


@dataclass(frozen=True, slots=True)
class EnrichedCommit:
    """Classification and presentation fields of one commit, ready to render."""

    classified: ClassifiedCommit
    details: CommitDetails

    @property
    def commit(self) -> RawCommit:
        return self.classified.commit

    @property
    def type(self) -> str | None:
        return self.commit.type

    @property
    def scope(self) -> str | None:
        return self.commit.scope

    @property
    def subject(self) -> str:
        return self.commit.subject or self.commit.header

    @property
    def notes(self) -> tuple[Note, ...]:
        return self.commit.notes

    @property
    def mentions(self) -> tuple[str, ...]:
        return self.commit.mentions

    @property
    def linked_subject(self) -> str:
        """Subject with known @mentions linked to their user pages."""
        return link_mentions(self.subject, self.details.mention_urls)

    @property
    def section(self) -> str | None:
        return self.classified.section

    @property
    def icon(self) -> str:
        return self.classified.icon

    @property
    def hidden(self) -> bool:
        return self.classified.hidden

    @property
    def is_breaking(self) -> bool:
        return self.commit.is_breaking

    @property
    def sort_date(self) -> datetime | None:
        """Committer date, falling back to the author date."""
        return self.details.committer_date or self.details.author_date

