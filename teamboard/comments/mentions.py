"""Comment @mention parsing and resolution.

A mention is the literal marker ``@[Display Name]`` embedded in comment text,
e.g. ``Great work @[Jane Doe]!``. There is no escaping, so a name can never
contain ``]``; an unterminated ``@[`` is left as plain text.

``iter_mention_tokens`` yields one token per occurrence (duplicates included).
De-duplication is up to the caller, see ``unique_names``.
``resolve_mentions`` maps names onto a roster of profiles case-insensitively.
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

MENTION_PATTERN = re.compile(r"@\[(.+?)\]")


@dataclass(frozen=True)
class MentionToken:
    raw_text: str
    display_name: str


@dataclass(frozen=True)
class Profile:
    id: str
    display_name: str


def iter_mention_tokens(content: str) -> Iterator[MentionToken]:
    """Scan left to right for non-overlapping ``@[...]`` markers."""
    for match in MENTION_PATTERN.finditer(content or ""):
        yield MentionToken(raw_text=match.group(0), display_name=match.group(1))


def extract_mention_names(content: str) -> list[str]:
    """Display names in document order, one entry per occurrence."""
    return [token.display_name for token in iter_mention_tokens(content)]


def unique_names(names: Iterable[str]) -> list[str]:
    """Drop repeated names, keeping the first occurrence's position."""
    found: list[str] = []
    seen: set[str] = set()
    for name in names:
        if name not in seen:
            found.append(name)
            seen.add(name)
    return found


def resolve_mentions(names: Iterable[str], roster: Iterable[Profile]) -> list[Profile]:
    """Return the roster entries named in ``names`` (case-insensitive exact match).

    When two roster entries share a display name the first one wins.
    Unknown names are skipped. Each profile appears once, in mention order.
    """
    by_name: dict[str, Profile] = {}
    for profile in roster:
        by_name.setdefault(profile.display_name.casefold(), profile)

    resolved: list[Profile] = []
    seen: set[str] = set()
    for name in names:
        profile = by_name.get(name.casefold())
        if profile and profile.id not in seen:
            resolved.append(profile)
            seen.add(profile.id)
    return resolved


def roster_from_rows(rows: Iterable[dict]) -> list[Profile]:
    return [
        Profile(id=row["id"], display_name=row.get("display_name") or "")
        for row in rows
        if row.get("id") and row.get("display_name")
    ]
