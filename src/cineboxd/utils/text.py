"""Text normalization utilities for film title matching."""

import re
import unicodedata
from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")

# Language/version suffixes Pathé appends to film slugs
SLUG_SUFFIXES = (
    "-nederlands-gesproken",
    "-originele-versie",
)


def normalize_title(title: str) -> str:
    """
    Normalize a film title for matching.

    - Lowercase
    - Strip diacritics: "Amélie" → "amelie"
    - Drop punctuation: "Mission: Impossible" → "mission impossible"
    - Collapse whitespace

    Args:
        title: Raw film title

    Returns:
        Normalized title suitable for matching
    """
    title = unicodedata.normalize("NFD", title.lower())
    title = "".join(ch for ch in title if not unicodedata.combining(ch))
    title = re.sub(r"[^a-z0-9\s]", "", title)
    title = re.sub(r"\s+", " ", title)
    return title.strip()


def slug_to_title(slug: str) -> str:
    """
    Turn a catalogue slug back into a readable phrase.

    Examples:
        "avatar-fire-and-ash-40584" → "avatar fire and ash"
        "frozen-2-nederlands-gesproken-1234" → "frozen 2"
    """
    slug = re.sub(r"-\d+$", "", slug)
    for suffix in SLUG_SUFFIXES:
        if slug.endswith(suffix):
            slug = slug[: -len(suffix)]
    return slug.replace("-", " ").strip()


def title_case(phrase: str) -> str:
    """Capitalize the first letter of each word, leaving the rest as-is."""
    return " ".join(word[:1].upper() + word[1:] for word in phrase.split(" "))


def is_match(candidate: str, watchlist_title: str) -> bool:
    """
    Check whether two normalized titles refer to the same film.

    Matches on equality or substring containment in either direction, so
    "dune part two" matches "dune part two imax". Short titles can produce
    false positives ("it" is contained in many titles).
    """
    if not candidate or not watchlist_title:
        return False
    return (
        candidate == watchlist_title
        or watchlist_title in candidate
        or candidate in watchlist_title
    )


def match_titles(
    entries: Iterable[T],
    watchlist_titles: Iterable[str],
    key: Callable[[T], str],
) -> list[T]:
    """
    Keep the catalogue entries whose title matches any watchlist title.

    Args:
        entries: Catalogue entries
        watchlist_titles: Raw watchlist titles (normalized here)
        key: Extracts the raw title to match from an entry

    Returns:
        Matching entries in their original order
    """
    normalized_watchlist = [normalize_title(t) for t in watchlist_titles]
    return [
        entry
        for entry in entries
        if any(is_match(normalize_title(key(entry)), w) for w in normalized_watchlist)
    ]
