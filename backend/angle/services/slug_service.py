"""
Angle Backend — Category Slug Resolution
=========================================

What:  Maps a URL path segment to a canonical category label, a virtual
       filter keyword ("new", "popular"), a reserved path, or nothing.
How:   Pure matching functions over the category list, plus a small async
       wrapper that fetches the list only when it is actually needed.
Who:   Used by the HTML renderer (/{category}), the category preview image
       route, and the sitemap (slug generation).

Matching rules (first rule that matches any candidate wins; within a rule
the first candidate in list order wins):
    a. exact, case-insensitive label match     "HEALTH"            → "Health"
    b. slug match                              "business-and-economy"
                                                                   → "Business & Economy"
    c. loose match, every non [a-z0-9] dropped "business-economy"  → "Business & Economy"
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from angle.services.episode_service import EpisodeService, episode_service

# First path segments that belong to static files or other routes
RESERVED_PATHS = frozenset({
    "api",
    "episode",
    "images",
    "fonts",
    "robots.txt",
    "favicon.ico",
    "sitemap.xml",
})

# Filter keywords accepted as categories without any episode carrying them
VIRTUAL_CATEGORIES = {
    "new": "New",
    "popular": "Popular",
}

_VIRTUAL_DESCRIPTIONS = {
    "new": "Latest stories worth listening.",
    "popular": "Popular stories worth listening.",
}

_WHITESPACE_RE = re.compile(r"\s+")
_NON_SLUG_RE = re.compile(r"[^a-z0-9-]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")

KIND_RESERVED = "reserved"
KIND_VIRTUAL = "virtual"
KIND_CATEGORY = "category"
KIND_INVALID = "invalid"


def category_to_slug(label: str) -> str:
    """'Business & Economy' → 'business-and-economy'."""
    slug = label.lower()
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = slug.replace("&", "and")
    return _NON_SLUG_RE.sub("", slug)


def loose_key(value: str) -> str:
    """'Business & Economy' and 'business-economy' both → 'businesseconomy'."""
    return _NON_ALNUM_RE.sub("", value.lower())


def match_category(segment: str, categories: Sequence[str]) -> Optional[str]:
    """Canonical label for `segment`, or None when no rule matches."""
    needle = segment.lower()

    for label in categories:
        if label.lower() == needle:
            return label

    for label in categories:
        if category_to_slug(label) == needle:
            return label

    loose = loose_key(needle)
    if loose:
        for label in categories:
            if loose_key(label) == loose:
                return label

    return None


def is_reserved(segment: str) -> bool:
    return segment.lower() in RESERVED_PATHS


def category_description(slug: str, label: str) -> str:
    return _VIRTUAL_DESCRIPTIONS.get(slug, f"{label} stories worth listening.")


@dataclass(frozen=True)
class SlugResolution:
    """
    Outcome of resolving one path segment.

    Attributes:
        kind:   reserved | virtual | category | invalid
        slug:   lowercased input segment (used in canonical URLs)
        label:  display label ("New", "Business & Economy"); None unless valid
    """

    kind: str
    slug: str
    label: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.kind in (KIND_VIRTUAL, KIND_CATEGORY)

    @property
    def description(self) -> Optional[str]:
        if self.label is None:
            return None
        return category_description(self.slug, self.label)


def needs_category_list(segment: str) -> bool:
    """False when the segment can be decided without touching the database."""
    slug = segment.strip().lower()
    return bool(slug) and slug not in RESERVED_PATHS and slug not in VIRTUAL_CATEGORIES


def resolve_segment(segment: str, categories: Iterable[str] = ()) -> SlugResolution:
    """Classifies `segment` against the given canonical categories."""
    slug = segment.strip().lower()
    if not slug:
        return SlugResolution(kind=KIND_INVALID, slug=slug)
    if slug in RESERVED_PATHS:
        return SlugResolution(kind=KIND_RESERVED, slug=slug)
    if slug in VIRTUAL_CATEGORIES:
        return SlugResolution(kind=KIND_VIRTUAL, slug=slug, label=VIRTUAL_CATEGORIES[slug])

    label = match_category(slug, list(categories))
    if label is None:
        return SlugResolution(kind=KIND_INVALID, slug=slug)
    return SlugResolution(kind=KIND_CATEGORY, slug=slug, label=label)


class SlugResolver:
    """Resolves segments, fetching the category list only when required."""

    def __init__(self, episodes: Optional[EpisodeService] = None):
        self.episodes = episodes or episode_service

    async def resolve(self, db: AsyncSession, segment: str) -> SlugResolution:
        categories: List[str] = []
        if needs_category_list(segment):
            categories = await self.episodes.list_categories(db)
        return resolve_segment(segment, categories)


# ── Singleton Instance ────────────────────────────────────────────────────
slug_resolver = SlugResolver()
