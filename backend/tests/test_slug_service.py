"""
Angle Backend — Slug Resolution Unit Tests
===========================================

What we test:
    ✅ Label → slug conversion
    ✅ Exact, slug and loose matching, in that precedence
    ✅ Reserved paths and virtual keywords never touch the category list
    ✅ Round trip: every label's slug resolves back to the label
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from angle.services.slug_service import (
    KIND_CATEGORY,
    KIND_INVALID,
    KIND_RESERVED,
    KIND_VIRTUAL,
    SlugResolver,
    category_to_slug,
    match_category,
    needs_category_list,
    resolve_segment,
)

CATEGORIES = ["Business & Economy", "Health", "Science and Tech", "Arts  Culture"]


class TestCategoryToSlug:

    def test_ampersand_becomes_and(self):
        assert category_to_slug("Business & Economy") == "business-and-economy"

    def test_whitespace_runs_collapse_to_one_hyphen(self):
        assert category_to_slug("Arts  Culture") == "arts-culture"

    def test_punctuation_is_dropped(self):
        assert category_to_slug("What's New?") == "whats-new"

    def test_every_label_round_trips(self):
        """A canonical label's slug always resolves back to that label."""
        for label in CATEGORIES:
            assert match_category(category_to_slug(label), CATEGORIES) == label


class TestMatchCategory:

    def test_exact_match_is_case_insensitive(self):
        assert match_category("HEALTH", CATEGORIES) == "Health"

    def test_slug_match(self):
        assert match_category("business-and-economy", CATEGORIES) == "Business & Economy"

    def test_loose_match_without_and(self):
        """The loose rule drops '&' on the label side instead of spelling it out."""
        assert match_category("business-economy", CATEGORIES) == "Business & Economy"

    def test_loose_match_ignores_hyphens(self):
        assert match_category("scienceandtech", CATEGORIES) == "Science and Tech"

    def test_no_match(self):
        assert match_category("sports", CATEGORIES) is None

    def test_earlier_rule_wins_over_list_order(self):
        """An exact match later in the list beats a loose match earlier in it."""
        categories = ["Health-Care", "healthcare"]
        assert match_category("healthcare", categories) == "healthcare"

    def test_first_candidate_wins_within_a_rule(self):
        categories = ["A&B", "A B"]
        # loose key "ab" for both; list order decides
        assert match_category("a--b", categories) == "A&B"


class TestResolveSegment:

    @pytest.mark.parametrize("segment", ["api", "Episode", "favicon.ico", "sitemap.xml", "robots.txt"])
    def test_reserved(self, segment):
        resolution = resolve_segment(segment, CATEGORIES)
        assert resolution.kind == KIND_RESERVED
        assert not resolution.is_valid

    def test_virtual_keywords_need_no_categories(self):
        resolution = resolve_segment("New", [])
        assert resolution.kind == KIND_VIRTUAL
        assert resolution.label == "New"
        assert resolution.slug == "new"
        assert resolution.description == "Latest stories worth listening."

    def test_popular_description(self):
        assert resolve_segment("popular").description == "Popular stories worth listening."

    def test_category(self):
        resolution = resolve_segment("business-economy", CATEGORIES)
        assert resolution.kind == KIND_CATEGORY
        assert resolution.label == "Business & Economy"
        assert resolution.slug == "business-economy"
        assert resolution.description == "Business & Economy stories worth listening."

    def test_unknown_and_blank_are_invalid(self):
        assert resolve_segment("sports", CATEGORIES).kind == KIND_INVALID
        assert resolve_segment("   ", CATEGORIES).kind == KIND_INVALID
        assert resolve_segment("sports", CATEGORIES).description is None

    def test_needs_category_list(self):
        assert needs_category_list("health")
        assert not needs_category_list("new")
        assert not needs_category_list("api")
        assert not needs_category_list("")


class TestSlugResolver:

    @pytest.mark.asyncio
    async def test_virtual_keyword_skips_the_database(self):
        episodes = MagicMock()
        episodes.list_categories = AsyncMock(return_value=CATEGORIES)
        resolver = SlugResolver(episodes=episodes)

        resolution = await resolver.resolve(db=MagicMock(), segment="popular")

        assert resolution.kind == KIND_VIRTUAL
        episodes.list_categories.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_category_uses_the_database(self, db_session):
        resolver = SlugResolver()

        resolution = await resolver.resolve(db_session, "business-and-economy")

        assert resolution.kind == KIND_CATEGORY
        assert resolution.label == "Business & Economy"

    @pytest.mark.asyncio
    async def test_draft_only_category_is_invalid(self, db_session):
        """Categories only come from completed episodes."""
        resolution = await SlugResolver().resolve(db_session, "does-not-exist")
        assert resolution.kind == KIND_INVALID
