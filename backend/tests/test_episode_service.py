"""
Angle Backend — Episode Service Unit Tests
===========================================

What we test:
    ✅ Only completed episodes are visible, newest first
    ✅ Column → JSON field mapping
    ✅ Categories are distinct, non-null and sorted
    ✅ Newest episode per category
    ✅ Query failures surface as UpstreamError, absent rows as None
"""

import pytest

from angle.exceptions import UpstreamError
from angle.services.episode_cache import EpisodeCache
from angle.services.episode_service import EpisodeService


class TestListEpisodes:

    def setup_method(self):
        self.service = EpisodeService()

    @pytest.mark.asyncio
    async def test_completed_only_newest_first(self, db_session):
        episodes = await self.service.list_episodes(db_session)
        assert [e.id for e in episodes] == ["ep-2", "ep-1", "ep-3"]

    @pytest.mark.asyncio
    async def test_field_mapping(self, db_session):
        episodes = await self.service.list_episodes(db_session)
        sleep = next(e for e in episodes if e.id == "ep-1")

        assert sleep.description == "A short look at sleep."
        assert sleep.full_description.startswith("A long-form look")
        assert sleep.cover_image == "/images/sleep.jpg"
        assert sleep.tags == ["sleep", "science"]
        assert sleep.duration == 1830

        payload = sleep.model_dump(by_alias=True)
        assert "coverImage" in payload
        assert "fullDescription" in payload
        assert "episodeNumber" in payload

    @pytest.mark.asyncio
    async def test_query_failure_raises_upstream_error(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(UpstreamError) as exc_info:
            await self.service.list_episodes(mock_db_session)

        assert exc_info.value.message == "Failed to fetch episodes"
        assert exc_info.value.context["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_cache_serves_second_call(self, db_session, mock_db_session):
        service = EpisodeService(cache=EpisodeCache(ttl=300))
        first = await service.list_episodes(db_session)

        # A failing session proves the second call never reaches the database
        mock_db_session.execute.side_effect = RuntimeError("should not be called")
        second = await service.list_episodes(mock_db_session)

        assert [e.id for e in second] == [e.id for e in first]
        mock_db_session.execute.assert_not_awaited()


class TestGetEpisode:

    def setup_method(self):
        self.service = EpisodeService()

    @pytest.mark.asyncio
    async def test_found(self, db_session):
        episode = await self.service.get_episode(db_session, "ep-1")
        assert episode is not None
        assert episode.id == "ep-1"
        assert episode.category == "Health"

    @pytest.mark.asyncio
    async def test_draft_is_absent(self, db_session):
        assert await self.service.get_episode(db_session, "b") is None

    @pytest.mark.asyncio
    async def test_unknown_is_absent(self, db_session):
        assert await self.service.get_episode(db_session, "nope") is None

    @pytest.mark.asyncio
    async def test_query_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("timeout")
        with pytest.raises(UpstreamError, match="Failed to fetch episode"):
            await self.service.get_episode(mock_db_session, "ep-1")


class TestCategories:

    def setup_method(self):
        self.service = EpisodeService()

    @pytest.mark.asyncio
    async def test_distinct_sorted_completed_only(self, db_session):
        """The draft 'b' shares Health with 'ep-1'; Health still appears once."""
        assert await self.service.list_categories(db_session) == ["Business & Economy", "Health"]

    @pytest.mark.asyncio
    async def test_query_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("boom")
        with pytest.raises(UpstreamError, match="Failed to fetch categories"):
            await self.service.list_categories(mock_db_session)

    @pytest.mark.asyncio
    async def test_most_recent_in_category_skips_drafts(self, db_session):
        episode = await self.service.most_recent_in_category(db_session, "Health")
        assert episode.id == "ep-1"

    @pytest.mark.asyncio
    async def test_most_recent_overall(self, db_session):
        episode = await self.service.most_recent_in_category(db_session, None)
        assert episode.id == "ep-2"

    @pytest.mark.asyncio
    async def test_most_recent_in_unknown_category(self, db_session):
        assert await self.service.most_recent_in_category(db_session, "Sports") is None
