"""Tests for display-name enrichment."""

from unittest.mock import AsyncMock

import httpx
import pytest

from app.domain.streams.classifier import make_descriptor
from app.domain.streams.enrichment import NameFetcher, needs_name_lookup
from app.domain.streams.platforms import Platform
from tests.fixtures.upstream_fixtures import CHZZK_ID, HOST, VIDEO_ID


@pytest.fixture
def chzzk() -> AsyncMock:
    service = AsyncMock()
    service.fetch_channel_name.return_value = "Chzzk Name"
    return service


@pytest.fixture
def youtube() -> AsyncMock:
    service = AsyncMock()
    service.fetch_author_name.return_value = "YouTube Name"
    return service


@pytest.fixture
def fetcher(chzzk: AsyncMock, youtube: AsyncMock) -> NameFetcher:
    return NameFetcher(chzzk, youtube)


class TestNeedsNameLookup:
    def test_platforms_with_server_lookup(self):
        assert needs_name_lookup(make_descriptor(Platform.CHZZK, CHZZK_ID, HOST, False)) is True
        assert needs_name_lookup(make_descriptor(Platform.YOUTUBE, VIDEO_ID, HOST, False)) is True

    def test_platforms_without_server_lookup(self):
        assert needs_name_lookup(make_descriptor(Platform.TWITCH, "someone", HOST, False)) is False
        assert needs_name_lookup(make_descriptor(Platform.SOOP, "streamer1", HOST, False)) is False

    def test_known_name_needs_no_lookup(self):
        descriptor = make_descriptor(Platform.YOUTUBE, VIDEO_ID, HOST, False, display_name="Known")
        assert needs_name_lookup(descriptor) is False


class TestFetchName:
    async def test_existing_name_is_returned_without_lookup(self, fetcher: NameFetcher, youtube: AsyncMock):
        descriptor = make_descriptor(Platform.YOUTUBE, VIDEO_ID, HOST, False, display_name="Known")

        assert await fetcher.fetch_name(descriptor) == "Known"
        youtube.fetch_author_name.assert_not_awaited()

    async def test_chzzk_lookup_fills_descriptor(self, fetcher: NameFetcher, chzzk: AsyncMock):
        descriptor = make_descriptor(Platform.CHZZK, CHZZK_ID, HOST, False)

        assert await fetcher.fetch_name(descriptor) == "Chzzk Name"
        chzzk.fetch_channel_name.assert_awaited_once_with(CHZZK_ID)
        assert descriptor.display_name == "Chzzk Name"

    async def test_youtube_lookup(self, fetcher: NameFetcher, youtube: AsyncMock):
        descriptor = make_descriptor(Platform.YOUTUBE, VIDEO_ID, HOST, False)

        assert await fetcher.fetch_name(descriptor) == "YouTube Name"
        youtube.fetch_author_name.assert_awaited_once_with(VIDEO_ID)

    async def test_platform_without_lookup(self, fetcher: NameFetcher, chzzk: AsyncMock, youtube: AsyncMock):
        descriptor = make_descriptor(Platform.TWITCH, "someone", HOST, False)

        assert await fetcher.fetch_name(descriptor) is None
        chzzk.fetch_channel_name.assert_not_awaited()
        youtube.fetch_author_name.assert_not_awaited()

    async def test_absent_name(self, fetcher: NameFetcher, chzzk: AsyncMock):
        chzzk.fetch_channel_name.return_value = None
        descriptor = make_descriptor(Platform.CHZZK, CHZZK_ID, HOST, False)

        assert await fetcher.fetch_name(descriptor) is None
        assert descriptor.display_name is None

    @pytest.mark.parametrize(
        "error",
        [httpx.ConnectError("down"), httpx.ReadTimeout("slow"), ValueError("bad json")],
    )
    async def test_errors_become_absent(self, fetcher: NameFetcher, chzzk: AsyncMock, error: Exception):
        chzzk.fetch_channel_name.side_effect = error
        descriptor = make_descriptor(Platform.CHZZK, CHZZK_ID, HOST, False)

        assert await fetcher.fetch_name(descriptor) is None
        assert descriptor.display_name is None
