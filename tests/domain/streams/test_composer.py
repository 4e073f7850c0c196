"""Tests for the streaming page composer."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.domain.streams.classifier import make_descriptor
from app.domain.streams.composer import ComposerState, ResponseComposer
from app.domain.streams.page import DOCUMENT_END, PageContext, render_fragment, render_shell
from app.domain.streams.platforms import Platform
from app.domain.streams.stream_models import StreamDescriptor
from tests.fixtures.upstream_fixtures import HOST

NONCE = "feedface"


class StaggeredNames:
    """Name source with a fixed delay per stream id."""

    def __init__(self, names: dict[str, tuple[float, str | None]]):
        self.names = names
        self.started: list[str] = []
        self.finished: list[str] = []
        self.cancelled: list[str] = []

    async def fetch_name(self, descriptor: StreamDescriptor) -> str | None:
        delay, name = self.names[descriptor.id]
        self.started.append(descriptor.id)
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(descriptor.id)
            raise
        self.finished.append(descriptor.id)
        return name


def _youtube(video_id: str, name: str | None = None) -> StreamDescriptor:
    return make_descriptor(Platform.YOUTUBE, video_id, HOST, False, display_name=name)


def _context(descriptors) -> PageContext:
    return PageContext(
        descriptors=descriptors,
        has_capability=False,
        nonce=NONCE,
        title="Mul.Live",
        extension_url="https://example.com/extension",
    )


async def _collect(composer: ResponseComposer) -> list[str]:
    return [chunk.decode("utf-8") async for chunk in composer.stream()]


class TestNeedsEnrichment:
    def test_only_unnamed_lookup_platforms(self):
        named = _youtube("aaaaaaaaaaa", "Known")
        twitch = make_descriptor(Platform.TWITCH, "someone", HOST, False)
        assert ResponseComposer(_context([named, twitch]), AsyncMock()).needs_enrichment() is False
        assert ResponseComposer(_context([_youtube("bbbbbbbbbbb")]), AsyncMock()).needs_enrichment() is True

    def test_render_document_closes(self):
        composer = ResponseComposer(_context([]), AsyncMock())
        document = composer.render_document()
        assert document.endswith(DOCUMENT_END)
        assert composer.state is ComposerState.CLOSED


class TestStream:
    async def test_fragments_follow_descriptor_order(self):
        descriptors = [_youtube("aaaaaaaaaaa"), _youtube("bbbbbbbbbbb"), _youtube("ccccccccccc")]
        names = StaggeredNames(
            {
                "aaaaaaaaaaa": (0.06, "First"),
                "bbbbbbbbbbb": (0.0, "Second"),
                "ccccccccccc": (0.03, "Third"),
            }
        )
        composer = ResponseComposer(_context(descriptors), names, concurrency=3)

        chunks = await _collect(composer)

        assert names.finished == ["bbbbbbbbbbb", "ccccccccccc", "aaaaaaaaaaa"]
        assert chunks == [
            render_shell(composer._ctx),
            render_fragment(NONCE, 0, "First"),
            render_fragment(NONCE, 1, "Second"),
            render_fragment(NONCE, 2, "Third"),
            DOCUMENT_END,
        ]
        assert composer.writes == 5
        assert composer.state is ComposerState.CLOSED

    async def test_absent_names_are_skipped(self):
        descriptors = [
            _youtube("aaaaaaaaaaa"),
            make_descriptor(Platform.TWITCH, "someone", HOST, False),
            _youtube("bbbbbbbbbbb"),
        ]
        names = StaggeredNames({"aaaaaaaaaaa": (0.0, None), "bbbbbbbbbbb": (0.0, "Found")})

        chunks = await _collect(ResponseComposer(_context(descriptors), names))

        assert chunks[1:] == [render_fragment(NONCE, 2, "Found"), DOCUMENT_END]

    async def test_no_names_matches_single_document(self):
        descriptors = [_youtube("aaaaaaaaaaa"), _youtube("bbbbbbbbbbb")]
        names = StaggeredNames({"aaaaaaaaaaa": (0.0, None), "bbbbbbbbbbb": (0.01, None)})
        composer = ResponseComposer(_context(descriptors), names)

        body = "".join(await _collect(composer))

        assert body == ResponseComposer(_context(descriptors), names).render_document()

    async def test_concurrency_is_bounded(self):
        ids = [f"{letter * 11}" for letter in "abcde"]
        names = StaggeredNames({video_id: (0.02, None) for video_id in ids})
        in_flight = 0
        peak = 0
        fetch = names.fetch_name

        async def counting_fetch(descriptor):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            try:
                return await fetch(descriptor)
            finally:
                in_flight -= 1

        names.fetch_name = counting_fetch
        await _collect(ResponseComposer(_context([_youtube(i) for i in ids]), names, concurrency=2))

        assert peak == 2
        assert sorted(names.finished) == sorted(ids)

    async def test_on_close_runs_once_after_completion(self):
        on_close = AsyncMock()
        names = StaggeredNames({"aaaaaaaaaaa": (0.0, "Name")})

        await _collect(ResponseComposer(_context([_youtube("aaaaaaaaaaa")]), names, on_close=on_close))

        on_close.assert_awaited_once()


class TestCancellation:
    async def test_consumer_closing_stops_writes_and_lookups(self):
        names = StaggeredNames({"aaaaaaaaaaa": (5.0, "Never"), "bbbbbbbbbbb": (5.0, "Never")})
        on_close = AsyncMock()
        composer = ResponseComposer(
            _context([_youtube("aaaaaaaaaaa"), _youtube("bbbbbbbbbbb")]), names, on_close=on_close
        )
        stream = composer.stream()

        shell = await stream.__anext__()
        assert shell.decode("utf-8") == render_shell(composer._ctx)

        next_chunk = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0.01)
        assert sorted(names.started) == ["aaaaaaaaaaa", "bbbbbbbbbbb"]

        next_chunk.cancel()
        with pytest.raises(asyncio.CancelledError):
            await next_chunk
        await stream.aclose()

        assert composer.cancelled is True
        assert composer.writes == 1
        assert composer.state is ComposerState.CLOSED
        assert sorted(names.cancelled) == ["aaaaaaaaaaa", "bbbbbbbbbbb"]
        assert names.finished == []
        on_close.assert_awaited_once()

    async def test_aclose_after_shell(self):
        names = StaggeredNames({"aaaaaaaaaaa": (5.0, "Never")})
        on_close = AsyncMock()
        composer = ResponseComposer(_context([_youtube("aaaaaaaaaaa")]), names, on_close=on_close)
        stream = composer.stream()

        await stream.__anext__()
        await stream.aclose()

        assert composer.cancelled is True
        assert composer.writes == 1
        assert names.finished == []
        on_close.assert_awaited_once()

    async def test_cancel_token_drops_document_end(self):
        names = StaggeredNames({"aaaaaaaaaaa": (5.0, "Never")})
        composer = ResponseComposer(_context([_youtube("aaaaaaaaaaa")]), names)
        stream = composer.stream()

        await stream.__anext__()
        composer.cancel("test")
        rest = [chunk async for chunk in stream]

        assert rest == []
        assert composer.writes == 1
        assert names.finished == []

    async def test_cancel_while_waiting_on_lookup(self):
        names = StaggeredNames({"aaaaaaaaaaa": (0.0, "Fast"), "bbbbbbbbbbb": (5.0, "Slow")})
        composer = ResponseComposer(_context([_youtube("aaaaaaaaaaa"), _youtube("bbbbbbbbbbb")]), names)
        stream = composer.stream()

        await stream.__anext__()
        first = await stream.__anext__()
        assert first.decode("utf-8") == render_fragment(NONCE, 0, "Fast")

        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0.01)
        composer.cancel("test")

        with pytest.raises(StopAsyncIteration):
            await pending
        assert composer.writes == 2
        assert names.cancelled == ["bbbbbbbbbbb"]
