"""Incremental page assembly.

The shell goes out first, then one `setName` fragment per name found, then the
document end. Lookups may overlap but fragments always leave in descriptor order.

State flow:
- SHELL (created) -> ENRICHING (shell written) -> CLOSED (document end written,
  or consumer went away)
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from enum import Enum
from typing import Protocol

import anyio
from loguru import logger

from app.domain.streams.enrichment import needs_name_lookup
from app.domain.streams.page import DOCUMENT_END, PageContext, render_document, render_fragment, render_shell
from app.domain.streams.stream_models import EnrichmentFragment, StreamDescriptor


class ComposerState(str, Enum):
    SHELL = "shell"
    ENRICHING = "enriching"
    CLOSED = "closed"


class NameSource(Protocol):
    async def fetch_name(self, descriptor: StreamDescriptor) -> str | None: ...


class ResponseComposer:
    def __init__(
        self,
        ctx: PageContext,
        names: NameSource,
        *,
        concurrency: int = 4,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ):
        self._ctx = ctx
        self._names = names
        self._semaphore = asyncio.Semaphore(max(1, concurrency))
        self._cancelled = asyncio.Event()
        self._on_close = on_close
        self._tasks: list[asyncio.Task] = []
        self.state = ComposerState.SHELL
        self.writes = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def needs_enrichment(self) -> bool:
        return any(needs_name_lookup(d) for d in self._ctx.descriptors)

    def render_document(self) -> str:
        """Whole page in one piece, for responses that need no lookups."""
        self.state = ComposerState.CLOSED
        return render_document(self._ctx)

    def cancel(self, reason: str = "cancelled") -> None:
        """Stop writing and abandon every lookup still in flight."""
        if not self._cancelled.is_set():
            logger.info("Stream cancelled: {} (writes={})", reason, self.writes)
            self._cancelled.set()
        for task in self._tasks:
            if not task.done():
                task.cancel()

    async def _lookup(self, descriptor: StreamDescriptor) -> str | None:
        async with self._semaphore:
            if self._cancelled.is_set():
                return None
            return await self._names.fetch_name(descriptor)

    async def fragments(self) -> AsyncIterator[EnrichmentFragment]:
        """Yield found names in ascending descriptor index.

        Results that complete early are held until every lower index is out.
        """
        pending = [(index, d) for index, d in enumerate(self._ctx.descriptors) if needs_name_lookup(d)]
        self._tasks = [asyncio.create_task(self._lookup(d)) for _, d in pending]
        cancel_waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            for (index, _), task in zip(pending, self._tasks):
                await asyncio.wait({task, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED)
                if self._cancelled.is_set():
                    return
                name = task.result()
                if name:
                    yield EnrichmentFragment(index=index, display_name=name)
        finally:
            cancel_waiter.cancel()

    def _write(self, chunk: str) -> bytes:
        self.writes += 1
        return chunk.encode("utf-8")

    async def stream(self) -> AsyncIterator[bytes]:
        """Response body: shell, ordered fragments, document end."""
        fragments = self.fragments()
        try:
            yield self._write(render_shell(self._ctx))
            self.state = ComposerState.ENRICHING

            async for fragment in fragments:
                if self._cancelled.is_set():
                    break
                yield self._write(render_fragment(self._ctx.nonce, fragment.index, fragment.display_name))

            if self._cancelled.is_set():
                logger.debug("Dropping document end after cancellation")
            else:
                yield self._write(DOCUMENT_END)
        except (GeneratorExit, asyncio.CancelledError):
            self.cancel("consumer closed the stream")
            raise
        finally:
            self.state = ComposerState.CLOSED
            with anyio.CancelScope(shield=True):
                await fragments.aclose()
                await self._release()

    async def _release(self) -> None:
        for task in self._tasks:
            if not task.done():
                task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            await on_close()
