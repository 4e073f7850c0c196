"""Best-effort display-name lookups for resolved streams."""

from collections.abc import Awaitable, Callable

from loguru import logger

from app.domain.streams.platforms import Platform, get_platform_spec
from app.domain.streams.stream_models import StreamDescriptor
from app.services.integrations.chzzk_service import ChzzkService
from app.services.integrations.youtube_service import YouTubeService

NameLookup = Callable[[str], Awaitable[str | None]]


def needs_name_lookup(descriptor: StreamDescriptor) -> bool:
    """True when the server would have to fetch this stream's name."""
    return descriptor.display_name is None and get_platform_spec(descriptor.platform).name_lookup


class NameFetcher:
    """Looks up display names per platform; failures become None."""

    def __init__(self, chzzk: ChzzkService, youtube: YouTubeService):
        self._lookups: dict[Platform, NameLookup] = {
            Platform.CHZZK: chzzk.fetch_channel_name,
            Platform.YOUTUBE: youtube.fetch_author_name,
        }

    async def fetch_name(self, descriptor: StreamDescriptor) -> str | None:
        if descriptor.display_name is not None:
            return descriptor.display_name

        lookup = self._lookups.get(descriptor.platform)
        if lookup is None or not needs_name_lookup(descriptor):
            return None

        try:
            name = await lookup(descriptor.id)
        except Exception as exc:
            logger.debug(
                "Name lookup failed for {}:{}: {}: {}",
                descriptor.platform.value,
                descriptor.id,
                type(exc).__name__,
                exc,
            )
            return None

        if name:
            descriptor.set_display_name(name)
        return name or None
