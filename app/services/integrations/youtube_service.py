"""YouTube lookups: channel live-page scraping and oEmbed author names.

A channel reference (`UC…` id, `@handle` or custom slug) does not name a video,
so the channel's `/live` page is fetched and the canonical watch link of the
current broadcast is read from the markup.
"""

import re

import httpx
import orjson
from loguru import logger

from app.domain.streams.stream_models import ResolvedChannel
from app.services.integrations.platform_schemas import YouTubeOEmbedResponse
from app.shared.config import config

CHANNEL_ID_RE = re.compile(r"UC[a-zA-Z0-9_\-]{22}")
HANDLE_RE = re.compile(r"@[a-zA-Z0-9_\-.%]{3,270}")
CUSTOM_SLUG_RE = re.compile(r"[a-zA-Z0-9]{1,100}")

CANONICAL_LINK_RE = re.compile(
    r'<link rel="canonical" href="https://www\.youtube\.com/watch\?v=([a-zA-Z0-9_\-]{11})"'
)
AUTHOR_RE = re.compile(r'"author":"((?:[^"\\]|\\.)+)"')


def channel_live_path(raw_handle: str) -> str | None:
    """Map a channel reference to its URL path, or None if it fits no grammar."""
    if CHANNEL_ID_RE.fullmatch(raw_handle):
        return f"channel/{raw_handle}"
    if HANDLE_RE.fullmatch(raw_handle):
        return raw_handle
    if CUSTOM_SLUG_RE.fullmatch(raw_handle):
        return f"c/{raw_handle}"
    return None


def _decode_json_string(raw: str) -> str:
    try:
        return orjson.loads(f'"{raw}"')
    except orjson.JSONDecodeError:
        return raw


def parse_live_page(html: str) -> ResolvedChannel | None:
    """Extract the live video id and, when present, the channel name.

    The two markers are independent: a page without an author entry still
    resolves, a page without the canonical link never does.
    """
    match = CANONICAL_LINK_RE.search(html)
    if not match:
        return None

    display_name = None
    author = AUTHOR_RE.search(html)
    if author:
        display_name = _decode_json_string(author.group(1)) or None

    return ResolvedChannel(video_id=match.group(1), display_name=display_name)


class YouTubeService:
    def __init__(self, client: httpx.AsyncClient, base_url: str | None = None):
        self._client = client
        self.base_url = (base_url or config.get_youtube_base_url()).rstrip("/")

    async def resolve_channel(self, raw_handle: str) -> ResolvedChannel | None:
        """Resolve a channel reference to the video it is broadcasting.

        Args:
            raw_handle: `UC…` channel id, `@handle` or custom slug

        Returns:
            ResolvedChannel, or None when the reference is invalid, the page
            is unavailable or no live video is linked

        Raises:
            httpx.HTTPError: On transport failures
        """
        path = channel_live_path(raw_handle)
        if path is None:
            logger.debug("Rejected YouTube channel reference {!r}", raw_handle)
            return None

        url = f"{self.base_url}/{path}/live"
        async with self._client.stream("GET", url, follow_redirects=True) as response:
            if not response.is_success:
                # Leaving the block closes the unread body.
                logger.debug("YouTube live page returned {} for {}", response.status_code, raw_handle)
                return None
            await response.aread()
            html = response.text

        resolved = parse_live_page(html)
        if resolved is None:
            logger.debug("No live video linked from YouTube channel {}", raw_handle)
        return resolved

    async def fetch_author_name(self, video_id: str) -> str | None:
        """Look up the channel name of a video through oEmbed.

        Raises:
            httpx.HTTPError: On transport failures
            pydantic.ValidationError: On a malformed payload
        """
        params = {"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"}
        async with self._client.stream("GET", f"{self.base_url}/oembed", params=params) as response:
            if not response.is_success:
                logger.debug("YouTube oEmbed returned {} for {}", response.status_code, video_id)
                return None
            await response.aread()

        payload = YouTubeOEmbedResponse.model_validate_json(response.content)
        return payload.author_name or None
