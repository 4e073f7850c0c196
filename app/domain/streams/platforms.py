"""Supported streaming platforms and the ordered segment grammar table."""

import re
from dataclasses import dataclass
from enum import Enum


class Platform(str, Enum):
    CHZZK = "chzzk"
    TWITCH = "twitch"
    SOOP = "soop"
    YOUTUBE = "youtube"


class Resolution(str, Enum):
    """How a matched segment becomes a canonical id."""

    DIRECT = "direct"
    INDIRECT = "indirect"


@dataclass(frozen=True)
class PlatformSpec:
    """URL templates and page behavior for one platform.

    Templates accept `{id}` and `{host}` placeholders. `capability_player_suffix`
    is appended to the player URL when the client reports the browser extension.
    """

    platform: Platform
    player_url: str
    chat_url: str
    frame_sources: tuple[str, ...]
    requires_capability: bool = False
    name_lookup: bool = False
    capability_player_suffix: str = ""

    def build_player_url(self, stream_id: str, host: str, has_capability: bool) -> str:
        url = self.player_url.format(id=stream_id, host=host)
        if has_capability and self.capability_player_suffix:
            url += self.capability_player_suffix
        return url

    def build_chat_url(self, stream_id: str, host: str) -> str:
        return self.chat_url.format(id=stream_id, host=host)


PLATFORMS: dict[Platform, PlatformSpec] = {
    Platform.CHZZK: PlatformSpec(
        platform=Platform.CHZZK,
        player_url="https://chzzk.naver.com/live/{id}",
        chat_url="https://chzzk.naver.com/live/{id}/chat",
        frame_sources=("chzzk.naver.com", "*.chzzk.naver.com"),
        name_lookup=True,
    ),
    Platform.TWITCH: PlatformSpec(
        platform=Platform.TWITCH,
        player_url="https://player.twitch.tv/?channel={id}&parent={host}",
        chat_url="https://www.twitch.tv/embed/{id}/chat?darkpopout&parent={host}",
        frame_sources=("player.twitch.tv", "www.twitch.tv"),
    ),
    Platform.SOOP: PlatformSpec(
        platform=Platform.SOOP,
        player_url="https://play.sooplive.co.kr/{id}/direct",
        chat_url="https://play.sooplive.co.kr/{id}?vtype=chat",
        frame_sources=("*.sooplive.co.kr",),
        requires_capability=True,
        capability_player_suffix="?showChat=true",
    ),
    Platform.YOUTUBE: PlatformSpec(
        platform=Platform.YOUTUBE,
        player_url="https://www.youtube.com/embed/{id}?autoplay=1",
        chat_url="https://www.youtube.com/live_chat?v={id}&embed_domain={host}&dark_theme=1",
        frame_sources=("www.youtube.com",),
        name_lookup=True,
    ),
}


YOUTUBE_VIDEO_ID_RE = re.compile(r"[a-zA-Z0-9_\-]{11}")


@dataclass(frozen=True)
class SegmentRule:
    """One entry of the ordered classification table.

    `pattern` must match the whole segment. Group `id` holds the canonical id
    for DIRECT rules and the raw remainder for INDIRECT rules. An INDIRECT
    remainder that fully matches `direct_pattern` is already canonical.
    """

    platform: Platform
    pattern: re.Pattern[str]
    resolution: Resolution = Resolution.DIRECT
    lowercase: bool = False
    direct_pattern: re.Pattern[str] | None = None

    def is_canonical(self, value: str) -> bool:
        if self.resolution is Resolution.DIRECT:
            return True
        return self.direct_pattern is not None and self.direct_pattern.fullmatch(value) is not None

    def extract(self, segment: str) -> str | None:
        match = self.pattern.fullmatch(segment)
        if not match:
            return None
        value = match.group("id")
        return value.lower() if self.lowercase else value


# Precedence is the tuple order: the first rule whose pattern matches wins.
SEGMENT_RULES: tuple[SegmentRule, ...] = (
    SegmentRule(
        platform=Platform.CHZZK,
        pattern=re.compile(r"(?P<id>[0-9a-f]{32})", re.IGNORECASE),
        lowercase=True,
    ),
    SegmentRule(
        platform=Platform.TWITCH,
        pattern=re.compile(r"t:(?P<id>[a-z0-9_]{4,25})", re.IGNORECASE),
    ),
    SegmentRule(
        platform=Platform.SOOP,
        pattern=re.compile(r"(?:[as]c?:)?(?P<id>[a-z0-9]{3,12})", re.IGNORECASE),
    ),
    SegmentRule(
        platform=Platform.YOUTUBE,
        pattern=re.compile(r"y:(?P<id>.*)", re.DOTALL),
        resolution=Resolution.INDIRECT,
        direct_pattern=YOUTUBE_VIDEO_ID_RE,
    ),
)


def get_platform_spec(platform: Platform) -> PlatformSpec:
    return PLATFORMS[platform]
