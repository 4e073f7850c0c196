"""Segment classification: one path segment to one stream descriptor."""

from typing import Protocol

from loguru import logger

from app.domain.streams.platforms import SEGMENT_RULES, Platform, SegmentRule, get_platform_spec
from app.domain.streams.stream_models import ResolvedChannel, StreamDescriptor


class ChannelResolver(Protocol):
    async def resolve_channel(self, raw_handle: str) -> ResolvedChannel | None: ...


def match_rule(segment: str) -> tuple[SegmentRule, str] | None:
    """Return the first rule matching `segment` with its extracted value."""
    for rule in SEGMENT_RULES:
        value = rule.extract(segment)
        if value is not None:
            return rule, value
    return None


def make_descriptor(
    platform: Platform,
    stream_id: str,
    host: str,
    has_capability: bool,
    display_name: str | None = None,
) -> StreamDescriptor:
    spec = get_platform_spec(platform)
    descriptor = StreamDescriptor(
        platform=platform,
        id=stream_id,
        player_url=spec.build_player_url(stream_id, host, has_capability),
        chat_url=spec.build_chat_url(stream_id, host),
        requires_capability=spec.requires_capability,
    )
    descriptor.set_display_name(display_name)
    return descriptor


class SegmentClassifier:
    """Classifies path segments against the ordered rule table.

    Indirect rules delegate to `resolver`; any failure there drops the segment.
    """

    def __init__(self, resolver: ChannelResolver):
        self._resolver = resolver

    async def classify(self, segment: str, host: str, has_capability: bool) -> StreamDescriptor | None:
        matched = match_rule(segment)
        if matched is None:
            return None

        rule, value = matched
        if rule.is_canonical(value):
            return make_descriptor(rule.platform, value, host, has_capability)

        try:
            resolved = await self._resolver.resolve_channel(value)
        except Exception as exc:
            logger.warning("Channel resolution failed for {!r}: {}: {}", segment, type(exc).__name__, exc)
            return None

        if resolved is None:
            return None
        return make_descriptor(rule.platform, resolved.video_id, host, has_capability, resolved.display_name)
