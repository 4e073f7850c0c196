import asyncio
from collections.abc import Iterable

from loguru import logger

from app.domain.streams.classifier import SegmentClassifier
from app.domain.streams.stream_models import StreamDescriptor


def split_path(path: str) -> list[str]:
    """Split a URL path into its non-empty segments, left to right."""
    return [segment for segment in path.split("/") if segment]


async def build_descriptors(
    classifier: SegmentClassifier,
    segments: Iterable[str],
    host: str,
    has_capability: bool,
) -> list[StreamDescriptor]:
    """Classify every segment concurrently and keep recognized ones in path order.

    Returns only after every classification, including channel lookups, finished.
    """
    segments = [segment for segment in segments if segment]
    if not segments:
        return []

    results = await asyncio.gather(
        *(classifier.classify(segment, host, has_capability) for segment in segments)
    )
    descriptors = [descriptor for descriptor in results if descriptor is not None]

    logger.debug(
        "Classified {} segments into {} streams: {}",
        len(segments),
        len(descriptors),
        [f"{d.platform.value}:{d.id}" for d in descriptors],
    )
    return descriptors
