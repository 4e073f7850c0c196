"""Multiview page endpoint.

Every path is a list of stream references, e.g.
`/abcdef1234567890abcdef1234567890/t:somechannel/y:@somehandle`.
"""

from uuid import uuid4

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response, StreamingResponse
from loguru import logger

from app.domain.streams.classifier import SegmentClassifier
from app.domain.streams.composer import ResponseComposer
from app.domain.streams.descriptor_builder import build_descriptors, split_path
from app.domain.streams.enrichment import NameFetcher
from app.domain.streams.page import PageContext
from app.domain.streams.platforms import get_platform_spec
from app.domain.streams.stream_models import StreamDescriptor
from app.services.http_client import build_upstream_client
from app.services.integrations.chzzk_service import ChzzkService
from app.services.integrations.youtube_service import YouTubeService
from app.shared.config import config

ALLOWED_METHODS = ("OPTIONS", "GET", "HEAD")
ALLOW_HEADER = ", ".join(ALLOWED_METHODS)

router = APIRouter()


def build_content_security_policy(descriptors: list[StreamDescriptor], nonce: str) -> str:
    """CSP allowing frames only from the platforms present on the page."""
    frame_sources = ["'self'"]
    for descriptor in descriptors:
        for source in get_platform_spec(descriptor.platform).frame_sources:
            if source not in frame_sources:
                frame_sources.append(source)

    return "; ".join(
        [
            "base-uri 'self'",
            "default-src 'self'",
            f"script-src 'nonce-{nonce}'",
            f"style-src 'nonce-{nonce}'",
            f"frame-src {' '.join(frame_sources)}",
            "object-src 'none'",
        ]
    )


def page_headers(descriptors: list[StreamDescriptor], nonce: str) -> dict[str, str]:
    return {
        "content-security-policy": build_content_security_policy(descriptors, nonce),
        "strict-transport-security": "max-age=31536000; includeSubDomains",
        "x-content-type-options": "nosniff",
    }


def request_path(request: Request) -> str:
    """Path as sent by the client, without percent-decoding."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1")
    return request.url.path


@router.api_route("/{path:path}", methods=list(ALLOWED_METHODS), response_class=HTMLResponse)
async def view_streams(request: Request, path: str) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=204, headers={"Allow": ALLOW_HEADER})

    has_capability = config.get_capability_header() in request.headers
    host = request.url.hostname or ""
    segments = split_path(request_path(request))

    client = build_upstream_client()
    try:
        youtube = YouTubeService(client)
        descriptors = await build_descriptors(SegmentClassifier(youtube), segments, host, has_capability)
    except BaseException:
        await client.aclose()
        raise

    nonce = uuid4().hex
    ctx = PageContext(
        descriptors=descriptors,
        has_capability=has_capability,
        nonce=nonce,
        title=config.get_page_title(),
        extension_url=config.get_extension_url(request.headers.get("user-agent")),
    )
    composer = ResponseComposer(
        ctx,
        NameFetcher(ChzzkService(client), youtube),
        concurrency=config.get_enrich_concurrency(),
        on_close=client.aclose,
    )
    headers = page_headers(descriptors, nonce)

    if request.method == "HEAD" or not composer.needs_enrichment():
        await client.aclose()
        return HTMLResponse(composer.render_document(), headers=headers)

    logger.debug("Streaming page for {} streams", len(descriptors))
    headers["x-accel-buffering"] = "no"
    return StreamingResponse(composer.stream(), media_type="text/html", headers=headers)
