from fastapi import Request
from fastapi.responses import PlainTextResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.viewer import ALLOW_HEADER


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """
    Plain-text rendering of framework HTTP errors.
    A 405 always advertises the methods the page endpoint accepts.
    """
    if exc.status_code == 405:
        logger.warning("Rejected method: path={} method={}", request.url.path, request.method)
        return PlainTextResponse("Method Not Allowed", status_code=405, headers={"Allow": ALLOW_HEADER})

    logger.warning("HTTP error: path={} status={} detail={}", request.url.path, exc.status_code, exc.detail)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)
