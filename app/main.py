import time
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from granian import Granian
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.errors import http_error_handler
from app.api.viewer import router as viewer_router
from app.shared.api.utils import format_error, init_logger, log_routes
from app.shared.config import config


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            # For streamed pages this covers the shell only, not the enrichment tail.
            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000

            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{format_error(exc)}"
            )

            return PlainTextResponse(
                f"Internal Server Error (request_id: {request_id})",
                status_code=500,
            )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    log_routes(server)

    if config.get_bool("LOGFIRE_ENABLE"):
        logger.info("Logfire initializing")

        logfire.configure(
            token=config.get("LOGFIRE_TOKEN") or None,
            service_name="mullive",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=True)

        logger.info("Logfire instrument httpx")
        logfire.instrument_httpx()

    yield

    logger.info("Application shutdown...")


def create_app() -> FastAPI:
    server = FastAPI(
        version="1.0",
        title="Mul.Live",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    server.add_middleware(HTTPLoggingMiddleware)
    server.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore

    server.include_router(viewer_router)

    return server


app = create_app()


def build_granian_kwargs():
    kwargs = {
        "interface": "asgi",
        "address": config.get("API_HOST", "0.0.0.0"),
        "port": int(config.get("API_PORT", "8787")),
        "workers": int(config.get("API_WORKERS", "1")),
        "reload": config.is_debug(),
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:app", **granian_kwargs).serve()
