# src/sms_gateway/main.py
"""Main entry point for the SMS gateway application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sms_gateway.api import send_router
from sms_gateway.api.rejection import reject
from sms_gateway.core.errors import RejectionReason
from sms_gateway.core.logging import configure_logging
from sms_gateway.core.settings import settings
from sms_gateway.services.pipeline import get_pipeline, reset_pipeline

logger = logging.getLogger(__name__)

# No docs or schema routes: every path except /send answers 404.
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

app.include_router(send_router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        reason = RejectionReason.METHOD_NOT_ALLOWED
    else:
        reason = RejectionReason.NOT_FOUND
    return reject(reason, f"{request.method} {request.url.path}: {exc.detail}")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> PlainTextResponse:
    return reject(RejectionReason.MALFORMED_PAYLOAD, f"{request.url.path}: {exc.errors()}")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return reject(RejectionReason.INTERNAL_ERROR, f"{type(exc).__name__}: {exc}")


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings)
    # Opens the serial port; a missing device fails startup.
    get_pipeline()
    logger.info("SMS gateway ready on %s", settings.listen)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    reset_pipeline()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.listen_host, port=settings.listen_port)
