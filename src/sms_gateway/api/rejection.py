"""The single place where rejected requests are logged and rendered.

Callers must not be able to tell validation stages apart, so every
rejection produces the same not-found response; the reason only reaches
the log.
"""

from __future__ import annotations

import logging

from fastapi import status
from fastapi.responses import PlainTextResponse

from sms_gateway.core.errors import RejectionReason

logger = logging.getLogger(__name__)

REJECTION_STATUS = status.HTTP_404_NOT_FOUND
REJECTION_BODY = "404 page not found\n"


def rejection_response() -> PlainTextResponse:
    """Return the uniform response used for every rejection."""
    return PlainTextResponse(REJECTION_BODY, status_code=REJECTION_STATUS)


def reject(reason: RejectionReason, detail: str) -> PlainTextResponse:
    """Log why a request was rejected and return the uniform response."""
    logger.warning("Rejected request [%s]: %s", reason.value, detail)
    return rejection_response()
