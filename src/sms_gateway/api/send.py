"""Inbound endpoint accepting encrypted SMS commands."""

from __future__ import annotations

from typing import Annotated
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request, Response, status

from sms_gateway.core.errors import GatewayError
from sms_gateway.services.pipeline import CommandPipeline, get_pipeline

from .rejection import reject

DATA_PARAMETER = "data"

router = APIRouter(tags=["send"])


def get_pipeline_dep() -> CommandPipeline:
    """Return the shared command pipeline."""
    return get_pipeline()


PipelineDep = Annotated[CommandPipeline, Depends(get_pipeline_dep)]


def _first_query_value(request: Request, name: str) -> bytes | None:
    """Return the first value of a query parameter as raw bytes.

    Percent escapes are decoded byte for byte, so binary tokens survive
    intact instead of going through a text decoding.
    """
    query = request.scope.get("query_string", b"").decode("latin-1")
    for key, value in parse_qsl(query, keep_blank_values=True, encoding="latin-1"):
        if key == name:
            return value.encode("latin-1")
    return None


@router.get("/send")
def send_command(request: Request, pipeline: PipelineDep) -> Response:
    """Accept one command token and relay it to the SMS device.

    Runs on the worker thread pool, one thread per request. Any failure is
    answered with the uniform not-found response.
    """
    data = _first_query_value(request, DATA_PARAMETER)
    try:
        pipeline.process(data)
    except GatewayError as err:
        return reject(err.reason, f"{type(err).__name__}: {err}")
    return Response(status_code=status.HTTP_200_OK)
