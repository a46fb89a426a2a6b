"""
Static file endpoint.

Errors are answered with a short plain-text body; OS error details stay in
the logs.
"""

from __future__ import annotations

import mimetypes

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from . import service

router = APIRouter(prefix="/static")

_ERROR_BODIES = {
    400: "Bad request",
    404: "Not found",
    422: "Unprocessable content",
}


@router.get("/{subpath:path}")
async def get_static_file(subpath: str) -> Response:
    try:
        stream = await service.open_file_stream(service.static_root(), subpath)
    except (service.InvalidSubPath, service.FileOpenError) as exc:
        return PlainTextResponse(_ERROR_BODIES.get(exc.status_code, str(exc)), status_code=exc.status_code)

    media_type, _ = mimetypes.guess_type(subpath)
    # Closes the file even when the body is never iterated.
    return StreamingResponse(
        stream,
        media_type=media_type or "application/octet-stream",
        background=BackgroundTask(stream.aclose),
    )
