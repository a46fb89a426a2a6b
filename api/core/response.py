"""
Uniform JSON envelope for API responses.

Success: {"status": 200, "data": ...}
Failure: {"status": 404, "errors": ["outermost message", ..., "root cause"]}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .errors import ApiError


def error_chain(error: BaseException) -> list[str]:
    """
    Messages from `error` down to its root cause, following `__cause__`.
    """
    messages: list[str] = []
    current: BaseException | None = error
    while current is not None:
        messages.append(str(current) or type(current).__name__)
        current = current.__cause__
    return messages


@dataclass(frozen=True)
class ApiResponse:
    """
    Tagged result of one operation: either `data` or `error` is meaningful.
    """

    data: Any = None
    error: ApiError | None = None
    success_status: int = status.HTTP_200_OK

    @classmethod
    def ok(cls, data: Any, success_status: int = status.HTTP_200_OK) -> ApiResponse:
        return cls(data=data, success_status=success_status)

    @classmethod
    def failed(cls, error: ApiError) -> ApiResponse:
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int:
        if self.error is not None:
            return self.error.status_code
        return self.success_status

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.status_code}
        if self.error is not None:
            body["errors"] = error_chain(self.error)
        else:
            body["data"] = jsonable_encoder(self.data)
        return body

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


async def capture(operation: Awaitable[Any], *, success_status: int = status.HTTP_200_OK) -> ApiResponse:
    """
    Await a service operation and wrap its outcome in an ApiResponse.

    Only classified errors are captured; anything else propagates.
    """
    try:
        data = await operation
    except ApiError as exc:
        return ApiResponse.failed(exc)
    return ApiResponse.ok(data, success_status=success_status)
