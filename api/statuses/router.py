"""
Status API endpoints.

Responses always use the envelope from `core/response.py`, so the HTTP
status and the body's "status" field agree.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path
from fastapi.responses import JSONResponse

from core.response import capture

from . import schemas, service

router = APIRouter(prefix="/api/v1/status")

# Status ids are Postgres bigint.
StatusId = Annotated[int, Path(ge=-(2**63), le=2**63 - 1)]


@router.post("/new")
async def post_new(request: schemas.NewStatusRequest) -> JSONResponse:
    return (await capture(service.create_status(request))).to_response()


@router.get("/id/{status_id}")
async def get_by_id(status_id: StatusId) -> JSONResponse:
    return (await capture(service.get_status_by_id(status_id))).to_response()


@router.get("/name/{name}")
async def get_by_name(name: str) -> JSONResponse:
    return (await capture(service.get_status_by_name(name))).to_response()


@router.delete("/id/{status_id}")
async def delete_by_id(status_id: StatusId) -> JSONResponse:
    return (await capture(service.delete_status_by_id(status_id))).to_response()


@router.delete("/name/{name}")
async def delete_by_name(name: str) -> JSONResponse:
    return (await capture(service.delete_status_by_name(name))).to_response()


@router.patch("/id/{status_id}")
async def patch_by_id(status_id: StatusId, request: schemas.PatchStatusRequest) -> JSONResponse:
    return (await capture(service.patch_status_by_id(status_id, request))).to_response()


@router.patch("/name/{name}")
async def patch_by_name(name: str, request: schemas.PatchStatusRequest) -> JSONResponse:
    return (await capture(service.patch_status_by_name(name, request))).to_response()


@router.get("/list/")
async def get_list() -> JSONResponse:
    return (await capture(service.list_statuses())).to_response()
