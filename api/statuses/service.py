"""
Status business logic.

Each operation either returns the status representation or raises exactly
one of its classified error kinds (see `statuses/errors.py`).
"""

from __future__ import annotations

from . import errors, repository, schemas


def _new_name(payload: schemas.PatchStatusRequest) -> str:
    if payload.name is None:
        raise errors.NoFieldsPatched()
    return payload.name


async def create_status(payload: schemas.NewStatusRequest) -> schemas.StatusResponse:
    with errors.NEW_STATUS.translate():
        status_id = await repository.insert_status(payload.name)
    return schemas.StatusResponse(id=status_id, name=payload.name)


async def get_status_by_id(status_id: int) -> schemas.StatusResponse:
    with errors.GET_STATUS.translate():
        name = await repository.get_name_by_id(status_id)
    return schemas.StatusResponse(id=status_id, name=name)


async def get_status_by_name(name: str) -> schemas.StatusResponse:
    with errors.GET_STATUS.translate():
        status_id = await repository.get_id_by_name(name)
    return schemas.StatusResponse(id=status_id, name=name)


async def delete_status_by_id(status_id: int) -> schemas.StatusResponse:
    with errors.DELETE_STATUS.translate():
        name = await repository.delete_by_id(status_id)
    return schemas.StatusResponse(id=status_id, name=name)


async def delete_status_by_name(name: str) -> schemas.StatusResponse:
    with errors.DELETE_STATUS.translate():
        status_id = await repository.delete_by_name(name)
    return schemas.StatusResponse(id=status_id, name=name)


async def patch_status_by_id(
    status_id: int,
    payload: schemas.PatchStatusRequest,
) -> schemas.StatusResponse:
    new_name = _new_name(payload)
    with errors.PATCH_STATUS.translate():
        await repository.rename_by_id(status_id, new_name)
    return schemas.StatusResponse(id=status_id, name=new_name)


async def patch_status_by_name(
    name: str,
    payload: schemas.PatchStatusRequest,
) -> schemas.StatusResponse:
    new_name = _new_name(payload)
    with errors.PATCH_STATUS.translate():
        status_id = await repository.rename_by_name(name, new_name)
    return schemas.StatusResponse(id=status_id, name=new_name)


async def list_statuses() -> schemas.StatusListResponse:
    with errors.LIST_STATUSES.translate():
        rows = await repository.list_statuses()
    return schemas.StatusListResponse(
        list=[schemas.StatusResponse(id=row["id"], name=row["name"]) for row in rows]
    )
