"""
Status error kinds and the storage error policy of every status operation.
"""

from __future__ import annotations

import asyncpg
from fastapi import status

from core.errors import ApiError, ErrorPolicy

NAME_UNIQUE_CONSTRAINT = "un_issue_statuses_name"
ISSUES_STATUS_FK = "fk_issues_status"


class StatusAlreadyExists(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Status with the given name already exists"


class StatusNotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Status not found"


class StatusInUse(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Status cannot be deleted because it is in use"


class NoFieldsPatched(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "At least one field must be patched, none were"


NEW_STATUS = ErrorPolicy(
    operation="status.create",
    constraints={
        (asyncpg.UniqueViolationError, NAME_UNIQUE_CONSTRAINT): StatusAlreadyExists,
    },
)

GET_STATUS = ErrorPolicy(
    operation="status.get",
    not_found=StatusNotFound,
)

LIST_STATUSES = ErrorPolicy(operation="status.list")

DELETE_STATUS = ErrorPolicy(
    operation="status.delete",
    constraints={
        (asyncpg.ForeignKeyViolationError, ISSUES_STATUS_FK): StatusInUse,
    },
    not_found=StatusNotFound,
)

PATCH_STATUS = ErrorPolicy(
    operation="status.patch",
    constraints={
        (asyncpg.UniqueViolationError, NAME_UNIQUE_CONSTRAINT): StatusAlreadyExists,
    },
    not_found=StatusNotFound,
    prechecks=(NoFieldsPatched,),
)
