"""
Classified API errors and the per-operation storage error policy.

Storage failures are classified once, where they are first observed, into a
small closed set of kinds. Each kind carries the HTTP status it maps to.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Mapping

import asyncpg
from fastapi import status

from .db import RowNotFoundError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class StorageFailure(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Failed to manipulate database resources"


# (violation class, constraint name)
ConstraintKey = tuple[type[asyncpg.IntegrityConstraintViolationError], str]


@dataclass(frozen=True)
class ErrorPolicy:
    """
    How one operation narrows storage errors into its own error kinds.

    `constraints` rows are checked first, then `not_found`; whatever is left
    becomes a StorageFailure that keeps the original error as its cause.
    """

    operation: str
    constraints: Mapping[ConstraintKey, type[ApiError]] = field(default_factory=dict)
    not_found: type[ApiError] | None = None
    # Kinds the operation raises itself before touching storage.
    prechecks: tuple[type[ApiError], ...] = ()

    @property
    def kinds(self) -> frozenset[type[ApiError]]:
        kinds = set(self.constraints.values()) | set(self.prechecks)
        if self.not_found is not None:
            kinds.add(self.not_found)
        kinds.add(StorageFailure)
        return frozenset(kinds)

    def classify(self, error: BaseException) -> ApiError:
        if isinstance(error, asyncpg.IntegrityConstraintViolationError):
            constraint = getattr(error, "constraint_name", None)
            for (violation, name), kind in self.constraints.items():
                if isinstance(error, violation) and constraint == name:
                    return kind()
        if self.not_found is not None and isinstance(error, RowNotFoundError):
            return self.not_found()
        return StorageFailure()

    @contextmanager
    def translate(self) -> Iterator[None]:
        try:
            yield
        except ApiError:
            raise
        except Exception as exc:
            error = self.classify(exc)
            if isinstance(error, StorageFailure):
                logger.exception("storage_failure operation=%s", self.operation)
                raise error from exc
            raise error from None
