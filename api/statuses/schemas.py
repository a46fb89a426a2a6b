"""
Pydantic schemas for status endpoints.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel


class NewStatusRequest(BaseModel):
    name: str


class PatchStatusRequest(BaseModel):
    # Omitted or null means "leave unchanged".
    name: str | None = None


class StatusResponse(BaseModel):
    id: int
    name: str


class StatusListResponse(BaseModel):
    # "list" is the wire name.
    list: List[StatusResponse]
