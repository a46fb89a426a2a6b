"""
Static file serving confined to one root directory.

The client-supplied sub-path is validated component by component before any
filesystem access; only plain name segments are accepted, so the resolved
path cannot leave the root.
"""

from __future__ import annotations

import errno
import logging
import os
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import AsyncIterator

import aiofiles
from fastapi import status

from core.errors import ApiError

logger = logging.getLogger(__name__)

DEFAULT_STATIC_ROOT = "static"
STATIC_CHUNK_SIZE = 64 * 1024  # 64 KiB


class InvalidSubPath(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Given sub-path is invalid"

    def __init__(self, subpath: str) -> None:
        super().__init__()
        self.subpath = subpath


class FileOpenError(ApiError):
    message = "Failed to open file"

    def __init__(self, cause: OSError) -> None:
        super().__init__()
        self.not_found = isinstance(cause, FileNotFoundError) or cause.errno == errno.ENOENT

    @property  # type: ignore[override]
    def status_code(self) -> int:
        if self.not_found:
            return status.HTTP_404_NOT_FOUND
        return status.HTTP_422_UNPROCESSABLE_ENTITY


def static_root() -> Path:
    raw = os.environ.get("STATIC_ROOT", DEFAULT_STATIC_ROOT).strip() or DEFAULT_STATIC_ROOT
    return Path(raw)


def _is_plain_name(component: str) -> bool:
    if component in ("", ".", ".."):
        return False
    if "\\" in component or "\x00" in component:
        return False
    # Rejects drive letters ("C:") and anything a path parser would reinterpret.
    if PureWindowsPath(component).drive:
        return False
    return PurePosixPath(component).name == component


def resolve_subpath(root: Path, subpath: str) -> Path:
    """
    Join `subpath` onto `root` after checking every component is a plain name.

    Raises InvalidSubPath for empty, ".", ".." or rooted components, e.g.
    "", "/etc/passwd", "../secret" and "a//b" are all rejected.
    """
    components = subpath.split("/")
    if not all(_is_plain_name(component) for component in components):
        logger.warning("static_invalid_subpath subpath=%r", subpath)
        raise InvalidSubPath(subpath)
    return root.joinpath(*components)


class FileStream:
    """
    Chunked reader over an open file handle.

    Iterating reads the file to the end and closes it. `aclose()` closes the
    handle when the stream is dropped before or during iteration; it is safe
    to call more than once.
    """

    def __init__(self, handle, chunk_size: int = STATIC_CHUNK_SIZE) -> None:
        self._handle = handle
        self._chunk_size = chunk_size
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._handle.close()

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            while not self._closed:
                chunk = await self._handle.read(self._chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await self.aclose()


async def open_file_stream(
    root: Path,
    subpath: str,
    *,
    chunk_size: int = STATIC_CHUNK_SIZE,
) -> FileStream:
    """
    Open the confined file and return a FileStream over its bytes.

    Opening happens here, so open failures surface before any response is sent.
    The caller owns the stream and must iterate it or `aclose()` it.
    """
    full_path = resolve_subpath(root, subpath)
    try:
        handle = await aiofiles.open(full_path, "rb")
    except OSError as exc:
        raise FileOpenError(exc) from exc
    return FileStream(handle, chunk_size)
