from __future__ import annotations

import base64
import hashlib
import io
import os
from typing import BinaryIO

CHUNK_SIZE = 64 * 1024


def is_stream(value: object) -> bool:
    return callable(getattr(value, "read", None))


def backing_file(stream: BinaryIO) -> str | None:
    """Return the filesystem path behind ``stream`` when it is a regular file."""

    name = getattr(stream, "name", None)
    if not isinstance(name, (str, os.PathLike)):
        return None
    path = os.fspath(name)
    return path if os.path.isfile(path) else None


def ensure_seekable(stream: BinaryIO) -> BinaryIO:
    """Return a seekable stream positioned where ``stream`` was.

    Non-seekable sources are buffered once into memory.
    """

    try:
        if stream.seekable():
            return stream
    except (AttributeError, ValueError):
        pass
    return io.BytesIO(stream.read())


def stream_size(stream: BinaryIO) -> int:
    """Number of bytes between the current position and the end; position is restored."""

    start = stream.tell()
    end = stream.seek(0, io.SEEK_END)
    stream.seek(start)
    return end - start


def md5_from_stream(stream: BinaryIO, length: int | None = None) -> str:
    """Base64 MD5 of the next ``length`` bytes (all remaining when ``None``); position is restored."""

    start = stream.tell()
    digest = hashlib.md5()
    remaining = length
    while remaining is None or remaining > 0:
        size = CHUNK_SIZE if remaining is None else min(CHUNK_SIZE, remaining)
        chunk = stream.read(size)
        if not chunk:
            break
        digest.update(chunk)
        if remaining is not None:
            remaining -= len(chunk)
    stream.seek(start)
    return base64.b64encode(digest.digest()).decode("ascii")


def md5_from_bytes(data: bytes) -> str:
    return base64.b64encode(hashlib.md5(data).digest()).decode("ascii")
