"""Conversion of upload sources into async byte streams."""

import asyncio
import os
from collections.abc import AsyncIterable, AsyncIterator
from typing import BinaryIO, Union

from selstorage.core.exceptions import UploadStreamError, ValidationError

UploadSource = Union[bytes, str, "os.PathLike[str]", BinaryIO, AsyncIterable[bytes]]


async def _iter_bytes(data: bytes) -> AsyncIterator[bytes]:
    yield data


async def _iter_file(path: "os.PathLike[str] | str", chunk_size: int) -> AsyncIterator[bytes]:
    try:
        fh = await asyncio.to_thread(open, path, "rb")
    except OSError as e:
        raise UploadStreamError(f"Failed to open upload file '{path}': {e}") from e
    try:
        async for chunk in _iter_reader(fh, chunk_size):
            yield chunk
    finally:
        await asyncio.to_thread(fh.close)


async def _iter_reader(reader: BinaryIO, chunk_size: int) -> AsyncIterator[bytes]:
    # Reads run in a worker thread so the event loop keeps serving other requests
    while True:
        try:
            chunk = await asyncio.to_thread(reader.read, chunk_size)
        except Exception as e:
            raise UploadStreamError(f"Failed to read upload stream: {e}") from e
        if not chunk:
            return
        yield chunk


async def _iter_async(source: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    try:
        async for chunk in source:
            yield chunk
    except UploadStreamError:
        raise
    except Exception as e:
        raise UploadStreamError(f"Upload stream failed: {e}") from e


def to_byte_stream(source: UploadSource, chunk_size: int) -> AsyncIterator[bytes]:
    """Turn an upload source into an async iterator of byte chunks.

    Paths are opened lazily, when the request body starts being sent, and
    read ``chunk_size`` bytes at a time.

    Args:
        source: Raw bytes, a filesystem path, a binary file object or an
            async iterable of bytes
        chunk_size: Read size for paths and file objects

    Returns:
        Async iterator suitable as an httpx request body

    Raises:
        ValidationError: If the source type is not supported
    """
    if isinstance(source, (bytes, bytearray)):
        return _iter_bytes(bytes(source))
    if isinstance(source, (str, os.PathLike)):
        if not os.path.isfile(source):
            raise ValidationError(f"File not found: {source}")
        return _iter_file(source, chunk_size)
    if isinstance(source, AsyncIterable):
        return _iter_async(source)
    if hasattr(source, "read"):
        return _iter_reader(source, chunk_size)
    raise ValidationError(f"Unsupported upload source: {type(source).__name__}")
