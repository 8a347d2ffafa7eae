"""
Byte-range access to large inputs.

The source only knows how to hand out ordered, fixed-size windows of raw
bytes. Opening, retrying and closing the underlying storage are the
caller's business.
"""

from __future__ import annotations

import io
import os
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Protocol

from .rules import CHUNK_SIZE


class StorageResource(Protocol):
    def size(self) -> int: ...

    def read_range(self, offset: int, end: int) -> bytes: ...


class BytesResource:
    """In-memory resource, mostly for tests and small payloads."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    def size(self) -> int:
        return len(self._data)

    def read_range(self, offset: int, end: int) -> bytes:
        _check_range(offset, end, len(self._data))
        return self._data[offset:end]


class FileResource:
    """
    Seekable binary file object exposed as a storage resource.

    The wrapped file stays owned by the caller unless it was opened
    through FileResource.open().
    """

    def __init__(self, fileobj: BinaryIO) -> None:
        self._file = fileobj
        fileobj.seek(0, io.SEEK_END)
        self._size = fileobj.tell()

    @classmethod
    @contextmanager
    def open(cls, path: str | os.PathLike) -> Iterator["FileResource"]:
        with open(path, "rb") as f:
            yield cls(f)

    def size(self) -> int:
        return self._size

    def read_range(self, offset: int, end: int) -> bytes:
        _check_range(offset, end, self._size)
        self._file.seek(offset)
        data = self._file.read(end - offset)
        if len(data) != end - offset:
            raise OSError(
                f"Short read at offset {offset}: expected {end - offset} bytes, got {len(data)}"
            )
        return data


def _check_range(offset: int, end: int, size: int) -> None:
    if not 0 <= offset <= end <= size:
        raise ValueError(f"Invalid byte range [{offset}, {end}) for size {size}")


def iterate_chunks(resource: StorageResource, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """
    Yield consecutive windows covering [0, size) with no gaps or overlaps.

    One read_range call per chunk, issued only when the consumer asks for
    the next chunk. The last chunk may be shorter than chunk_size.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be greater than 0")

    size = resource.size()
    offset = 0
    while offset < size:
        end = min(offset + chunk_size, size)
        yield resource.read_range(offset, end)
        offset = end
