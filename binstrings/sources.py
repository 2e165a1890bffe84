from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Tuple, Union

from binstrings.exceptions import SourceReadError


DEFAULT_BUFFER_SIZE = 1024 * 1024


def _check_buffer_size(buffer_size: int) -> int:
    if buffer_size < 1:
        raise ValueError(f"buffer_size must be positive, got {buffer_size}")
    return buffer_size


def _iter_stream(f: BinaryIO, buffer_size: int, name: str) -> Iterator[Tuple[int, int]]:
    position = 0
    while True:
        try:
            chunk = f.read(buffer_size)
        except OSError as e:
            raise SourceReadError(f"Failed reading {name} at offset {position}: {e}") from e
        if not chunk:
            return
        for b in chunk:
            yield position, b
            position += 1


class BytesSource:
    """In-memory bytes."""

    def __init__(self, data: Union[bytes, bytearray, memoryview]):
        self.data = bytes(data)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return enumerate(self.data)


class FileSource:
    """A file read front to back through a fixed-size buffer."""

    def __init__(self, path: Union[str, Path], buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.path = Path(path)
        self.buffer_size = _check_buffer_size(buffer_size)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        # open eagerly, only the reads are lazy
        try:
            f = self.path.open("rb")
        except OSError as e:
            raise SourceReadError(f"Failed opening {self.path}: {e}") from e
        return self._read(f)

    def _read(self, f: BinaryIO) -> Iterator[Tuple[int, int]]:
        with f:
            yield from _iter_stream(f, self.buffer_size, str(self.path))


class StdinSource:
    """Standard input, read the same way as a file."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE, stream: Optional[BinaryIO] = None):
        self.buffer_size = _check_buffer_size(buffer_size)
        self.stream = stream

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        stream = self.stream if self.stream is not None else sys.stdin.buffer
        yield from _iter_stream(stream, self.buffer_size, "<stdin>")
