from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import BinaryIO, Deque, Dict, List, NamedTuple, Optional, Tuple

from binstrings.encodings import Encoding
from binstrings.exceptions import StringsError


class ExtractedString(NamedTuple):
    text: str
    offset: int


def decode_units(units: bytes) -> str:
    # units are single printable bytes, nulls already stripped for utf-16
    return units.decode("latin-1")


def _build_escape_table() -> List[bytes]:
    named = {
        0x22: b'\\"',
        0x5C: b"\\\\",
        0x0A: b"\\n",
        0x09: b"\\t",
        0x0D: b"\\r",
        0x08: b"\\b",
        0x0C: b"\\f",
    }
    table: List[bytes] = []
    for b in range(256):
        if b in named:
            table.append(named[b])
        elif b < 0x20 or b == 0x7F:
            table.append(b"\\u%04x" % b)
        else:
            table.append(bytes((b,)))
    return table


_ESCAPE_TABLE = _build_escape_table()


def escape_json_bytes(data: bytes) -> bytes:
    return b"".join(_ESCAPE_TABLE[b] for b in data)


class StringWriter:
    """
    Receiver for qualifying runs.

    Extractors call begin_run once a run reaches the minimum length, then
    write_char for every further unit, then end_run when the run closes.
    Calls are tagged with the encoding so runs of different encodings that
    overlap in the source stay separate.
    """

    def begin_run(self, encoding: Encoding, prefix: bytes, offset: int) -> None:
        raise NotImplementedError

    def write_char(self, encoding: Encoding, b: int) -> None:
        raise NotImplementedError

    def end_run(self, encoding: Encoding) -> None:
        raise NotImplementedError


class VectorWriter(StringWriter):
    """Collects results in memory, ordered by the moment each run qualified."""

    def __init__(self) -> None:
        self._slots: List[Optional[Tuple[Encoding, ExtractedString]]] = []
        self._open: Dict[Encoding, Tuple[int, int, List[str]]] = {}

    def begin_run(self, encoding: Encoding, prefix: bytes, offset: int) -> None:
        slot = len(self._slots)
        self._slots.append(None)
        self._open[encoding] = (slot, offset, [decode_units(prefix)])

    def write_char(self, encoding: Encoding, b: int) -> None:
        self._open[encoding][2].append(chr(b))

    def end_run(self, encoding: Encoding) -> None:
        slot, offset, parts = self._open.pop(encoding)
        text = "".join(parts)
        if text:
            self._slots[slot] = (encoding, ExtractedString(text, offset))

    def _take_closed(self) -> List[Tuple[Encoding, ExtractedString]]:
        closed = [s for s in self._slots if s is not None]
        self._slots = []
        self._open.clear()
        return closed

    def get_strings(self) -> List[ExtractedString]:
        return [s for _, s in self._take_closed()]

    def get_strings_by_encoding(self) -> Dict[Encoding, List[ExtractedString]]:
        out: Dict[Encoding, List[ExtractedString]] = {}
        for enc, s in self._take_closed():
            out.setdefault(enc, []).append(s)
        return out


@dataclass
class _PendingRun:
    encoding: Encoding
    offset: int
    buffer: bytearray = field(default_factory=bytearray)
    closed: bool = False


class JsonWriter(StringWriter):
    """
    Streams results as a JSON array of [text, offset] pairs.

    One run at a time is written straight to the stream. A run that qualifies
    while another is still streaming is held in memory until everything that
    qualified before it has been written, so the document order matches
    VectorWriter and memory stays bounded by the runs open at once.
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.is_first_element = True
        self.is_start_writing = False
        self._queue: Deque[_PendingRun] = deque()
        self._open: Dict[Encoding, _PendingRun] = {}

    def begin_run(self, encoding: Encoding, prefix: bytes, offset: int) -> None:
        run = _PendingRun(encoding=encoding, offset=offset)
        self._open[encoding] = run
        self._queue.append(run)
        if self._queue[0] is run:
            self._write_units(prefix)
        else:
            run.buffer.extend(prefix)

    def write_char(self, encoding: Encoding, b: int) -> None:
        run = self._open[encoding]
        if self._queue[0] is run:
            self._write_units(bytes((b,)))
        else:
            run.buffer.append(b)

    def end_run(self, encoding: Encoding) -> None:
        run = self._open.pop(encoding)
        run.closed = True
        if self._queue[0] is not run:
            return
        self._finish_element(run)
        self._queue.popleft()

        while self._queue:
            head = self._queue[0]
            self._write_units(bytes(head.buffer))
            head.buffer = bytearray()
            if not head.closed:
                break
            self._finish_element(head)
            self._queue.popleft()

    def finish(self) -> None:
        if self._open:
            names = ", ".join(str(e) for e in self._open)
            raise StringsError(f"Cannot finish JSON output with open runs: {names}")
        if self.is_first_element:
            self.stream.write(b"[")
            self.is_first_element = False
        self.stream.write(b"]")
        self.stream.flush()

    def _write_units(self, units: bytes) -> None:
        if not units:
            return
        if not self.is_start_writing:
            self.is_start_writing = True
            if self.is_first_element:
                self.stream.write(b'[["')
                self.is_first_element = False
            else:
                self.stream.write(b',["')
        self.stream.write(escape_json_bytes(units))

    def _finish_element(self, run: _PendingRun) -> None:
        if not self.is_start_writing:
            # nothing of this run was written, skip it like VectorWriter does
            return
        self.stream.write(b'",%d]' % run.offset)
        self.is_start_writing = False
