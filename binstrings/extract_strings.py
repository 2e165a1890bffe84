from __future__ import annotations

from typing import FrozenSet, Optional, Tuple

from binstrings.encodings import Encoding
from binstrings.writers import StringWriter


NARROW_CONTROLS: FrozenSet[int] = frozenset({0x09, 0x0A, 0x0D})
WIDE_CONTROLS: FrozenSet[int] = frozenset({0x09, 0x0A, 0x0B, 0x0C, 0x0D})


def is_printable(b: int, controls: FrozenSet[int] = NARROW_CONTROLS) -> bool:
    return 0x20 <= b <= 0x7E or b in controls


class StringsExtractor:
    """
    Single-encoding run detector fed one byte at a time.

    Units are kept in a local prefix until the run reaches min_len; at that
    point the prefix is handed to the writer and every further unit streams
    straight through. Runs that close below min_len never reach the writer.
    """

    encoding: Encoding

    def __init__(self, writer: StringWriter, min_len: int, *, wide_controls: bool = False):
        if min_len < 1:
            raise ValueError(f"min_len must be positive, got {min_len}")
        self.writer = writer
        self.min_len = min_len
        self.controls = WIDE_CONTROLS if wide_controls else NARROW_CONTROLS
        self.prefix = bytearray()
        self.offset: Optional[int] = None
        self.is_streaming = False

    def can_consume(self, b: int) -> bool:
        raise NotImplementedError

    def consume(self, position: int, b: int) -> None:
        raise NotImplementedError

    def _push_unit(self, position: int, b: int) -> None:
        if self.is_streaming:
            self.writer.write_char(self.encoding, b)
            return

        if not self.prefix and self.offset is None:
            self.offset = position
        self.prefix.append(b)

        if len(self.prefix) == self.min_len:
            self.is_streaming = True
            prefix = bytes(self.prefix)
            self.prefix.clear()
            self.writer.begin_run(self.encoding, prefix, self.offset)

    def stop_consume(self) -> None:
        if self.is_streaming:
            self.writer.end_run(self.encoding)
        self.is_streaming = False
        self.prefix.clear()
        self.offset = None


class AsciiExtractor(StringsExtractor):
    encoding = Encoding.ASCII

    def can_consume(self, b: int) -> bool:
        return is_printable(b, self.controls)

    def consume(self, position: int, b: int) -> None:
        self._push_unit(position, b)


class Utf16Extractor(StringsExtractor):
    """
    Two bytes per unit: a printable byte paired with 0x00, the null first for
    big endian and second for little endian. Nulls only anchor the offset;
    length is counted in printable bytes. A unit is only committed once both
    of its bytes have been seen, so an unpaired trailing byte is never part
    of a run.
    """

    def __init__(
        self,
        writer: StringWriter,
        min_len: int,
        *,
        big_endian: bool,
        wide_controls: bool = False,
    ):
        super().__init__(writer, min_len, wide_controls=wide_controls)
        self.big_endian = big_endian
        self.encoding = Encoding.UTF16BE if big_endian else Encoding.UTF16LE
        self.is_last_byte_null: Optional[bool] = None
        # little endian: printable byte still waiting for its null
        self.pending: Optional[Tuple[int, int]] = None

    def can_consume(self, b: int) -> bool:
        is_null = b == 0
        if self.is_last_byte_null is None:
            if self.big_endian:
                return is_null
            return is_printable(b, self.controls)
        if self.is_last_byte_null:
            return is_printable(b, self.controls)
        return is_null

    def consume(self, position: int, b: int) -> None:
        is_null = b == 0
        self.is_last_byte_null = is_null
        if self.big_endian:
            if is_null:
                if not self.prefix and self.offset is None:
                    self.offset = position
                return
            self._push_unit(position, b)
            return

        if is_null:
            if self.pending is not None:
                self._push_unit(*self.pending)
                self.pending = None
            return
        self.pending = (position, b)

    def stop_consume(self) -> None:
        super().stop_consume()
        self.is_last_byte_null = None
        self.pending = None


def new_strings_extractor(
    encoding: Encoding,
    writer: StringWriter,
    min_len: int,
    *,
    wide_controls: bool = False,
) -> StringsExtractor:
    if encoding is Encoding.ASCII:
        return AsciiExtractor(writer, min_len, wide_controls=wide_controls)
    if encoding is Encoding.UTF16LE:
        return Utf16Extractor(writer, min_len, big_endian=False, wide_controls=wide_controls)
    if encoding is Encoding.UTF16BE:
        return Utf16Extractor(writer, min_len, big_endian=True, wide_controls=wide_controls)
    raise ValueError(f"Unsupported encoding: {encoding!r}")
