from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from binstrings.encodings import Encoding, parse_encodings
from binstrings.exceptions import StringsError
from binstrings.extract_strings import new_strings_extractor
from binstrings.sources import DEFAULT_BUFFER_SIZE, BytesSource, FileSource, StdinSource
from binstrings.writers import ExtractedString, JsonWriter, StringWriter, VectorWriter


DEFAULT_MIN_LENGTH = 3

EncodingArg = Union[str, Encoding]
ByteSource = Iterable[Tuple[int, int]]


def extract(
    source: ByteSource,
    writer: StringWriter,
    *,
    min_length: int = DEFAULT_MIN_LENGTH,
    encodings: Optional[Sequence[EncodingArg]] = None,
    wide_controls: bool = False,
) -> None:
    """
    Single forward pass over `source`, feeding every byte to one extractor
    per encoding. All extractors share `writer`.

    A SourceReadError raised by the source aborts the pass; whatever the
    writer already received stays there.
    """
    extractors = [
        new_strings_extractor(e, writer, min_length, wide_controls=wide_controls)
        for e in parse_encodings(encodings)
    ]

    for position, b in source:
        for ex in extractors:
            if ex.can_consume(b):
                ex.consume(position, b)
            else:
                ex.stop_consume()

    for ex in extractors:
        ex.stop_consume()


def _merge_encodings(
    encoding: Optional[EncodingArg],
    encodings: Optional[Sequence[EncodingArg]],
) -> List[EncodingArg]:
    merged: List[EncodingArg] = []
    if encoding is not None:
        merged.append(encoding)
    if encodings:
        merged.extend(encodings)
    return merged


def make_source(
    file_path: Optional[Union[str, Path]] = None,
    bytes: Optional[Union[bytes, bytearray, memoryview]] = None,
    *,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> ByteSource:
    if file_path is not None and bytes is not None:
        raise StringsError("You can't specify file_path and bytes")
    if bytes is not None:
        return BytesSource(bytes)
    if file_path is None:
        raise StringsError("You must specify file_path or bytes")
    if str(file_path) == "-":
        return StdinSource(buffer_size=buffer_size)
    return FileSource(file_path, buffer_size=buffer_size)


def _collect(
    file_path,
    bytes,
    min_length: int,
    encoding: Optional[EncodingArg],
    encodings: Optional[Sequence[EncodingArg]],
    buffer_size: int,
    wide_controls: bool,
) -> VectorWriter:
    source = make_source(file_path, bytes, buffer_size=buffer_size)
    writer = VectorWriter()
    extract(
        source,
        writer,
        min_length=min_length,
        encodings=_merge_encodings(encoding, encodings),
        wide_controls=wide_controls,
    )
    return writer


def strings(
    file_path: Optional[Union[str, Path]] = None,
    bytes: Optional[Union[bytes, bytearray, memoryview]] = None,
    *,
    min_length: int = DEFAULT_MIN_LENGTH,
    encoding: Optional[EncodingArg] = None,
    encodings: Optional[Sequence[EncodingArg]] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    wide_controls: bool = False,
) -> List[ExtractedString]:
    """
    Extract strings from a file (``file_path``, ``"-"`` for stdin) or from
    ``bytes``. Returns ``(text, offset)`` pairs in the order each run reached
    ``min_length``; with several encodings their results are interleaved.

    Raises EncodingNotFoundError for unknown encoding names and
    SourceReadError if the input cannot be read.
    """
    writer = _collect(file_path, bytes, min_length, encoding, encodings, buffer_size, wide_controls)
    return writer.get_strings()


def strings_by_encoding(
    file_path: Optional[Union[str, Path]] = None,
    bytes: Optional[Union[bytes, bytearray, memoryview]] = None,
    *,
    min_length: int = DEFAULT_MIN_LENGTH,
    encoding: Optional[EncodingArg] = None,
    encodings: Optional[Sequence[EncodingArg]] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    wide_controls: bool = False,
) -> Dict[Encoding, List[ExtractedString]]:
    """Like strings(), but one independent result list per encoding."""
    writer = _collect(file_path, bytes, min_length, encoding, encodings, buffer_size, wide_controls)
    return writer.get_strings_by_encoding()


def dump_strings(
    output: Union[str, Path],
    file_path: Optional[Union[str, Path]] = None,
    bytes: Optional[Union[bytes, bytearray, memoryview]] = None,
    *,
    min_length: int = DEFAULT_MIN_LENGTH,
    encoding: Optional[EncodingArg] = None,
    encodings: Optional[Sequence[EncodingArg]] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    wide_controls: bool = False,
) -> None:
    """Stream the extracted strings into `output` as a JSON array of [text, offset]."""
    source = make_source(file_path, bytes, buffer_size=buffer_size)
    # resolve names and open the input before the output file is created
    active = parse_encodings(_merge_encodings(encoding, encodings))
    it = iter(source)

    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("wb") as f:
        writer = JsonWriter(f)
        extract(
            it,
            writer,
            min_length=min_length,
            encodings=active,
            wide_controls=wide_controls,
        )
        writer.finish()
