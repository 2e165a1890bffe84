from __future__ import annotations

import random
import re
from pathlib import Path

import pytest

from binstrings.encodings import Encoding
from binstrings.exceptions import EncodingNotFoundError, SourceReadError, StringsError
from binstrings.sources import BytesSource
from binstrings.strings import extract, strings, strings_by_encoding
from binstrings.writers import ExtractedString, VectorWriter


def test_bytes():
    assert strings(bytes=bytes([116, 101, 115, 116, 0, 0])) == [("test", 0)]
    assert strings(bytes=b"test\x00") == [("test", 0)]


def test_bytes_with_offset():
    assert strings(bytes=bytes([0, 116, 101, 115, 116])) == [("test", 1)]


def test_bytes_multiple():
    assert strings(bytes=b"\x00test\x00test") == [("test", 1), ("test", 6)]


def test_min_length():
    data = bytes([116, 101, 115, 116, 0, 0, 116, 101, 115])
    assert strings(bytes=data, min_length=4) == [("test", 0)]
    assert strings(bytes=data, min_length=3) == [("test", 0), ("tes", 6)]


def test_results_are_named_pairs():
    (s,) = strings(bytes=b"\x00\x00hello")
    assert isinstance(s, ExtractedString)
    assert s.text == "hello"
    assert s.offset == 2


def test_utf16le():
    assert strings(bytes=b"t\x00e\x00s\x00t\x00\x00\x00", encoding="utf-16le") == [("test", 0)]


def test_utf16be():
    assert strings(bytes=b"\x00t\x00e\x00s\x00t\x00\x00", encoding=Encoding.UTF16BE) == [("test", 0)]


def test_multiple_encodings():
    data = b"ascii\x01t\x00e\x00s\x00t\x00\x00\x00"
    extracted = strings(bytes=data, encodings=["ascii", "utf-16le"])
    assert extracted == [("ascii", 0), ("test", 6)]

    by_enc = strings_by_encoding(bytes=data, encodings=["ascii", "utf-16le"])
    assert by_enc == {
        Encoding.ASCII: [("ascii", 0)],
        Encoding.UTF16LE: [("test", 6)],
    }


def test_overlapping_runs_keep_their_own_text():
    data = b"\x00a\x00b\x00c\x00d\x00"
    by_enc = strings_by_encoding(bytes=data, min_length=2, encodings=["utf-16le", "utf-16be"])
    assert by_enc[Encoding.UTF16BE] == [("abcd", 0)]
    assert by_enc[Encoding.UTF16LE] == [("abcd", 1)]

    # ordered by the moment each run qualified
    assert strings(bytes=data, min_length=2, encodings=["utf-16le", "utf-16be"]) == [
        ("abcd", 0),
        ("abcd", 1),
    ]


def test_encoding_and_encodings_are_merged():
    data = b"ascii\x01t\x00e\x00s\x00t\x00\x00\x00"
    extracted = strings(bytes=data, encoding="ascii", encodings=["utf-16le", "ascii"])
    assert extracted == [("ascii", 0), ("test", 6)]


def test_empty_input():
    assert strings(bytes=b"") == []
    assert strings_by_encoding(bytes=b"") == {}


def test_unknown_encoding():
    with pytest.raises(EncodingNotFoundError):
        strings(bytes=b"test", encoding="ebcdic")


def test_file_and_bytes_are_exclusive(tmp_path: Path):
    p = tmp_path / "x.bin"
    p.write_bytes(b"test")
    with pytest.raises(StringsError):
        strings(file_path=p, bytes=b"test")
    with pytest.raises(StringsError):
        strings()


def test_file(tmp_path: Path):
    p = tmp_path / "x.bin"
    p.write_bytes(b"test\x00")
    assert strings(file_path=p) == [("test", 0)]
    assert strings(file_path=str(p)) == [("test", 0)]


def test_file_small_buffer_matches_bytes(tmp_path: Path):
    data = b"\x00\x01hello world\x00\xffw\x00i\x00d\x00e\x00\x00more text here\x00"
    p = tmp_path / "x.bin"
    p.write_bytes(data)
    encs = ["ascii", "utf-16le", "utf-16be"]
    for buffer_size in (1, 2, 3, 7, 1024):
        assert strings(file_path=p, encodings=encs, buffer_size=buffer_size) == strings(
            bytes=data, encodings=encs
        )


def test_missing_file_raises_source_error(tmp_path: Path):
    with pytest.raises(SourceReadError):
        strings(file_path=tmp_path / "nope.bin")


def test_source_failure_keeps_delivered_runs():
    def failing_source():
        for i, b in enumerate(b"first\x00second\x00"):
            yield i, b
        raise SourceReadError("disk gone")

    w = VectorWriter()
    with pytest.raises(SourceReadError):
        extract(failing_source(), w)
    assert w.get_strings() == [("first", 0), ("second", 6)]


def test_idempotent():
    data = bytes(random.Random(7).randrange(256) for _ in range(4096))
    encs = ["ascii", "utf-16le", "utf-16be"]
    assert strings(bytes=data, encodings=encs) == strings(bytes=data, encodings=encs)


@pytest.mark.parametrize("min_length", [1, 2, 3, 5])
def test_ascii_matches_maximal_runs(min_length: int):
    rng = random.Random(min_length)
    alphabet = [0, 1, 0x0B, 0x7F, 0xC3] + list(b"abcXYZ \t\n\r\"\\")
    data = bytes(rng.choice(alphabet) for _ in range(5000))

    pattern = re.compile(rb"[\x20-\x7e\t\n\r]{%d,}" % min_length)
    expected = [(m.group().decode("ascii"), m.start()) for m in pattern.finditer(data)]

    got = strings(bytes=data, min_length=min_length)
    assert got == expected
    assert all(len(s.text) >= min_length for s in got)


def test_wide_controls():
    data = b"ab\x0bcd\x0cef\x00"
    assert strings(bytes=data) == []
    assert strings(bytes=data, wide_controls=True) == [("ab\x0bcd\x0cef", 0)]


def test_extract_with_explicit_source():
    w = VectorWriter()
    extract(BytesSource(b"\x00\x00abc\x00de"), w, min_length=2)
    assert w.get_strings() == [("abc", 2), ("de", 6)]
    # results are handed out once
    assert w.get_strings() == []


FIXTURES = Path(__file__).parent / "fixtures"


def test_mixed_fixture_all_encodings():
    p = FIXTURES / "mixed.bin"
    encs = ["ascii", "utf-16le", "utf-16be"]
    assert strings(file_path=p, encodings=encs) == [
        ("hello fixture", 2),
        ("wide", 17),
        ("ide", 18),
        ("big", 28),
        (" tail text\n", 35),
    ]
    assert strings_by_encoding(file_path=p, encodings=encs, buffer_size=4) == {
        Encoding.ASCII: [("hello fixture", 2), (" tail text\n", 35)],
        Encoding.UTF16LE: [("wide", 17), ("big", 28)],
        Encoding.UTF16BE: [("ide", 18)],
    }


def _utf16_units_reference(data: bytes, min_length: int, big_endian: bool):
    # Collects whole (null, printable) units and filters short runs afterwards.
    # A byte that breaks the alternation closes the run and is dropped.
    out = []
    units = []
    half = None
    expect = None

    def close():
        if len(units) >= min_length:
            out.append(("".join(chr(c) for _, c in units), units[0][0]))
        units.clear()

    for i, b in enumerate(data):
        is_null = b == 0
        printable = 0x20 <= b <= 0x7E or b in (0x09, 0x0A, 0x0D)
        if expect is None:
            ok = is_null if big_endian else printable
        elif expect == "printable":
            ok = printable
        else:
            ok = is_null
        if not ok:
            close()
            expect = None
            half = None
            continue

        expect = "printable" if is_null else "null"
        if big_endian:
            if is_null:
                half = i
            else:
                units.append((half, b))
        else:
            if is_null:
                units.append(half)
                half = None
            else:
                half = (i, b)
    close()
    return out


@pytest.mark.parametrize("big_endian", [False, True])
@pytest.mark.parametrize("min_length", [1, 2, 3, 5])
def test_utf16_matches_unit_reference(big_endian: bool, min_length: int):
    rng = random.Random(min_length * 10 + big_endian)
    alphabet = [0, 0, 0, 0, 1, 0x0B, 0x7F, 0xC3] + list(b"abXY \t\n\"")
    data = bytes(rng.choice(alphabet) for _ in range(6000))
    encoding = "utf-16be" if big_endian else "utf-16le"

    expected = _utf16_units_reference(data, min_length, big_endian)
    got = strings(bytes=data, min_length=min_length, encoding=encoding)
    assert got == expected
    assert all(len(s.text) >= min_length for s in got)


def test_rejected_byte_does_not_start_next_run():
    # the second null at position 3 breaks "\0a" and is itself dropped, so the
    # following units only start at the null at position 5
    data = b"\x00a\x00\x00b\x00c\x00d"
    assert strings(bytes=data, encoding="utf-16be") == []
    assert strings(bytes=data, encoding="utf-16be", min_length=2) == [("cd", 5)]
