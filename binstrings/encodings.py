from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Union

from binstrings.exceptions import EncodingNotFoundError


class Encoding(str, Enum):
    ASCII = "ascii"
    UTF16LE = "utf-16le"
    UTF16BE = "utf-16be"

    def __str__(self) -> str:
        return self.name


DEFAULT_ENCODINGS: List[Encoding] = [Encoding.ASCII]

_ALIASES = {
    "ascii": Encoding.ASCII,
    # utf-8 text is only scanned for its single byte subset
    "utf8": Encoding.ASCII,
    "utf-8": Encoding.ASCII,
    "utf-16le": Encoding.UTF16LE,
    "utf16le": Encoding.UTF16LE,
    "utf-16be": Encoding.UTF16BE,
    "utf16be": Encoding.UTF16BE,
}


def parse_encoding(name: Union[str, Encoding]) -> Encoding:
    if isinstance(name, Encoding):
        return name
    key = name.strip().lower()
    try:
        return _ALIASES[key]
    except KeyError:
        raise EncodingNotFoundError(key) from None


def parse_encodings(names: Optional[Iterable[Union[str, Encoding]]]) -> List[Encoding]:
    out: List[Encoding] = []
    for n in names or []:
        e = parse_encoding(n)
        if e not in out:
            out.append(e)
    return out or list(DEFAULT_ENCODINGS)
