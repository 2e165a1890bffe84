"""Exceptions raised by binstrings."""


class StringsError(Exception):
    """Base exception for string extraction."""

    pass


class EncodingNotFoundError(StringsError):
    """Raised when an encoding name is not supported."""

    def __init__(self, encoding: str):
        self.encoding = encoding
        super().__init__(f"Encoding not found: {encoding!r}")


class SourceReadError(StringsError):
    """Raised when the underlying byte source cannot be read."""

    pass
