"""Byte-level access to the raw data of a PDF file."""

from __future__ import annotations

from .errors import ContentReadPastBoundary, PdfError, UnexpectedEof

MAX_ID = 1_000_000

_HEADER = b"%PDF-"
_HEADER_WINDOW = 1024
_WHITESPACE = b"\x00\t\n\x0c\r "
_DELIMITERS = b"()<>[]{}/%"


def to_range(start: int | None, end: int | None, length: int) -> tuple[int, int]:
    """Resolve optional bounds against a container of ``length`` bytes.

    Returns the half-open ``(start, end)`` pair, or raises
    ContentReadPastBoundary when the bounds do not fit.
    """
    lo = 0 if start is None else start
    hi = length if end is None else end
    if lo < 0 or hi < 0 or lo > hi or hi > length:
        raise ContentReadPastBoundary()
    return lo, hi


class Backend:
    """Read-only view over the bytes of a PDF file."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self.data = bytes(data)

    def __len__(self) -> int:
        return len(self.data)

    def __bool__(self) -> bool:
        return bool(self.data)

    def read(self, start: int | None = None, end: int | None = None) -> bytes:
        """Return the bytes between ``start`` and ``end``; either may be None."""
        lo, hi = to_range(start, end, len(self.data))
        return self.data[lo:hi]

    def locate_start_offset(self) -> int:
        """Return the offset of the ``%PDF-`` header within the first kilobyte."""
        window = self.read(None, min(_HEADER_WINDOW, len(self.data)))
        pos = window.find(_HEADER)
        if pos < 0:
            raise PdfError("file header is missing")
        return pos

    def locate_xref_offset(self) -> int:
        """Return the value that follows the last ``startxref`` keyword."""
        data = self.data
        keyword = b"startxref"
        found = data.rfind(keyword)
        if found < 0:
            raise PdfError("'startxref' not found.")
        pos = found + len(keyword)
        while pos < len(data) and data[pos] in _WHITESPACE:
            pos += 1
        if pos >= len(data):
            raise UnexpectedEof()
        end = pos
        if data[end] in _DELIMITERS:
            end += 1
        else:
            while end < len(data) and data[end] not in _WHITESPACE and data[end] not in _DELIMITERS:
                end += 1
        token = data[pos:end]
        if not token.isdigit():
            raise PdfError(f"Error parsing from string: invalid digit in {token!r}")
        return int(token)