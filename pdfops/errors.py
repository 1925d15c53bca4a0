"""Exception hierarchy for PDF parsing, decoding and content handling."""

from __future__ import annotations


class PdfError(Exception):
    """Base class of every error raised by this package."""

    default_message = "PDF error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)

    def is_eof(self) -> bool:
        """Tell whether this error, or an error it was raised from, is an unexpected end of data."""
        cause = self.__cause__
        return isinstance(cause, PdfError) and cause.is_eof()


class UnexpectedEof(PdfError):
    """The data ended before a complete token or object was read."""

    default_message = "Unexpected end of file"

    def is_eof(self) -> bool:
        return True


class NoOpArg(PdfError):
    """An operator was given fewer operands than it needs."""

    default_message = "Not enough Operator arguments"


class ContentReadPastBoundary(PdfError):
    """A read went beyond the end of the available data."""

    default_message = "Parsing read past boundary of Contents."


class HexDecodeError(PdfError):
    """A pair of bytes in hex-encoded data is not a valid hex digit pair."""

    def __init__(self, pos: int, pair: bytes) -> None:
        self.pos = pos
        self.pair = bytes(pair)
        super().__init__(f"Hex decode error. Position {pos}, bytes {list(self.pair)}")


class Ascii85TailError(PdfError):
    """ASCII85 data holds an invalid group or lacks its '~>' terminator."""

    default_message = "Ascii85 tail error"


class IncorrectPredictorType(PdfError):
    """A PNG predictor row carries an unknown filter type byte."""

    def __init__(self, n: int) -> None:
        self.n = n
        super().__init__(f"Failed to convert '{n}' into PredictorType")


class MissingEntry(PdfError):
    """A required dictionary entry is absent."""

    def __init__(self, typ: str, field: str) -> None:
        self.typ = typ
        self.field = field
        super().__init__(f"Field /{field} is missing in dictionary for type {typ}.")


class InvalidError(PdfError):
    """A value is out of its permitted range."""

    default_message = "Invalid"