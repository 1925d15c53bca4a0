import pytest

from pdfops.errors import (
    Ascii85TailError,
    ContentReadPastBoundary,
    HexDecodeError,
    IncorrectPredictorType,
    InvalidError,
    MissingEntry,
    NoOpArg,
    PdfError,
    UnexpectedEof,
)


def test_eof_is_eof():
    assert UnexpectedEof().is_eof() is True


@pytest.mark.parametrize(
    "err",
    [NoOpArg(), ContentReadPastBoundary(), Ascii85TailError(), InvalidError(), PdfError("x")],
)
def test_other_errors_are_not_eof(err):
    assert err.is_eof() is False


def _wrapped(inner):
    try:
        try:
            raise inner
        except PdfError as caught:
            raise PdfError("wrapped") from caught
    except PdfError as outer:
        return outer


def test_is_eof_follows_cause_chain():
    err = _wrapped(UnexpectedEof())
    assert str(err) == "wrapped"
    assert err.is_eof() is True


def test_is_eof_not_through_non_eof_cause():
    err = _wrapped(NoOpArg())
    assert str(err) == "wrapped"
    assert err.is_eof() is False


def test_default_messages():
    assert str(UnexpectedEof()) == "Unexpected end of file"
    assert str(NoOpArg()) == "Not enough Operator arguments"
    assert str(Ascii85TailError()) == "Ascii85 tail error"


def test_hex_decode_error_fields():
    err = HexDecodeError(4, b"zz")
    assert err.pos == 4
    assert err.pair == b"zz"
    assert str(err) == f"Hex decode error. Position 4, bytes {list(b'zz')}"


def test_predictor_and_missing_entry_messages():
    assert str(IncorrectPredictorType(7)) == "Failed to convert '7' into PredictorType"
    err = MissingEntry("XRefTable", "Size")
    assert err.field == "Size"
    assert str(err) == "Field /Size is missing in dictionary for type XRefTable."


def test_missing_entry_caught_as_pdf_error_keeps_fields():
    caught = _wrapped(MissingEntry("Trailer", "ID")).__cause__
    assert caught.field == "ID"
    assert str(caught) == "Field /ID is missing in dictionary for type Trailer."
    assert caught.is_eof() is False


def test_eof_caught_as_pdf_error_keeps_message():
    caught = _wrapped(UnexpectedEof()).__cause__
    assert str(caught) == "Unexpected end of file"
    assert caught.is_eof() is True