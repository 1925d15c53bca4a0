import pytest
from hypothesis import given, strategies as st

from pdfops.backend import Backend, to_range
from pdfops.errors import ContentReadPastBoundary, PdfError, UnexpectedEof


def test_to_range_full_and_partial():
    assert to_range(None, None, 10) == (0, 10)
    assert to_range(3, None, 10) == (3, 10)
    assert to_range(None, 4, 10) == (0, 4)
    assert to_range(2, 5, 10) == (2, 5)


@pytest.mark.parametrize("start,end", [(11, None), (None, 11), (5, 4), (2, 11)])
def test_to_range_rejects_out_of_bounds(start, end):
    with pytest.raises(ContentReadPastBoundary):
        to_range(start, end, 10)


@given(st.binary(max_size=64), st.data())
def test_read_matches_slicing(data, draw):
    backend = Backend(data)
    start = draw.draw(st.integers(0, len(data)))
    end = draw.draw(st.integers(start, len(data)))
    assert backend.read(start, end) == data[start:end]
    assert backend.read() == data
    assert len(backend) == len(data)


def test_read_past_end_raises():
    with pytest.raises(ContentReadPastBoundary):
        Backend(b"abc").read(0, 4)


def test_empty_backend_is_falsy():
    assert not Backend(b"")
    assert Backend(b"a")


def test_locate_start_offset_with_prefix():
    prefix = b"garbage\n"
    backend = Backend(prefix + b"%PDF-1.7\n")
    assert backend.locate_start_offset() == len(prefix)


def test_locate_start_offset_missing():
    with pytest.raises(PdfError, match="file header is missing"):
        Backend(b"not a pdf").locate_start_offset()


def test_locate_start_offset_beyond_first_kilobyte():
    with pytest.raises(PdfError):
        Backend(b" " * 1100 + b"%PDF-1.4").locate_start_offset()


def test_locate_xref_offset():
    data = b"%PDF-1.4\n...\nstartxref\n1234\n%%EOF"
    assert Backend(data).locate_xref_offset() == 1234


def test_locate_xref_offset_uses_last_occurrence():
    data = b"%PDF-1.4\nstartxref\n5\n%%EOF\nstartxref\n99\n%%EOF\n"
    assert Backend(data).locate_xref_offset() == 99


def test_locate_xref_offset_missing_keyword():
    with pytest.raises(PdfError, match="startxref"):
        Backend(b"%PDF-1.4\n%%EOF").locate_xref_offset()


def test_locate_xref_offset_not_a_number():
    with pytest.raises(PdfError):
        Backend(b"%PDF-1.4\nstartxref\nabc\n%%EOF").locate_xref_offset()


def test_locate_xref_offset_truncated():
    with pytest.raises(UnexpectedEof):
        Backend(b"%PDF-1.4\nstartxref\n  ").locate_xref_offset()