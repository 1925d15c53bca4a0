import pytest
from hypothesis import given, strategies as st

from pdfops.content import Content, parse_inline_image, parse_ops
from pdfops.enc import FilterKind
from pdfops.errors import MissingEntry, NoOpArg, PdfError
from pdfops.ops import (
    BeginMarkedContent,
    BeginText,
    CharSpacing,
    Close,
    CurveTo,
    Dash,
    EndMarkedContent,
    EndText,
    FillColor,
    Gray,
    InlineImageOp,
    Leading,
    LineTo,
    Matrix,
    MoveTextPosition,
    MoveTo,
    Name,
    Point,
    RenderingIntent,
    RenderingIntentOp,
    Restore,
    Rgb,
    Save,
    Stroke,
    StrokeColor,
    TextDraw,
    TextDrawAdjusted,
    TextFont,
    TextNewline,
    TextSpacing,
    Transform,
    WordSpacing,
)

INLINE_IMAGE = rb"""
/W 768
/H 150
/BPC 1
/IM true
/F [/A85 /Fl]
ID
Gb"0F_%"1&#XD6"#B1qiGGG^V6GZ#ZkijB5'RjB4S^5I61&$Ni:Xh=4S_9KYN;c9MUZPn/h,c]oCLUmg*Fo?0Hs0nQHp41KkO\Ls5+g0aoD*btT?l]lq0YAucfaoqHp4
1KkO\Ls5+g0aoD*btT?l^#mD&ORf[0~>
EI
"""


def test_inline_image_from_source_case():
    image, end = parse_inline_image(INLINE_IMAGE, 0)
    assert image.width == 768
    assert image.height == 150
    assert image.bits_per_component == 1
    assert image.image_mask is True
    assert [f.kind for f in image.filters] == [FilterKind.ASCII_85, FilterKind.FLATE]
    assert image.data.startswith(b'Gb"0F_')
    assert image.data.endswith(b"~>")
    assert INLINE_IMAGE[end:] == b"\n"


def test_inline_image_end_position():
    data = b"/W 1 /H 1 ID x\nEI rest"
    image, end = parse_inline_image(data, 0)
    assert image.data == b"x"
    assert data[end:] == b" rest"


def test_inline_image_missing_width():
    with pytest.raises(MissingEntry):
        parse_inline_image(b"/H 1 ID x\nEI", 0)


def test_inline_image_missing_end():
    with pytest.raises(PdfError):
        parse_inline_image(b"/W 1 /H 1 ID abc", 0)


def test_inline_image_unknown_filter():
    with pytest.raises(PdfError):
        parse_inline_image(b"/W 1 /H 1 /F /Bogus ID x\nEI", 0)


def test_inline_image_in_stream():
    ops = parse_ops(b"q BI /W 2 /H 1 /BPC 8 /CS /G ID \x01\x02\nEI Q")
    assert isinstance(ops[1], InlineImageOp)
    assert [type(op) for op in ops] == [Save, InlineImageOp, Restore]
    image = ops[1].image
    assert image.data == b"\x01\x02"
    assert image.color_space == Name("DeviceGray")


def test_from_ops_serializes_path():
    ops = [
        MoveTo(Point(100.0, 100.0)),
        LineTo(Point(100.0, 200.0)),
        LineTo(Point(200.0, 100.0)),
        LineTo(Point(200.0, 200.0)),
        Close(),
        Stroke(),
    ]
    content = Content.from_ops(ops)
    assert content.parts == [b"100 100 m\n100 200 l\n200 100 l\n200 200 l\ns\n"]
    assert content.operations() == ops


def test_operations_joins_parts():
    assert Content([b"q\n", b"Q\n"]).operations() == [Save(), Restore()]


def test_transform_and_state():
    assert parse_ops(b"q 1 0 0 1 10 20 cm Q") == [
        Save(),
        Transform(Matrix(1, 0, 0, 1, 10, 20)),
        Restore(),
    ]


def test_colors():
    assert parse_ops(b"0.5 g 1 0 0 RG") == [
        FillColor(Gray(0.5)),
        StrokeColor(Rgb(1.0, 0.0, 0.0)),
    ]


def test_text_ops():
    ops = parse_ops(b"BT /F1 12 Tf (Hello) Tj [(A) -120 (B)] TJ ET")
    assert ops == [
        BeginText(),
        TextFont(Name("F1"), 12.0),
        TextDraw(b"Hello"),
        TextDrawAdjusted([b"A", TextSpacing(-120.0), b"B"]),
        EndText(),
    ]


def test_td_sets_leading():
    assert parse_ops(b"10 20 TD") == [Leading(-20.0), MoveTextPosition(Point(10, 20))]


def test_quote_operators():
    assert parse_ops(b"(x) '") == [TextNewline(), TextDraw(b"x")]
    assert parse_ops(b'1 2 (y) "') == [
        WordSpacing(1.0),
        CharSpacing(2.0),
        TextNewline(),
        TextDraw(b"y"),
    ]


def test_curve_shorthands_use_last_point():
    ops = parse_ops(b"5 6 m 1 2 3 4 v 7 8 9 10 y")
    assert ops[1] == CurveTo(Point(5, 6), Point(1, 2), Point(3, 4))
    assert ops[2] == CurveTo(Point(7, 8), Point(9, 10), Point(9, 10))


def test_dash():
    assert parse_ops(b"[3 2] 0 d") == [Dash([3.0, 2.0], 0.0)]


def test_rendering_intent():
    assert parse_ops(b"/Perceptual ri") == [RenderingIntentOp(RenderingIntent.PERCEPTUAL)]
    with pytest.raises(PdfError):
        parse_ops(b"/Bogus ri")


def test_marked_content():
    assert parse_ops(b"/OC /MC0 BDC EMC") == [
        BeginMarkedContent(Name("OC"), Name("MC0")),
        EndMarkedContent(),
    ]
    ops = parse_ops(b"/Span <</MCID 3>> BDC")
    assert ops == [BeginMarkedContent(Name("Span"), {"MCID": 3})]


def test_strings_hex_and_escapes():
    assert parse_ops(b"<48656C6C6F> Tj") == [TextDraw(b"Hello")]
    assert parse_ops(rb"(a\(b\)c\101) Tj") == [TextDraw(b"a(b)cA")]


def test_comments_are_skipped():
    assert parse_ops(b"q % a comment\nQ") == [Save(), Restore()]


def test_invalid_operator():
    with pytest.raises(PdfError, match="invalid operator"):
        parse_ops(b"1 foo")


def test_compatibility_section_ignores_unknown():
    assert parse_ops(b"q BX foo EX Q") == [Save(), Restore()]


def test_missing_operand():
    with pytest.raises(NoOpArg):
        parse_ops(b"1 m")


def test_invalid_line_join_and_render_mode():
    with pytest.raises(PdfError, match="line join"):
        parse_ops(b"3 j")
    with pytest.raises(PdfError, match="text render mode"):
        parse_ops(b"7 Tr")


def test_allow_invalid_ops_skips_errors():
    assert parse_ops(b"q 3 j Q", allow_invalid_ops=True) == [Save(), Restore()]


def test_shading_operator_produces_nothing():
    assert parse_ops(b"/Sh1 sh q") == [Save()]


def test_unterminated_data_stops_parsing():
    assert parse_ops(b"q (abc") == [Save()]
    assert parse_ops(b"1 2") == []


@given(st.lists(st.tuples(st.integers(-1000, 1000), st.integers(-1000, 1000)), min_size=1, max_size=10))
def test_path_round_trip(points):
    first, *rest = points
    ops = [MoveTo(Point(float(first[0]), float(first[1])))]
    ops += [LineTo(Point(float(x), float(y))) for x, y in rest]
    assert Content.from_ops(ops).operations() == ops