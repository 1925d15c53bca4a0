import math
import struct

import pytest
from hypothesis import given, strategies as st

from pdfops.ops import (
    Close,
    Cmyk,
    Dash,
    Fill,
    FillAndStroke,
    Gray,
    InlineImage,
    InlineImageOp,
    LineCap,
    LineJoin,
    LineTo,
    Matrix,
    MoveTo,
    Name,
    Op,
    Point,
    Rect,
    RectOp,
    RenderingIntent,
    Rgb,
    TextDrawAdjusted,
    TextMode,
    TextSpacing,
    Winding,
    format_number,
    serialize_primitive,
)


def _f32(value):
    return struct.unpack("<f", struct.pack("<f", value))[0]


def test_format_integer_is_plain():
    assert format_number(42) == "42"
    assert format_number(-3) == "-3"


def test_format_integral_float_has_no_fraction():
    assert format_number(100.0) == "100"


def test_format_simple_fraction():
    assert format_number(0.1) == "0.1"


@given(st.floats(width=32, allow_nan=False, allow_infinity=False))
def test_format_round_trips_single_precision(value):
    text = format_number(value)
    assert "e" not in text.lower()
    assert _f32(float(text)) == value


def test_format_special_values():
    assert format_number(math.nan) == "NaN"
    assert format_number(math.inf) == "inf"


def test_format_rejects_bool():
    with pytest.raises(TypeError):
        format_number(True)


def test_point_str_lists_coordinates():
    assert [float(v) for v in str(Point(100.0, 200.0)).split()] == [100.0, 200.0]


def test_rect_str_lists_fields():
    rect = Rect(1.5, 2.0, 30.0, 40.25)
    assert [float(v) for v in str(rect).split()] == [1.5, 2.0, 30.0, 40.25]


def test_matrix_default_is_identity():
    assert Matrix() == Matrix(1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
    assert [float(v) for v in str(Matrix()).split()] == [1, 0, 0, 1, 0, 0]


def test_color_strings():
    assert [float(v) for v in str(Rgb(0.25, 0.5, 1.0)).split()] == [0.25, 0.5, 1.0]
    assert len(str(Cmyk(0.0, 0.5, 0.5, 1.0)).split()) == 4
    assert float(str(Gray(0.75))) == 0.75


def test_enum_values_fixed_by_format():
    assert LineCap.SQUARE == 2
    assert LineJoin.BEVEL == 2
    assert TextMode.STROKE_AND_CLIP == 5
    assert RenderingIntent("Perceptual") is RenderingIntent.PERCEPTUAL


def test_unknown_rendering_intent_raises():
    with pytest.raises(ValueError):
        RenderingIntent("Bogus")


def test_serialize_simple_primitives():
    assert serialize_primitive(None) == b"null"
    assert serialize_primitive(True) == b"true"
    assert serialize_primitive(False) == b"false"
    assert serialize_primitive(7) == b"7"


def test_serialize_name():
    assert serialize_primitive(Name("Foo")) == b"/Foo"
    escaped = serialize_primitive(Name("A B"))
    assert escaped.startswith(b"/A")
    assert b" " not in escaped
    assert b"#20" in escaped


def test_serialize_literal_string_escapes_parentheses():
    assert serialize_primitive(b"a(b)") == b"(a\\(b\\))"


def test_serialize_binary_string_as_hex():
    data = bytes([0, 1, 254, 255])
    out = serialize_primitive(data)
    assert out.startswith(b"<") and out.endswith(b">")
    assert bytes.fromhex(out[1:-1].decode("ascii")) == data


def test_serialize_array_keeps_order():
    out = serialize_primitive([1, Name("X"), b"t"])
    assert out.startswith(b"[") and out.endswith(b"]")
    inner = out[1:-1].split(b" ")
    assert inner == [serialize_primitive(1), serialize_primitive(Name("X")), serialize_primitive(b"t")]


def test_serialize_dictionary():
    out = serialize_primitive({"MCID": 3})
    assert out.startswith(b"<<") and out.endswith(b">>")
    assert b"/MCID 3" in out


def test_serialize_rejects_unknown_types():
    with pytest.raises(TypeError):
        serialize_primitive(object())


def test_ops_compare_by_value():
    assert MoveTo(Point(1.0, 2.0)) == MoveTo(Point(1.0, 2.0))
    assert MoveTo(Point(1.0, 2.0)) != LineTo(Point(1.0, 2.0))
    assert Close() == Close()
    assert Fill(Winding.EVEN_ODD) != Fill(Winding.NON_ZERO)
    assert isinstance(FillAndStroke(Winding.NON_ZERO), Op)


def test_op_fields_are_kept():
    dash = Dash([3.0, 2.0], 1.0)
    assert list(dash.pattern) == [3.0, 2.0]
    assert dash.phase == 1.0
    assert RectOp(Rect(0, 0, 5, 6)).rect.height == 6


def test_text_draw_adjusted_items():
    op = TextDrawAdjusted([b"Hi", TextSpacing(-250.0), b"there"])
    assert op.array[0] == b"Hi"
    assert float(str(op.array[1])) == -250.0


def test_inline_image_defaults():
    image = InlineImage(width=8, height=2, data=b"\x00\xff")
    op = InlineImageOp(image)
    assert op.image.filters == []
    assert op.image.image_mask is False
    assert op.image.width * op.image.height == 16


def test_name_is_a_string():
    name = Name("Im1")
    assert name == "Im1"
    assert "Im1" in repr(name)