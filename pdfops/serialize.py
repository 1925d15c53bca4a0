"""Writing graphics operators back out as content stream bytes."""

from __future__ import annotations

from collections import deque
from itertools import islice
from typing import Deque, Iterable, Optional

from .errors import PdfError
from .ops import (
    BeginMarkedContent,
    BeginText,
    CharSpacing,
    Clip,
    Close,
    Cmyk,
    CurveTo,
    Dash,
    EndMarkedContent,
    EndPath,
    EndText,
    Fill,
    FillAndStroke,
    FillColor,
    FillColorSpace,
    Flatness,
    GraphicsState,
    Gray,
    InlineImageOp,
    Leading,
    LineCapOp,
    LineJoinOp,
    LineTo,
    LineWidth,
    MarkedContentPoint,
    MiterLimit,
    MoveTextPosition,
    MoveTo,
    Name,
    Op,
    OtherColor,
    Point,
    RectOp,
    RenderingIntentOp,
    Restore,
    Rgb,
    Save,
    SetTextMatrix,
    Shade,
    StrokeColor,
    StrokeColorSpace,
    Stroke,
    TextDraw,
    TextDrawAdjusted,
    TextFont,
    TextNewline,
    TextRenderMode,
    TextRise,
    TextScaling,
    TextSpacing,
    Transform,
    Winding,
    WordSpacing,
    XObject,
    format_number,
    serialize_primitive,
)


def _name(value: str) -> bytes:
    return serialize_primitive(Name(value))


def _line(*parts) -> bytes:
    encoded = (p if isinstance(p, bytes) else str(p).encode("ascii") for p in parts)
    return b" ".join(encoded) + b"\n"


def _num(value: float) -> str:
    return format_number(value)


def _color(color, gray: str, rgb: str, cmyk: str, other: str) -> bytes:
    match color:
        case Gray(value):
            return _line(_num(value), gray)
        case Rgb() | Cmyk():
            return _line(str(color), rgb if isinstance(color, Rgb) else cmyk)
        case OtherColor(args):
            operands = b"".join(serialize_primitive(arg) + b" " for arg in args)
            return operands + other.encode("ascii") + b"\n"
    raise TypeError(f"cannot serialize colour {color!r}")


def _text_item(item) -> bytes:
    if isinstance(item, TextSpacing):
        return str(item).encode("ascii")
    if isinstance(item, (bytes, bytearray, memoryview)):
        return serialize_primitive(bytes(item))
    raise TypeError(f"invalid item in TJ array: {item!r}")


def _peek(pending: Deque[Op]) -> Optional[Op]:
    return pending[0] if pending else None


def serialize_ops(ops: Iterable[Op]) -> bytes:
    """Write a sequence of operators as content stream bytes.

    Adjacent operators that have a combined short form (``s``, ``b``,
    ``TD``, ``'``, ``"``) are written in that form, and curves whose first
    control point is the current point use ``v``.
    """
    pending: Deque[Op] = deque(ops)
    out = bytearray()
    current: Optional[Point] = None

    while pending:
        op = pending.popleft()
        match op:
            case BeginMarkedContent(tag, None):
                out += _line(_name(tag), "BMC")
            case BeginMarkedContent(tag, properties):
                out += _line(_name(tag), serialize_primitive(properties), "BDC")
            case MarkedContentPoint(tag, None):
                out += _line(_name(tag), "MP")
            case MarkedContentPoint(tag, properties):
                out += _line(_name(tag), serialize_primitive(properties), "DP")
            case EndMarkedContent():
                out += _line("EMC")
            case Close():
                match _peek(pending):
                    case Stroke():
                        pending.popleft()
                        out += _line("s")
                    case FillAndStroke(Winding.NON_ZERO):
                        pending.popleft()
                        out += _line("b")
                    case FillAndStroke(Winding.EVEN_ODD):
                        pending.popleft()
                        out += _line("b*")
                    case _:
                        out += _line("h")
            case MoveTo(p):
                out += _line(str(p), "m")
                current = p
            case LineTo(p):
                out += _line(str(p), "l")
                current = p
            case CurveTo(c1, c2, p):
                if current is not None and c1 == current:
                    out += _line(str(c2), str(p), "v")
                elif c2 == p:
                    out += _line(str(c1), str(p), "y")
                else:
                    out += _line(str(c1), str(c2), str(p), "c")
                current = p
            case RectOp(rect):
                out += _line(str(rect), "re")
            case EndPath():
                out += _line("n")
            case Stroke():
                out += _line("S")
            case FillAndStroke(winding):
                out += _line("B" if winding is Winding.NON_ZERO else "B*")
            case Fill(winding):
                out += _line("f" if winding is Winding.NON_ZERO else "f*")
            case Shade(name):
                out += _line(_name(name), "sh")
            case Clip(winding):
                out += _line("W" if winding is Winding.NON_ZERO else "W*")
            case Save():
                out += _line("q")
            case Restore():
                out += _line("Q")
            case Transform(matrix):
                out += _line(str(matrix), "cm")
            case LineWidth(width):
                out += _line(_num(width), "w")
            case Dash(pattern, phase):
                dashes = " ".join(_num(v) for v in pattern)
                out += _line(f"[{dashes}]", _num(phase), "d")
            case LineJoinOp(join):
                out += _line(int(join), "j")
            case LineCapOp(cap):
                out += _line(int(cap), "J")
            case MiterLimit(limit):
                out += _line(_num(limit), "M")
            case Flatness(tolerance):
                out += _line(_num(tolerance), "i")
            case GraphicsState(name):
                out += _line(_name(name), "gs")
            case StrokeColor(color):
                out += _color(color, "G", "RG", "K", "SCN")
            case FillColor(color):
                out += _color(color, "g", "rg", "k", "scn")
            case FillColorSpace(name):
                out += _line(_name(name), "cs")
            case StrokeColorSpace(name):
                out += _line(_name(name), "CS")
            case RenderingIntentOp(intent):
                out += _line(_name(intent.value), "ri")
            case BeginText():
                out += _line("BT")
            case EndText():
                out += _line("ET")
            case CharSpacing(char_space):
                out += _line(_num(char_space), "Tc")
            case WordSpacing(word_space):
                match tuple(islice(pending, 3)):
                    case (CharSpacing(char_space), TextNewline(), TextDraw(text)):
                        for _ in range(3):
                            pending.popleft()
                        out += _line(_num(word_space), _num(char_space), serialize_primitive(text), '"')
                    case _:
                        out += _line(_num(word_space), "Tw")
            case TextScaling(horiz_scale):
                out += _line(_num(horiz_scale), "Tz")
            case Leading(leading):
                nxt = _peek(pending)
                if isinstance(nxt, MoveTextPosition) and leading == -nxt.translation.y:
                    pending.popleft()
                    out += _line(str(nxt.translation), "TD")
                else:
                    out += _line(_num(leading), "TL")
            case TextFont(name, size):
                out += _line(_name(name), _num(size), "Tf")
            case TextRenderMode(mode):
                out += _line(int(mode), "Tr")
            case TextRise(rise):
                out += _line(_num(rise), "Ts")
            case MoveTextPosition(translation):
                out += _line(str(translation), "Td")
            case SetTextMatrix(matrix):
                out += _line(str(matrix), "Tm")
            case TextNewline():
                nxt = _peek(pending)
                if isinstance(nxt, TextDraw):
                    pending.popleft()
                    out += _line(serialize_primitive(nxt.text), "'")
                else:
                    out += _line("T*")
            case TextDraw(text):
                out += _line(serialize_primitive(text), "Tj")
            case TextDrawAdjusted(array):
                items = b" ".join(_text_item(item) for item in array)
                out += _line(b"[" + items + b"]", "TJ")
            case XObject(name):
                out += _line(_name(name), "Do")
            case InlineImageOp():
                raise PdfError("Unimplemented: serializing inline images")
            case _:
                raise TypeError(f"not a graphics operator: {op!r}")

    return bytes(out)