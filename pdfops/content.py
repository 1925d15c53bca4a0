"""Parsing content streams into graphics operators, and building streams from them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

from .enc import StreamFilter
from .errors import ContentReadPastBoundary, MissingEntry, NoOpArg, PdfError, UnexpectedEof
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
    InlineImage,
    InlineImageOp,
    Leading,
    LineCap,
    LineCapOp,
    LineJoin,
    LineJoinOp,
    LineTo,
    LineWidth,
    MarkedContentPoint,
    Matrix,
    MiterLimit,
    MoveTextPosition,
    MoveTo,
    Name,
    Op,
    OtherColor,
    Point,
    Rect,
    RectOp,
    RenderingIntent,
    RenderingIntentOp,
    Restore,
    Rgb,
    Save,
    SetTextMatrix,
    StrokeColor,
    StrokeColorSpace,
    Stroke,
    TextDraw,
    TextDrawAdjusted,
    TextFont,
    TextMode,
    TextNewline,
    TextRenderMode,
    TextRise,
    TextScaling,
    TextSpacing,
    Transform,
    Winding,
    WordSpacing,
    XObject,
)
from .serialize import serialize_ops

logger = logging.getLogger(__name__)

_WHITESPACE = frozenset(b"\x00\t\n\x0c\r ")
_DELIMITERS = frozenset(b"()<>[]{}/%")
_NUMBER = re.compile(rb"[+-]?(?:\d+(?:\.\d*)?|\.\d+)\Z")
_MAX_DEPTH = 256
_MISSING = object()

_LITERAL_ESCAPES = {
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
    ord("b"): 0x08,
    ord("f"): 0x0C,
    ord("("): 0x28,
    ord(")"): 0x29,
    ord("\\"): 0x5C,
}

_INLINE_KEYS = {
    "BPC": "BitsPerComponent",
    "CS": "ColorSpace",
    "D": "Decode",
    "DP": "DecodeParms",
    "F": "Filter",
    "H": "Height",
    "IM": "ImageMask",
    "I": "Interpolate",
    "W": "Width",
}
_INLINE_COLOR_SPACES = {
    "G": "DeviceGray",
    "RGB": "DeviceRGB",
    "CMYK": "DeviceCMYK",
    "I": "Indexed",
}
_INLINE_FILTERS = {
    "AHx": "ASCIIHexDecode",
    "A85": "ASCII85Decode",
    "LZW": "LZWDecode",
    "Fl": "FlateDecode",
    "RL": "RunLengthDecode",
    "CCF": "CCITTFaxDecode",
    "DCT": "DCTDecode",
}


class _NotAnObject(PdfError):
    """The next token does not start an object."""


# ---------------------------------------------------------------- lexing

class _Lexer:
    def __init__(self, data: bytes, pos: int = 0) -> None:
        self.data = data
        self.pos = pos

    def skip_space(self) -> None:
        data = self.data
        while self.pos < len(data):
            byte = data[self.pos]
            if byte in _WHITESPACE:
                self.pos += 1
            elif byte == 0x25:  # '%' starts a comment running to the end of the line
                while self.pos < len(data) and data[self.pos] not in (0x0A, 0x0D):
                    self.pos += 1
            else:
                break

    def at(self, prefix: bytes) -> bool:
        return self.data.startswith(prefix, self.pos)

    def next_token(self) -> bytes:
        self.skip_space()
        data = self.data
        if self.pos >= len(data):
            raise UnexpectedEof()
        start = self.pos
        byte = data[start]
        if byte in b"<>" and data[start + 1:start + 2] == bytes([byte]):
            self.pos += 2
        elif byte in _DELIMITERS:
            self.pos += 1
        else:
            while self.pos < len(data) and data[self.pos] not in _WHITESPACE and data[self.pos] not in _DELIMITERS:
                self.pos += 1
        return data[start:self.pos]


def _read_name(lexer: _Lexer) -> Name:
    data = lexer.data
    start = lexer.pos
    while lexer.pos < len(data) and data[lexer.pos] not in _WHITESPACE and data[lexer.pos] not in _DELIMITERS:
        lexer.pos += 1
    raw = data[start:lexer.pos]
    out = bytearray()
    i = 0
    while i < len(raw):
        if raw[i] == 0x23 and i + 2 < len(raw) + 0 and re.fullmatch(rb"[0-9A-Fa-f]{2}", raw[i + 1:i + 3]):
            out.append(int(raw[i + 1:i + 3], 16))
            i += 3
        else:
            out.append(raw[i])
            i += 1
    try:
        return Name(bytes(out).decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise PdfError(f"Invalid encoding: {exc}") from exc


def _read_literal(lexer: _Lexer) -> bytes:
    data = lexer.data
    out = bytearray()
    depth = 1
    while True:
        if lexer.pos >= len(data):
            raise UnexpectedEof()
        byte = data[lexer.pos]
        lexer.pos += 1
        if byte == 0x5C:
            if lexer.pos >= len(data):
                raise UnexpectedEof()
            char = data[lexer.pos]
            lexer.pos += 1
            if char in _LITERAL_ESCAPES:
                out.append(_LITERAL_ESCAPES[char])
            elif 0x30 <= char <= 0x37:
                value = char - 0x30
                for _ in range(2):
                    if lexer.pos < len(data) and 0x30 <= data[lexer.pos] <= 0x37:
                        value = value * 8 + data[lexer.pos] - 0x30
                        lexer.pos += 1
                    else:
                        break
                out.append(value & 0xFF)
            elif char == 0x0D:
                if lexer.at(b"\n"):
                    lexer.pos += 1
            elif char != 0x0A:
                out.append(char)
        elif byte == 0x28:
            depth += 1
            out.append(byte)
        elif byte == 0x29:
            depth -= 1
            if depth == 0:
                return bytes(out)
            out.append(byte)
        else:
            out.append(byte)


def _read_hex(lexer: _Lexer) -> bytes:
    end = lexer.data.find(b">", lexer.pos)
    if end < 0:
        raise UnexpectedEof()
    digits = bytes(b for b in lexer.data[lexer.pos:end] if b not in _WHITESPACE)
    lexer.pos = end + 1
    if len(digits) % 2:
        digits += b"0"
    try:
        return bytes.fromhex(digits.decode("ascii"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise PdfError(f"invalid hex string {digits!r}") from exc


def _parse_object(lexer: _Lexer, depth: int = 0) -> Any:
    if depth > _MAX_DEPTH:
        raise PdfError("Max nesting depth reached")
    lexer.skip_space()
    start = lexer.pos
    token = lexer.next_token()
    if token == b"/":
        return _read_name(lexer)
    if token == b"(":
        return _read_literal(lexer)
    if token == b"<":
        return _read_hex(lexer)
    if token == b"[":
        items = []
        while True:
            lexer.skip_space()
            if lexer.pos >= len(lexer.data):
                raise UnexpectedEof()
            if lexer.at(b"]"):
                lexer.pos += 1
                return items
            items.append(_parse_object(lexer, depth + 1))
    if token == b"<<":
        entries: dict[str, Any] = {}
        while True:
            lexer.skip_space()
            if lexer.pos >= len(lexer.data):
                raise UnexpectedEof()
            if lexer.at(b">>"):
                lexer.pos += 2
                return entries
            key = _parse_object(lexer, depth + 1)
            if not isinstance(key, Name):
                raise PdfError(f"dictionary key must be a name, found {key!r}")
            entries[key] = _parse_object(lexer, depth + 1)
    if _NUMBER.match(token):
        text = token.decode("ascii")
        return float(text) if "." in text else int(text)
    if token == b"true":
        return True
    if token == b"false":
        return False
    if token == b"null":
        return None
    raise _NotAnObject(f"Expecting an object, encountered {token!r} at pos {start}")


# ---------------------------------------------------------------- operands

def _kind(value: Any) -> str:
    return type(value).__name__


def _take(args: Iterator[Any]) -> Any:
    value = next(args, _MISSING)
    if value is _MISSING:
        raise NoOpArg()
    return value


def _as_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PdfError(f"Expected primitive Number, found primitive {_kind(value)} instead.")
    return float(value)


def _as_integer(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PdfError(f"Expected primitive Integer, found primitive {_kind(value)} instead.")
    return value


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise PdfError(f"Expected primitive Boolean, found primitive {_kind(value)} instead.")
    return value


def _name(args: Iterator[Any]) -> Name:
    value = _take(args)
    if not isinstance(value, Name):
        raise PdfError(f"Expected primitive Name, found primitive {_kind(value)} instead.")
    return value


def _number(args: Iterator[Any]) -> float:
    return _as_number(_take(args))


def _integer(args: Iterator[Any]) -> int:
    return _as_integer(_take(args))


def _string(args: Iterator[Any]) -> bytes:
    value = _take(args)
    if not isinstance(value, bytes):
        raise PdfError(f"Expected primitive String, found primitive {_kind(value)} instead.")
    return value


def _point(args: Iterator[Any]) -> Point:
    x = _number(args)
    y = _number(args)
    return Point(x, y)


def _rect(args: Iterator[Any]) -> Rect:
    return Rect(_number(args), _number(args), _number(args), _number(args))


def _matrix(args: Iterator[Any]) -> Matrix:
    return Matrix(*(_number(args) for _ in range(6)))


def _array(args: Iterator[Any]) -> list:
    value = next(args, _MISSING)
    if value is _MISSING:
        return []
    if isinstance(value, list):
        return value
    raise NoOpArg()


def _rendering_intent(name: str) -> RenderingIntent:
    try:
        return RenderingIntent(str(name))
    except ValueError:
        raise PdfError(f"invalid rendering intent {name}") from None


def _expand(value: Any, table: dict[str, str]) -> Any:
    if isinstance(value, Name):
        return Name(table.get(value, value))
    if isinstance(value, list):
        return [_expand(item, table) for item in value]
    return value


# ---------------------------------------------------------------- inline images

def parse_inline_image(data: bytes, pos: int = 0) -> tuple[InlineImage, int]:
    """Parse an inline image whose dictionary starts at ``pos`` (just after ``BI``).

    Returns the image and the position just past its closing ``EI``.
    """
    lexer = _Lexer(data, pos)
    entries: dict[str, Any] = {}
    while True:
        backup = lexer.pos
        try:
            key = _parse_object(lexer)
        except PdfError as exc:
            if exc.is_eof():
                raise
            lexer.pos = backup
            break
        if not isinstance(key, Name):
            raise PdfError("invalid key type")
        entries[_INLINE_KEYS.get(key, key)] = _parse_object(lexer)

    token = lexer.next_token()
    if token != b"ID":
        raise PdfError(f"Unexpected token {token!r} at {lexer.pos - len(token)} - expected 'ID'")
    data_start = lexer.pos + 1
    end_marker = data.find(b"\nEI", lexer.pos)
    if end_marker < 0:
        raise PdfError("'\\nEI' not found.")
    data_end = end_marker
    end_pos = end_marker + 3

    bits = entries.get("BitsPerComponent")
    bits_per_component = None if bits is None else _as_integer(bits)

    color_space = entries.get("ColorSpace")
    if color_space is not None:
        color_space = _expand(color_space, _INLINE_COLOR_SPACES)

    decode_value = entries.get("Decode")
    decode_array: Optional[list] = None
    if decode_value is not None:
        if not isinstance(decode_value, list):
            raise PdfError(f"Expected primitive Array, found primitive {_kind(decode_value)} instead.")
        decode_array = [_as_number(item) for item in decode_value]

    decode_parms = entries.get("DecodeParms")
    if decode_parms is None:
        decode_parms = {}
    elif not isinstance(decode_parms, dict):
        raise PdfError(f"Expected primitive Dictionary, found primitive {_kind(decode_parms)} instead.")

    filter_value = entries.pop("Filter", None)
    if filter_value is not None:
        filter_value = _expand(filter_value, _INLINE_FILTERS)
    if filter_value is None:
        filters: list[StreamFilter] = []
    elif isinstance(filter_value, Name):
        filters = [StreamFilter.from_kind_and_params(filter_value, dict(decode_parms))]
    elif isinstance(filter_value, list):
        filters = []
        for part in filter_value:
            if not isinstance(part, Name):
                raise PdfError(f"Expected primitive Name, found primitive {_kind(part)} instead.")
            filters.append(StreamFilter.from_kind_and_params(part, dict(decode_parms)))
    else:
        raise PdfError("invalid filter")

    def dimension(key: str) -> int:
        if key not in entries:
            raise MissingEntry("InlineImage", key)
        value = _as_integer(entries[key])
        if value < 0:
            raise PdfError(f"/{key} must not be negative, found {value}")
        return value

    height = dimension("Height")
    image_mask = _as_bool(entries["ImageMask"]) if "ImageMask" in entries else False
    intent_value = entries.pop("Intent", None)
    intent = None
    if intent_value is not None:
        if not isinstance(intent_value, Name):
            raise PdfError(f"Expected primitive Name, found primitive {_kind(intent_value)} instead.")
        intent = _rendering_intent(intent_value)
    interpolate = _as_bool(entries["Interpolate"]) if "Interpolate" in entries else False
    width = dimension("Width")

    image = InlineImage(
        width=width,
        height=height,
        data=bytes(data[data_start:data_end]),
        filters=filters,
        color_space=color_space,
        bits_per_component=bits_per_component,
        intent=intent,
        image_mask=image_mask,
        decode=decode_array,
        interpolate=interpolate,
        other=entries,
    )
    return image, end_pos


# ---------------------------------------------------------------- operators

class _OpBuilder:
    def __init__(self, allow_invalid_ops: bool) -> None:
        self.allow_invalid_ops = allow_invalid_ops
        self.last = Point(0.0, 0.0)
        self.compatibility_section = False
        self.ops: list[Op] = []

    def parse(self, data: bytes) -> None:
        lexer = _Lexer(data)
        operands: list[Any] = []
        while True:
            backup = lexer.pos
            try:
                operands.append(_parse_object(lexer))
            except PdfError as exc:
                if exc.is_eof():
                    break
                lexer.pos = backup
                operator = lexer.next_token().decode("latin-1")
                args = iter(operands)
                operands = []
                try:
                    self.add(operator, args, lexer)
                except PdfError as err:
                    if not self.allow_invalid_ops:
                        raise
                    logger.warning("OP Err: %s", err)
            if lexer.pos > len(data):
                raise ContentReadPastBoundary()
            if lexer.pos == len(data):
                break

    def _curve(self, c1: Point, c2: Point, p: Point) -> None:
        self.ops.append(CurveTo(c1, c2, p))
        self.last = p

    def add(self, op: str, args: Iterator[Any], lexer: _Lexer) -> None:
        push = self.ops.append
        match op:
            case "b":
                push(Close())
                push(FillAndStroke(Winding.NON_ZERO))
            case "B":
                push(FillAndStroke(Winding.NON_ZERO))
            case "b*":
                push(Close())
                push(FillAndStroke(Winding.EVEN_ODD))
            case "B*":
                push(FillAndStroke(Winding.EVEN_ODD))
            case "BDC":
                tag = _name(args)
                push(BeginMarkedContent(tag, _take(args)))
            case "BI":
                image, lexer.pos = parse_inline_image(lexer.data, lexer.pos)
                push(InlineImageOp(image))
            case "BMC":
                push(BeginMarkedContent(_name(args), None))
            case "BT":
                push(BeginText())
            case "BX":
                self.compatibility_section = True
            case "c":
                c1, c2, p = _point(args), _point(args), _point(args)
                self._curve(c1, c2, p)
            case "cm":
                push(Transform(_matrix(args)))
            case "CS":
                push(StrokeColorSpace(_name(args)))
            case "cs":
                push(FillColorSpace(_name(args)))
            case "d":
                pattern_value = _take(args)
                if not isinstance(pattern_value, list):
                    raise PdfError(f"Expected primitive Array, found primitive {_kind(pattern_value)} instead.")
                pattern = [_as_number(v) for v in pattern_value]
                push(Dash(pattern, _number(args)))
            case "d0" | "d1":
                pass
            case "Do" | "Do0":
                push(XObject(_name(args)))
            case "DP":
                tag = _name(args)
                push(MarkedContentPoint(tag, _take(args)))
            case "EI":
                raise PdfError("Parse Error. Unexpected 'EI'")
            case "EMC":
                push(EndMarkedContent())
            case "ET":
                push(EndText())
            case "EX":
                self.compatibility_section = False
            case "f" | "F":
                push(Fill(Winding.NON_ZERO))
            case "f*":
                push(Fill(Winding.EVEN_ODD))
            case "G":
                push(StrokeColor(Gray(_number(args))))
            case "g":
                push(FillColor(Gray(_number(args))))
            case "gs":
                push(GraphicsState(_name(args)))
            case "h":
                push(Close())
            case "i":
                push(Flatness(_number(args)))
            case "ID":
                raise PdfError("Parse Error. Unexpected 'ID'")
            case "j":
                n = _integer(args)
                try:
                    push(LineJoinOp(LineJoin(n)))
                except ValueError:
                    raise PdfError(f"invalid line join {n}") from None
            case "J":
                n = _integer(args)
                try:
                    push(LineCapOp(LineCap(n)))
                except ValueError:
                    raise PdfError(f"invalid line cap {n}") from None
            case "K":
                push(StrokeColor(Cmyk(*(_number(args) for _ in range(4)))))
            case "k":
                push(FillColor(Cmyk(*(_number(args) for _ in range(4)))))
            case "l":
                p = _point(args)
                push(LineTo(p))
                self.last = p
            case "m":
                p = _point(args)
                push(MoveTo(p))
                self.last = p
            case "M":
                push(MiterLimit(_number(args)))
            case "MP":
                push(MarkedContentPoint(_name(args), None))
            case "n":
                push(EndPath())
            case "q":
                push(Save())
            case "Q":
                push(Restore())
            case "re":
                push(RectOp(_rect(args)))
            case "RG":
                push(StrokeColor(Rgb(*(_number(args) for _ in range(3)))))
            case "rg":
                push(FillColor(Rgb(*(_number(args) for _ in range(3)))))
            case "ri":
                push(RenderingIntentOp(_rendering_intent(_name(args))))
            case "s":
                push(Close())
                push(Stroke())
            case "S":
                push(Stroke())
            case "SC" | "SCN":
                push(StrokeColor(OtherColor(tuple(args))))
            case "sc" | "scn":
                push(FillColor(OtherColor(tuple(args))))
            case "sh":
                pass
            case "T*":
                push(TextNewline())
            case "Tc":
                push(CharSpacing(_number(args)))
            case "Td":
                push(MoveTextPosition(_point(args)))
            case "TD":
                translation = _point(args)
                push(Leading(-translation.y))
                push(MoveTextPosition(translation))
            case "Tf":
                name = _name(args)
                push(TextFont(name, _number(args)))
            case "Tj":
                push(TextDraw(_string(args)))
            case "TJ":
                items = []
                for item in _array(args):
                    if isinstance(item, bool):
                        raise PdfError(f"invalid primitive in TJ operator: {item!r}")
                    if isinstance(item, (int, float)):
                        items.append(TextSpacing(float(item)))
                    elif isinstance(item, bytes):
                        items.append(item)
                    else:
                        raise PdfError(f"invalid primitive in TJ operator: {item!r}")
                push(TextDrawAdjusted(items))
            case "TL":
                push(Leading(_number(args)))
            case "Tm":
                push(SetTextMatrix(_matrix(args)))
            case "Tr":
                n = _integer(args)
                try:
                    push(TextRenderMode(TextMode(n)))
                except ValueError:
                    raise PdfError(f"Invalid text render mode: {n}") from None
            case "Ts":
                push(TextRise(_number(args)))
            case "Tw":
                push(WordSpacing(_number(args)))
            case "Tz":
                push(TextScaling(_number(args)))
            case "v":
                c2, p = _point(args), _point(args)
                self._curve(self.last, c2, p)
            case "w":
                push(LineWidth(_number(args)))
            case "W":
                push(Clip(Winding.NON_ZERO))
            case "W*":
                push(Clip(Winding.EVEN_ODD))
            case "y":
                c1, p = _point(args), _point(args)
                self._curve(c1, p, p)
            case "'":
                push(TextNewline())
                push(TextDraw(_string(args)))
            case '"':
                push(WordSpacing(_number(args)))
                push(CharSpacing(_number(args)))
                push(TextNewline())
                push(TextDraw(_string(args)))
            case _ if not self.compatibility_section:
                raise PdfError(f"invalid operator {op}")
            case _:
                pass


def parse_ops(data: bytes, allow_invalid_ops: bool = False) -> list[Op]:
    """Parse content stream bytes into a list of operators.

    With ``allow_invalid_ops`` an operator that cannot be understood is
    logged and skipped instead of raising.
    """
    builder = _OpBuilder(allow_invalid_ops)
    builder.parse(bytes(data))
    return builder.ops


@dataclass
class Content:
    """A content stream, held as one or more decoded parts."""

    parts: list[bytes] = field(default_factory=list)

    @classmethod
    def from_ops(cls, ops: Iterable[Op]) -> "Content":
        """Build a single-part content stream from operators."""
        return cls([serialize_ops(list(ops))])

    def operations(self, allow_invalid_ops: bool = False) -> list[Op]:
        """Parse all parts, joined in order, into operators."""
        return parse_ops(b"".join(self.parts), allow_invalid_ops)