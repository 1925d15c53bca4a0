"""Graphics operators of PDF content streams and the values they carry."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional, Sequence, Union

from .enc import StreamFilter

_NAME_DELIMITERS = frozenset(b"()<>[]{}/%#")
_STRING_ESCAPES = {0x5C: b"\\\\", 0x28: b"\\(", 0x29: b"\\)"}


class Name(str):
    """A PDF name object, written without its leading slash."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Name({str.__repr__(self)})"


def _to_f32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def format_number(value: Union[int, float]) -> str:
    """Format a number the way content streams write it.

    Integers are written as they are.  Other numbers are rounded to single
    precision and written with the fewest digits that read back to the same
    value, in plain decimal notation without an exponent.
    """
    if isinstance(value, bool):
        raise TypeError("a boolean is not a number")
    if isinstance(value, int):
        return str(value)
    single = _to_f32(float(value))
    if math.isnan(single):
        return "NaN"
    if math.isinf(single):
        return "inf" if single > 0 else "-inf"
    shortest = repr(single)
    for precision in range(1, 10):
        candidate = f"{single:.{precision}g}"
        try:
            if _to_f32(float(candidate)) == single:
                shortest = candidate
                break
        except OverflowError:
            continue
    return format(Decimal(shortest), "f")


def _serialize_name(name: str) -> bytes:
    out = bytearray(b"/")
    for byte in name.encode("utf-8"):
        if 0x21 <= byte <= 0x7E and byte not in _NAME_DELIMITERS:
            out.append(byte)
        else:
            out += b"#%02X" % byte
    return bytes(out)


def _serialize_string(data: bytes) -> bytes:
    if all(0x20 <= b <= 0x7E for b in data):
        body = b"".join(_STRING_ESCAPES.get(b, bytes([b])) for b in data)
        return b"(" + body + b")"
    return b"<" + data.hex().encode("ascii") + b">"


def serialize_primitive(value: Any) -> bytes:
    """Write a primitive value (None, bool, number, Name, bytes, list or dict) in PDF syntax."""
    if value is None:
        return b"null"
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if isinstance(value, (int, float)):
        return format_number(value).encode("ascii")
    if isinstance(value, Name):
        return _serialize_name(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _serialize_string(bytes(value))
    if isinstance(value, (list, tuple)):
        return b"[" + b" ".join(serialize_primitive(item) for item in value) + b"]"
    if isinstance(value, Mapping):
        entries = b"".join(
            b" " + _serialize_name(str(key)) + b" " + serialize_primitive(item)
            for key, item in value.items()
        )
        return b"<<" + entries + b" >>"
    raise TypeError(f"cannot serialize {type(value).__name__} as a PDF primitive")


def _join(*numbers: float) -> str:
    return " ".join(format_number(n) for n in numbers)


class Winding(Enum):
    """Rule that decides which regions a path encloses."""

    EVEN_ODD = "EvenOdd"
    NON_ZERO = "NonZero"


class LineCap(IntEnum):
    """Shape at the open ends of stroked paths."""

    BUTT = 0
    ROUND = 1
    SQUARE = 2


class LineJoin(IntEnum):
    """Shape at the corners of stroked paths."""

    MITER = 0
    ROUND = 1
    BEVEL = 2


class TextMode(IntEnum):
    """Text rendering mode set by the ``Tr`` operator."""

    FILL = 0
    STROKE = 1
    FILL_THEN_STROKE = 2
    INVISIBLE = 3
    FILL_AND_CLIP = 4
    STROKE_AND_CLIP = 5


class RenderingIntent(Enum):
    """Colour rendering intent named by the ``ri`` operator."""

    ABSOLUTE_COLORIMETRIC = "AbsoluteColorimetric"
    RELATIVE_COLORIMETRIC = "RelativeColorimetric"
    SATURATION = "Saturation"
    PERCEPTUAL = "Perceptual"


@dataclass(frozen=True)
class Point:
    """A point in user space."""

    x: float = 0.0
    y: float = 0.0

    def __str__(self) -> str:
        return _join(self.x, self.y)


@dataclass(frozen=True)
class Rect:
    """A rectangle given by its corner and its size."""

    x: float
    y: float
    width: float
    height: float

    def __str__(self) -> str:
        return _join(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class Matrix:
    """An affine transformation matrix; the default is the identity."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    def __str__(self) -> str:
        return _join(self.a, self.b, self.c, self.d, self.e, self.f)


@dataclass(frozen=True)
class Gray:
    """A gray level colour."""

    value: float

    def __str__(self) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class Rgb:
    """An RGB colour."""

    red: float
    green: float
    blue: float

    def __str__(self) -> str:
        return _join(self.red, self.green, self.blue)


@dataclass(frozen=True)
class Cmyk:
    """A CMYK colour."""

    cyan: float
    magenta: float
    yellow: float
    key: float

    def __str__(self) -> str:
        return _join(self.cyan, self.magenta, self.yellow, self.key)


@dataclass(frozen=True)
class OtherColor:
    """A colour in some other colour space, kept as its raw operands."""

    args: tuple = ()


Color = Union[Gray, Rgb, Cmyk, OtherColor]


@dataclass(frozen=True)
class TextSpacing:
    """A position adjustment inside a ``TJ`` array, in thousandths of a text unit."""

    value: float

    def __str__(self) -> str:
        return format_number(self.value)


TextItem = Union[bytes, TextSpacing]


@dataclass
class InlineImage:
    """An image embedded in a content stream between ``BI`` and ``EI``."""

    width: int
    height: int
    data: bytes
    filters: list[StreamFilter] = field(default_factory=list)
    color_space: Any = None
    bits_per_component: Optional[int] = None
    intent: Optional[RenderingIntent] = None
    image_mask: bool = False
    decode: Optional[list] = None
    interpolate: bool = False
    other: dict = field(default_factory=dict)


class Op:
    """Base class of all graphics operators."""

    __slots__ = ()


@dataclass(frozen=True)
class BeginMarkedContent(Op):
    """Start of a marked-content sequence (``BMC``, ``BDC``)."""

    tag: Name
    properties: Any = None


@dataclass(frozen=True)
class EndMarkedContent(Op):
    """End of a marked-content sequence (``EMC``)."""


@dataclass(frozen=True)
class MarkedContentPoint(Op):
    """A marked-content point (``MP``, ``DP``)."""

    tag: Name
    properties: Any = None


@dataclass(frozen=True)
class Close(Op):
    """Close the current subpath (``h``)."""


@dataclass(frozen=True)
class MoveTo(Op):
    """Begin a new subpath (``m``)."""

    p: Point


@dataclass(frozen=True)
class LineTo(Op):
    """Append a straight segment (``l``)."""

    p: Point


@dataclass(frozen=True)
class CurveTo(Op):
    """Append a cubic Bézier segment (``c``, ``v``, ``y``)."""

    c1: Point
    c2: Point
    p: Point


@dataclass(frozen=True)
class RectOp(Op):
    """Append a rectangle as a closed subpath (``re``)."""

    rect: Rect


@dataclass(frozen=True)
class EndPath(Op):
    """End the path without painting it (``n``)."""


@dataclass(frozen=True)
class Stroke(Op):
    """Stroke the path (``S``)."""


@dataclass(frozen=True)
class FillAndStroke(Op):
    """Fill then stroke the path (``B``, ``B*``)."""

    winding: Winding


@dataclass(frozen=True)
class Fill(Op):
    """Fill the path (``f``, ``f*``)."""

    winding: Winding


@dataclass(frozen=True)
class Shade(Op):
    """Paint with a named shading (``sh``)."""

    name: Name


@dataclass(frozen=True)
class Clip(Op):
    """Intersect the clipping path with the current path (``W``, ``W*``)."""

    winding: Winding


@dataclass(frozen=True)
class Save(Op):
    """Push the graphics state (``q``)."""


@dataclass(frozen=True)
class Restore(Op):
    """Pop the graphics state (``Q``)."""


@dataclass(frozen=True)
class Transform(Op):
    """Concatenate a matrix to the current transformation (``cm``)."""

    matrix: Matrix


@dataclass(frozen=True)
class LineWidth(Op):
    """Set the line width (``w``)."""

    width: float


@dataclass(frozen=True)
class Dash(Op):
    """Set the dash pattern (``d``)."""

    pattern: Sequence[float]
    phase: float


@dataclass(frozen=True)
class LineJoinOp(Op):
    """Set the line join style (``j``)."""

    join: LineJoin


@dataclass(frozen=True)
class LineCapOp(Op):
    """Set the line cap style (``J``)."""

    cap: LineCap


@dataclass(frozen=True)
class MiterLimit(Op):
    """Set the miter limit (``M``)."""

    limit: float


@dataclass(frozen=True)
class Flatness(Op):
    """Set the flatness tolerance (``i``)."""

    tolerance: float


@dataclass(frozen=True)
class GraphicsState(Op):
    """Apply a named graphics state dictionary (``gs``)."""

    name: Name


@dataclass(frozen=True)
class StrokeColor(Op):
    """Set the stroking colour (``G``, ``RG``, ``K``, ``SC``, ``SCN``)."""

    color: Color


@dataclass(frozen=True)
class FillColor(Op):
    """Set the non-stroking colour (``g``, ``rg``, ``k``, ``sc``, ``scn``)."""

    color: Color


@dataclass(frozen=True)
class FillColorSpace(Op):
    """Set the non-stroking colour space (``cs``)."""

    name: Name


@dataclass(frozen=True)
class StrokeColorSpace(Op):
    """Set the stroking colour space (``CS``)."""

    name: Name


@dataclass(frozen=True)
class RenderingIntentOp(Op):
    """Set the rendering intent (``ri``)."""

    intent: RenderingIntent


@dataclass(frozen=True)
class BeginText(Op):
    """Begin a text object (``BT``)."""


@dataclass(frozen=True)
class EndText(Op):
    """End a text object (``ET``)."""


@dataclass(frozen=True)
class CharSpacing(Op):
    """Set the character spacing (``Tc``)."""

    char_space: float


@dataclass(frozen=True)
class WordSpacing(Op):
    """Set the word spacing (``Tw``)."""

    word_space: float


@dataclass(frozen=True)
class TextScaling(Op):
    """Set the horizontal text scaling (``Tz``)."""

    horiz_scale: float


@dataclass(frozen=True)
class Leading(Op):
    """Set the text leading (``TL``)."""

    leading: float


@dataclass(frozen=True)
class TextFont(Op):
    """Select a font and size (``Tf``)."""

    name: Name
    size: float


@dataclass(frozen=True)
class TextRenderMode(Op):
    """Set the text rendering mode (``Tr``)."""

    mode: TextMode


@dataclass(frozen=True)
class TextRise(Op):
    """Set the text rise (``Ts``)."""

    rise: float


@dataclass(frozen=True)
class MoveTextPosition(Op):
    """Move to the start of the next line, offset by a translation (``Td``, ``TD``)."""

    translation: Point


@dataclass(frozen=True)
class SetTextMatrix(Op):
    """Set the text matrix (``Tm``)."""

    matrix: Matrix


@dataclass(frozen=True)
class TextNewline(Op):
    """Move to the start of the next line (``T*``)."""


@dataclass(frozen=True)
class TextDraw(Op):
    """Show a text string (``Tj``)."""

    text: bytes


@dataclass(frozen=True)
class TextDrawAdjusted(Op):
    """Show strings with individual position adjustments (``TJ``)."""

    array: Sequence[TextItem]


@dataclass(frozen=True)
class XObject(Op):
    """Paint a named external object (``Do``)."""

    name: Name


@dataclass(frozen=True)
class InlineImageOp(Op):
    """Paint an inline image (``BI`` … ``ID`` … ``EI``)."""

    image: InlineImage