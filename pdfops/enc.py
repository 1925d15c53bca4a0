"""Stream filters: ASCIIHex, ASCII85, LZW and Flate coding plus PNG predictors."""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from enum import Enum, IntEnum
from itertools import islice
from typing import Any, Callable, Mapping, Optional, Union

from .errors import Ascii85TailError, HexDecodeError, IncorrectPredictorType, PdfError

DecodeFn = Callable[[bytes], bytes]

_HEX_WHITESPACE = frozenset(b"\x00\t\n\x0c\r ")
_A85_WHITESPACE = frozenset(b" \n\r\t")

_LZW_CLEAR = 256
_LZW_EOD = 257
_LZW_FIRST_CODE = 258
_LZW_MIN_WIDTH = 9
_LZW_MAX_WIDTH = 12
_LZW_MAX_CODES = 1 << _LZW_MAX_WIDTH


def _int_field(params: Mapping[str, Any], key: str, default: Optional[int], *, unsigned: bool = False) -> Optional[int]:
    value = params.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise PdfError(f"Expected primitive Integer for /{key}, found {value!r} instead.")
    if unsigned and value < 0:
        raise PdfError(f"Value of /{key} must not be negative, found {value}.")
    return value


def _bool_field(params: Mapping[str, Any], key: str, default: bool) -> bool:
    value = params.get(key, default)
    if not isinstance(value, bool):
        raise PdfError(f"Expected primitive Boolean for /{key}, found {value!r} instead.")
    return value


@dataclass(frozen=True)
class LZWFlateParams:
    """Decode parameters shared by the LZW and Flate filters."""

    predictor: int = 1
    n_components: int = 1
    bits_per_component: int = 8
    columns: int = 1
    early_change: int = 1

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "LZWFlateParams":
        """Build the parameters from a decode-parameter dictionary."""
        return cls(
            predictor=_int_field(params, "Predictor", 1),
            n_components=_int_field(params, "Colors", 1),
            bits_per_component=_int_field(params, "BitsPerComponent", 8),
            columns=_int_field(params, "Columns", 1),
            early_change=_int_field(params, "EarlyChange", 1),
        )


@dataclass(frozen=True)
class DCTDecodeParams:
    """Decode parameters of the DCT (JPEG) filter."""

    color_transform: Optional[int] = None

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "DCTDecodeParams":
        """Build the parameters from a decode-parameter dictionary."""
        return cls(color_transform=_int_field(params, "ColorTransform", None))


@dataclass(frozen=True)
class CCITTFaxDecodeParams:
    """Decode parameters of the CCITT fax filter."""

    k: int = 0
    end_of_line: bool = False
    encoded_byte_align: bool = False
    columns: int = 1728
    rows: int = 0
    end_of_block: bool = True
    black_is_1: bool = False
    damaged_rows_before_error: int = 0

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "CCITTFaxDecodeParams":
        """Build the parameters from a decode-parameter dictionary."""
        return cls(
            k=_int_field(params, "K", 0),
            end_of_line=_bool_field(params, "EndOfLine", False),
            encoded_byte_align=_bool_field(params, "EncodedByteAlign", False),
            columns=_int_field(params, "Columns", 1728, unsigned=True),
            rows=_int_field(params, "Rows", 0, unsigned=True),
            end_of_block=_bool_field(params, "EndOfBlock", True),
            black_is_1=_bool_field(params, "BlackIs1", False),
            damaged_rows_before_error=_int_field(params, "DamagedRowsBeforeError", 0, unsigned=True),
        )


class FilterKind(Enum):
    """The stream filters a PDF may name."""

    ASCII_HEX = "ASCIIHexDecode"
    ASCII_85 = "ASCII85Decode"
    LZW = "LZWDecode"
    FLATE = "FlateDecode"
    JPX = "JPXDecode"
    DCT = "DCTDecode"
    CCITT_FAX = "CCITTFaxDecode"
    JBIG2 = "JBIG2Decode"
    CRYPT = "Crypt"


FilterParams = Union[LZWFlateParams, DCTDecodeParams, CCITTFaxDecodeParams, None]

_PARAM_TYPES = {
    FilterKind.LZW: LZWFlateParams,
    FilterKind.FLATE: LZWFlateParams,
    FilterKind.DCT: DCTDecodeParams,
    FilterKind.CCITT_FAX: CCITTFaxDecodeParams,
}


@dataclass(frozen=True)
class StreamFilter:
    """A filter together with its decode parameters."""

    kind: FilterKind
    params: FilterParams = None

    @classmethod
    def from_kind_and_params(cls, kind: str, params: Optional[Mapping[str, Any]] = None) -> "StreamFilter":
        """Build a filter from its PDF name and decode-parameter dictionary."""
        try:
            filter_kind = FilterKind(kind)
        except ValueError:
            raise PdfError(f"Unrecognized filter type {kind!r}") from None
        param_type = _PARAM_TYPES.get(filter_kind)
        parsed = param_type.from_dict(params or {}) if param_type is not None else None
        return cls(filter_kind, parsed)


class PredictorType(IntEnum):
    """PNG row filter types."""

    NO_FILTER = 0
    SUB = 1
    UP = 2
    AVG = 3
    PAETH = 4


def _predictor_type(n: int) -> PredictorType:
    try:
        return PredictorType(n)
    except ValueError:
        raise IncorrectPredictorType(n) from None


# ---------------------------------------------------------------- ASCIIHex

def decode_nibble(c: int) -> Optional[int]:
    """Return the value of one hex digit byte, or None if it is not one."""
    if 0x30 <= c <= 0x39:
        return c - 0x30
    if 0x61 <= c <= 0x68:
        return c - 0x61 + 0xA
    if 0x41 <= c <= 0x48:
        return c - 0x41 + 0xA
    return None


def decode_hex(data: bytes) -> bytes:
    """Decode ASCIIHex data up to the first '>'; an odd trailing digit is dropped."""
    cleaned = bytes(b for b in data.partition(b">")[0] if b not in _HEX_WHITESPACE)
    out = bytearray()
    for i, (high, low) in enumerate(zip(cleaned[0::2], cleaned[1::2])):
        hi, lo = decode_nibble(high), decode_nibble(low)
        if hi is None or lo is None:
            raise HexDecodeError(i * 2, bytes([high, low]))
        out.append(((hi << 4) | lo) & 0xFF)
    return bytes(out)


def encode_hex(data: bytes) -> bytes:
    """Encode data as lower-case hex digits."""
    return bytes(data).hex().encode("ascii")


# ---------------------------------------------------------------- ASCII85

def _word_85(group: bytes) -> bytes:
    value = 0
    for symbol in group:
        if not 0x21 <= symbol <= 0x75:
            raise Ascii85TailError()
        value = value * 85 + (symbol - 0x21)
    if value > 0xFFFFFFFF:
        raise Ascii85TailError()
    return value.to_bytes(4, "big")


def decode_85(data: bytes) -> bytes:
    """Decode ASCII85 data, which must end with '~>'."""
    filtered = bytes(b for b in data if b not in _A85_WHITESPACE)
    symbols, tilde, rest = filtered.partition(b"~")
    out = bytearray()
    it = iter(symbols)
    for first in it:
        if first == 0x7A:  # 'z'
            out += bytes(4)
            continue
        group = bytes([first, *islice(it, 4)])
        if len(group) == 5:
            out += _word_85(group)
        else:
            out += _word_85(group + b"u" * (5 - len(group)))[: len(group) - 1]
    if not tilde or rest != b">":
        raise Ascii85TailError()
    return bytes(out)


def _base85_chunk(chunk: bytes) -> bytes:
    n = int.from_bytes(chunk, "big")
    digits = []
    for _ in range(4):
        n, digit = divmod(n, 85)
        digits.append(digit)
    digits.append(n)
    return bytes(d + 0x21 for d in reversed(digits))


def encode_85(data: bytes) -> bytes:
    """Encode data as ASCII85, terminated by '~>'."""
    data = bytes(data)
    full = len(data) - len(data) % 4
    buf = bytearray()
    for chunk in (data[off:off + 4] for off in range(0, full, 4)):
        buf += b"z" if chunk == bytes(4) else _base85_chunk(chunk)
    remainder = data[full:]
    if remainder:
        padded = remainder + bytes(4 - len(remainder))
        buf += _base85_chunk(padded)[: len(remainder) + 1]
    buf += b"~>"
    return bytes(buf)


# ---------------------------------------------------------------- predictors

def _paeth(a: int, b: int, c: int) -> int:
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def unfilter(predictor: PredictorType, bpp: int, prev: bytes, inp: bytes) -> bytes:
    """Undo a PNG row filter, given the previous decoded row."""
    if len(inp) != len(prev):
        raise ValueError("row and previous row differ in length")
    if predictor is PredictorType.NO_FILTER:
        return bytes(inp)
    if predictor is PredictorType.UP:
        return bytes((x + p) & 0xFF for x, p in zip(inp, prev))
    out = bytearray(len(inp))
    for i, x in enumerate(inp):
        left = out[i - bpp] if i >= bpp else 0
        if predictor is PredictorType.SUB:
            out[i] = (x + left) & 0xFF
        elif predictor is PredictorType.AVG:
            out[i] = (x + (left + prev[i]) // 2) & 0xFF
        else:
            upper_left = prev[i - bpp] if i >= bpp else 0
            out[i] = (x + _paeth(left, prev[i], upper_left)) & 0xFF
    return bytes(out)


def filter_row(method: PredictorType, bpp: int, previous: bytes, current: bytes) -> bytes:
    """Apply a PNG row filter to ``current``, given the previous raw row."""

    def predicted(i: int) -> int:
        if method is PredictorType.NO_FILTER:
            return 0
        if method is PredictorType.UP:
            return previous[i]
        if i < bpp:
            if method is PredictorType.SUB:
                return 0
            if method is PredictorType.AVG:
                return previous[i] // 2
            return _paeth(0, previous[i], 0)
        if method is PredictorType.SUB:
            return current[i - bpp]
        if method is PredictorType.AVG:
            return ((current[i - bpp] + previous[i]) & 0xFF) // 2
        return _paeth(current[i - bpp], previous[i], previous[i - bpp])

    return bytes((x - predicted(i)) & 0xFF for i, x in enumerate(current))


# ---------------------------------------------------------------- Flate

def flate_decode(data: bytes, params: LZWFlateParams) -> bytes:
    """Inflate zlib (or bare deflate) data and undo any PNG predictor."""
    try:
        decoded = zlib.decompress(data)
    except zlib.error:
        try:
            decoded = zlib.decompress(data, -15)
        except zlib.error as exc:
            raise PdfError(str(exc)) from exc

    if params.predictor <= 10:
        return decoded

    n_components = params.n_components
    stride = params.columns * n_components
    rows = len(decoded) // (stride + 1)
    out = bytearray()
    prev = bytes(stride)
    for start in range(0, rows * (stride + 1), stride + 1):
        kind = _predictor_type(decoded[start])
        row = unfilter(kind, n_components, prev, decoded[start + 1:start + 1 + stride])
        out += row
        prev = row
    return bytes(out)


def flate_encode(data: bytes) -> bytes:
    """Deflate data without a zlib header."""
    compressor = zlib.compressobj(wbits=-15)
    return compressor.compress(bytes(data)) + compressor.flush()


# ---------------------------------------------------------------- LZW

class _BitReader:
    def __init__(self, data: bytes) -> None:
        self._bytes = iter(data)
        self._acc = 0
        self._nbits = 0

    def read(self, width: int) -> Optional[int]:
        while self._nbits < width:
            byte = next(self._bytes, None)
            if byte is None:
                return None
            self._acc = (self._acc << 8) | byte
            self._nbits += 8
        self._nbits -= width
        code = self._acc >> self._nbits
        self._acc &= (1 << self._nbits) - 1
        return code


class _BitWriter:
    def __init__(self) -> None:
        self._out = bytearray()
        self._acc = 0
        self._nbits = 0

    def write(self, code: int, width: int) -> None:
        self._acc = (self._acc << width) | code
        self._nbits += width
        while self._nbits >= 8:
            self._nbits -= 8
            self._out.append((self._acc >> self._nbits) & 0xFF)
        self._acc &= (1 << self._nbits) - 1

    def getvalue(self) -> bytes:
        if self._nbits:
            return bytes(self._out) + bytes([(self._acc << (8 - self._nbits)) & 0xFF])
        return bytes(self._out)


def _initial_table() -> list[bytes]:
    return [bytes([i]) for i in range(256)] + [b"", b""]


def lzw_decode(data: bytes, params: LZWFlateParams) -> bytes:
    """Decode MSB-first LZW data with 8-bit symbols."""
    early = 1 if params.early_change != 0 else 0
    reader = _BitReader(data)
    table = _initial_table()
    width = _LZW_MIN_WIDTH
    prev: Optional[bytes] = None
    out = bytearray()
    while (code := reader.read(width)) is not None:
        if code == _LZW_CLEAR:
            table = _initial_table()
            width = _LZW_MIN_WIDTH
            prev = None
            continue
        if code == _LZW_EOD:
            break
        if code < len(table) and code not in (_LZW_CLEAR, _LZW_EOD):
            entry = table[code]
            if prev is not None and len(table) < _LZW_MAX_CODES:
                table.append(prev + entry[:1])
        elif code == len(table) and prev is not None and len(table) < _LZW_MAX_CODES:
            entry = prev + prev[:1]
            table.append(entry)
        else:
            raise PdfError(f"invalid LZW code {code}")
        out += entry
        prev = entry
        if len(table) + early >= (1 << width) and width < _LZW_MAX_WIDTH:
            width += 1
    return bytes(out)


def lzw_encode(data: bytes, params: LZWFlateParams) -> bytes:
    """Encode data as MSB-first LZW; only EarlyChange 0 is supported."""
    if params.early_change != 0:
        raise PdfError("encoding early_change != 0 is not supported")
    writer = _BitWriter()
    table = {bytes([i]): i for i in range(256)}
    next_code = _LZW_FIRST_CODE
    width = _LZW_MIN_WIDTH
    writer.write(_LZW_CLEAR, width)
    word = b""
    for byte in bytes(data):
        extended = word + bytes([byte])
        if extended in table:
            word = extended
            continue
        writer.write(table[word], width)
        if next_code < _LZW_MAX_CODES:
            table[extended] = next_code
            next_code += 1
            if next_code > (1 << width):
                width += 1
        else:
            writer.write(_LZW_CLEAR, width)
            table = {bytes([i]): i for i in range(256)}
            next_code = _LZW_FIRST_CODE
            width = _LZW_MIN_WIDTH
        word = bytes([byte])
    if word:
        writer.write(table[word], width)
        if next_code < _LZW_MAX_CODES and next_code + 1 > (1 << width):
            width += 1
    writer.write(_LZW_EOD, width)
    return writer.getvalue()


# ---------------------------------------------------------------- external decoders

_EXTERNAL_DECODERS: dict[str, DecodeFn] = {}


def set_jpx_decoder(func: DecodeFn) -> None:
    """Install the JPEG 2000 decoder; only the first installation takes effect."""
    _EXTERNAL_DECODERS.setdefault("jpx", func)


def set_jbig2_decoder(func: DecodeFn) -> None:
    """Install the JBIG2 decoder; only the first installation takes effect."""
    _EXTERNAL_DECODERS.setdefault("jbig2", func)


def jpx_decode(data: bytes) -> bytes:
    """Decode JPEG 2000 data with the installed decoder."""
    func = _EXTERNAL_DECODERS.get("jpx")
    if func is None:
        raise PdfError("jp2k decoder not set")
    return func(data)


def jbig2_decode(data: bytes) -> bytes:
    """Decode JBIG2 data with the installed decoder."""
    func = _EXTERNAL_DECODERS.get("jbig2")
    if func is None:
        raise PdfError("jbig2 decoder not set")
    return func(data)


# ---------------------------------------------------------------- dispatch

def decode(data: bytes, stream_filter: StreamFilter) -> bytes:
    """Decode data through one filter."""
    kind = stream_filter.kind
    if kind is FilterKind.ASCII_HEX:
        return decode_hex(data)
    if kind is FilterKind.ASCII_85:
        return decode_85(data)
    if kind is FilterKind.LZW:
        return lzw_decode(data, stream_filter.params or LZWFlateParams())
    if kind is FilterKind.FLATE:
        return flate_decode(data, stream_filter.params or LZWFlateParams())
    raise PdfError(f"unimplemented {stream_filter!r}")


def encode(data: bytes, stream_filter: StreamFilter) -> bytes:
    """Encode data through one filter."""
    kind = stream_filter.kind
    if kind is FilterKind.ASCII_HEX:
        return encode_hex(data)
    if kind is FilterKind.ASCII_85:
        return encode_85(data)
    if kind is FilterKind.LZW:
        return lzw_encode(data, stream_filter.params or LZWFlateParams())
    if kind is FilterKind.FLATE:
        return flate_encode(data)
    raise PdfError(f"Unimplemented encoding for {kind.value}")