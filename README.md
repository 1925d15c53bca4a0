# pdfops

Parse, build and serialize PDF content streams, and decode or encode the
common PDF stream filters, in pure Python with no third-party dependencies.

## Modules

- `pdfops.content` — `Content`, `parse_ops` and `parse_inline_image`.
  `parse_ops(data, allow_invalid_ops=False)` turns raw content-stream bytes
  into a list of operator objects. `Content` holds one or more decoded stream
  parts; `Content.from_ops(ops)` builds a single-part stream from operators
  and `Content.operations()` parses all parts, joined in order.
  `parse_inline_image(data, pos)` reads an inline image dictionary starting
  just after `BI` and returns the image and the position past its `EI`.
- `pdfops.ops` — the operator classes (`MoveTo`, `LineTo`, `CurveTo`,
  `RectOp`, `Stroke`, `Fill`, `TextDraw`, `TextDrawAdjusted`, `FillColor`,
  `StrokeColor`, `InlineImageOp`, …), the values they carry (`Point`, `Rect`,
  `Matrix`, `Rgb`, `Cmyk`, `Gray`, `OtherColor`, `TextSpacing`,
  `InlineImage`, `Name`) and the enums `Winding`, `LineCap`, `LineJoin`,
  `TextMode` and `RenderingIntent`. `format_number` and
  `serialize_primitive` write numbers and primitive values in PDF syntax.
- `pdfops.serialize` — `serialize_ops(ops)` writes operators as
  content-stream bytes, using the short forms `s`, `b`, `b*`, `TD`, `'`, `"`
  and `v` where adjacent operators allow it.
- `pdfops.enc` — stream filters: ASCIIHex (`decode_hex`, `encode_hex`),
  ASCII85 (`decode_85`, `encode_85`), Flate with PNG predictors
  (`flate_decode`, `flate_encode`) and LZW (`lzw_decode`, `lzw_encode`),
  plus PNG row helpers `unfilter` and `filter_row`. `StreamFilter` pairs a
  `FilterKind` with its parameters (`LZWFlateParams`, `DCTDecodeParams`,
  `CCITTFaxDecodeParams`); `decode` and `encode` dispatch on it.
  `set_jpx_decoder` and `set_jbig2_decoder` install external decoders used
  by `jpx_decode` and `jbig2_decode`; only the first installation counts.
- `pdfops.backend` — `Backend` wraps a file's bytes: `read(start, end)`,
  `locate_start_offset()` finds the `%PDF-` header in the first kilobyte and
  `locate_xref_offset()` reads the number after the last `startxref`.
- `pdfops.errors` — `PdfError` and its subclasses (`UnexpectedEof`,
  `NoOpArg`, `ContentReadPastBoundary`, `HexDecodeError`,
  `Ascii85TailError`, `IncorrectPredictorType`, `MissingEntry`,
  `InvalidError`). Every failure in the package is raised as one of these.

## Install

```
pip install .
```

## Examples

Build a content stream from operators:

```python
from pdfops.content import Content
from pdfops.ops import Close, LineTo, MoveTo, Point, Stroke

content = Content.from_ops([
    MoveTo(Point(100, 100)),
    LineTo(Point(100, 200)),
    LineTo(Point(200, 100)),
    Close(),
    Stroke(),
])
print(content.parts[0].decode())   # ends with "s" for close-and-stroke
```

Parse operators from raw bytes:

```python
from pdfops.content import parse_ops

ops = parse_ops(b"q 1 0 0 1 10 20 cm 0 0 m 10 10 l S Q")
```

Decode and encode stream filters:

```python
from pdfops.enc import decode_85, encode_85

encoded = encode_85(b"hello world!")   # b"BOu!rD]j7BEbo80~>"
assert decode_85(encoded) == b"hello world!"
```

## What it does not do

- It does not open PDF files as documents: there is no cross-reference
  table reading, no object resolution, no page tree, no decryption and no
  writing of whole files. `Backend` only locates the header and the
  `startxref` offset.
- `decode` handles ASCIIHex, ASCII85, LZW and Flate only; DCT, CCITT fax,
  RunLength, JPX, JBIG2 and Crypt raise `PdfError`. JPX and JBIG2 data can
  be decoded through `jpx_decode` and `jbig2_decode` once a decoder has been
  installed.
- `serialize_ops` raises `PdfError` for inline images.
- The `sh`, `d0` and `d1` operators are accepted but produce no operator
  when parsed.

## Tests

```
pip install .[test]
pytest
```