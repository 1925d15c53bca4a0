"""PDF content stream parsing and serialization, stream filters and file offset helpers."""

__version__ = "0.1.0"
__all__ = ["backend", "content", "enc", "errors", "ops", "serialize"]