"""Long-range redundancy encoding and decoding, integrity digests, LZMA helpers and option parsing."""

__version__ = "0.1.0"