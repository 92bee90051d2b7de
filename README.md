# lrzkit

`lrzkit` finds repetition in data even when the repeats are far apart. A
rolling tag hash runs over a large window. It finds repeated runs of bytes
and turns each chunk of input into literal runs and back-references. A
decoder turns those records back into the original bytes. The package also
has the MD5 and SHA-384/512 digests used for integrity checks, helpers for
raw LZMA data and its five-byte property header, and a parser for the
compressor's command-line options.

It is pure Python and needs nothing outside the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Hashing

```python
from lrzkit.md5 import Md5, md5_buffer, md5_stream
from lrzkit.sha512 import Sha4, sha4

h = Md5(b"hello ")
h.update(b"world")
print(h.hexdigest())
print(md5_buffer(b"hello world").hex())

with open("data.bin", "rb") as stream:
    print(md5_stream(stream).hex())

s = Sha4(False)          # False: SHA-512, True: SHA-384
s.update(b"abc")
print(s.hexdigest())
print(sha4(b"abc", True).hex())
```

`Md5.copy()` returns an independent copy of a computation in progress.
`digest()` on either class does not change its state, so you can feed in
more data afterwards.

## The rzip stage

```python
from lrzkit.rzip import rzip_compress, RzipEncoder, chunk_byte_width

data = b"some text that repeats. " * 1000
result = rzip_compress(data, 7, None)
print(len(result.chunks), result.size, result.md5.hex())
```

`rzip_compress(data, level, window)` returns an `RzipResult` with these fields:

- `chunks`: a list of `RzipChunk`
- `md5`: the MD5 digest of the whole input
- `size`: the input length

With `window=None` the whole input is one chunk. Otherwise the input is split
into chunks of at most `window` bytes. Levels run from 0 to 9 and set the size
of the hash table and how it is used.

Each `RzipChunk` holds these fields:

- `chunk_bytes`: the width in bytes of its match offsets
- `control`: record headers, match distances, an end marker and a CRC-32 of the chunk
- `literals`: the bytes of the literal runs
- `size`: the decoded size

`RzipEncoder(level, window, seed)` gives finer control. `encode_chunk` encodes
one chunk, `compress` encodes a whole buffer, and `stats` holds the counters
so far. The `seed` makes the tag hash repeatable.
`chunk_byte_width(size)` gives the offset width that a chunk of that size
needs.

Matches are found by `lrzkit.matcher.MatchFinder`. Its `search(data)` method
yields `Literal(start, length)` and `Match(position, offset, length)` records,
which cover the input in order, and it keeps counts in `RzipStats`.
`match_len(buf, p0, op, end, last_match)` measures the match between two
positions and returns `(length, reverse)`. The tag hash table, its
`Level` settings and the rolling-tag helpers `full_tag`, `next_tag` and
`make_hash_index` are in `lrzkit.hashtable`.

## Decoding

```python
from lrzkit.rzip import rzip_compress
from lrzkit.runzip import runzip, decode_chunk, RunzipError

result = rzip_compress(b"abc" * 5000, 7, 4096)
decoded = runzip(result.chunks, result.md5)
assert decoded.data == b"abc" * 5000
```

`decode_chunk(chunk, history)` decodes one chunk. Its matches may reach back
into `history`.

`runzip(chunks, expected_md5)` decodes a sequence of chunks and returns the
data and its MD5 digest. When `expected_md5` is given, it checks the result
against that digest. A corrupt stream, a bad chunk CRC or an MD5 mismatch
raises `RunzipError`.

`progress_unit(expected_size)` picks the divisor and the unit suffix (`""`,
`KB`, `MB` or `GB`) for showing progress on an output of that size.

## LZMA helpers

`lrzkit.lzmalib` has these functions:

- `encode_props(lc, lp, pb, dict_size)` packs the five-byte property header.
- `decode_props(props)` unpacks it into `LzmaProps`.
- `lzma_compress(data, level, dict_size, lc, lp, pb, fb, num_threads)` returns `(props, compressed)`. A value of -1 (or 0 for `dict_size`) picks the default.
- `lzma_uncompress(data, props)` decodes raw LZMA data.

Bad parameters or bad data raise `LzmaError`. Its `kind` attribute says what
went wrong.

## Option parsing

`lrzkit.options.parse_args(argv, program)` parses a command line for the
compressor and returns an `Options` dataclass. It takes short and long
options, for example `-d`, `-L 9`, `--window=3`, `-o name` and `-v`.

`program` selects the mode. `lrunzip` decompresses, and `lrzcat` decompresses
to standard output. `lrz` selects the gzip-like option set, which adds
`-1`..`-9`, `-k` and `-c` for stdout.

Help, version and licence requests end parsing and are reported in
`Options.action`. Conflicting or malformed options raise `OptionError`.
Non-fatal conflicts, such as `-v` together with `-q`, are resolved and noted
in `Options.warnings`.

## What the package does not do

- It installs no command. Options can be parsed, but nothing here runs a compression from the command line or prints usage text.
- It does not write or read an archive file format. Chunks stay in memory as `RzipChunk` objects.
- The bzip2, gzip, LZO and ZPAQ back ends are not applied to chunks.
- There is no encryption.