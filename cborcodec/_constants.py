"""CBOR wire constants — major types, additional-info markers, simple values,
tag numbers, and safety limits.

Every item starts with one header byte: the top 3 bits are the major type,
the low 5 bits ("additional info") either hold a literal value or say how
many big-endian bytes follow.
"""

from __future__ import annotations

# ── Major types (top 3 bits of the header byte) ──────────────
MAJOR_UNSIGNED: int = 0
MAJOR_NEGATIVE: int = 1
MAJOR_BYTES: int = 2
MAJOR_TEXT: int = 3
MAJOR_ARRAY: int = 4
MAJOR_MAP: int = 5
MAJOR_TAG: int = 6
MAJOR_OTHER: int = 7

MAJOR_NAMES = {
    MAJOR_UNSIGNED: "unsigned",
    MAJOR_NEGATIVE: "negative",
    MAJOR_BYTES: "bytes",
    MAJOR_TEXT: "text",
    MAJOR_ARRAY: "array",
    MAJOR_MAP: "map",
    MAJOR_TAG: "tag",
    MAJOR_OTHER: "simple/float",
}

# ── Additional info ──────────────────────────────────────────
# 0..23 are literal values.  24..27 select a 1/2/4/8-byte magnitude.
# 28..30 are reserved, 31 is indefinite length (never produced, rejected).
INFO_LITERAL_MAX: int = 23
INFO_LEN1: int = 24
INFO_LEN2: int = 25
INFO_LEN4: int = 26
INFO_LEN8: int = 27
INFO_INDEFINITE: int = 31

LENGTH_WIDTHS = {
    INFO_LEN1: 1,
    INFO_LEN2: 2,
    INFO_LEN4: 4,
    INFO_LEN8: 8,
}

# ── Major 7 selectors ────────────────────────────────────────
SIMPLE_FALSE: int = 20
SIMPLE_TRUE: int = 21
SIMPLE_NULL: int = 22
SIMPLE_UNDEFINED: int = 23
SIMPLE_EXTENDED: int = 24   # one following byte holds the simple value
FLOAT16: int = 25
FLOAT32: int = 26
FLOAT64: int = 27

# ── Tag numbers ──────────────────────────────────────────────
TAG_RFC3339: int = 0    # date-time as RFC 3339 text
TAG_EPOCH: int = 1      # date-time as seconds since the epoch (int or float)
TAG_EMBEDDED: int = 24  # byte string holding one encoded CBOR item
TAG_URI: int = 32       # URI text
TAG_REGEX: int = 35     # regular expression pattern text

# ── Ranges and limits ────────────────────────────────────────
UINT64_MAX: int = 2**64 - 1

# Container nesting bound for encode, decode and inspect.  Adversarial
# input can declare arbitrarily deep arrays in very few bytes.
MAX_DEPTH: int = 256
