"""cborcodec — a compact binary (CBOR) encoder, decoder and inspector.

Quick start:
    >>> from cborcodec import dumps, loads, inspect
    >>> dumps([1, 2, 3]).hex()
    '83010203'
    >>> loads(bytes.fromhex("63e6b0b4"))
    '水'
    >>> inspect(bytes.fromhex("a201020304"))
    '{1: 2, 3: 4}'

Decoding takes a destination shape.  Without one the Python value is
inferred from the wire; with one, the wire must match it:
    >>> from cborcodec import UINT
    >>> loads(b"\\x20", UINT)
    Traceback (most recent call last):
        ...
    cborcodec._errors.CBORError: expected uint, got negative

Dataclasses encode as records, keyed by lowercased field name by default or
positionally with ``dumps_compact``:
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Point:
    ...     X: int
    ...     Y: int
    >>> dumps(Point(1, 2)).hex()
    'a2617801617902'
    >>> loads(dumps(Point(1, 2)), Point)
    Point(X=1, Y=2)
"""

from __future__ import annotations

from ._constants import (
    MAX_DEPTH,
    TAG_EMBEDDED,
    TAG_EPOCH,
    TAG_REGEX,
    TAG_RFC3339,
    TAG_URI,
)
from ._decoder import Decoder, load, loads
from ._encoder import Encoder, dump, dumps, dumps_compact
from ._errors import (
    ERR_DUP_KEY,
    ERR_EXPECTED_TYPE,
    ERR_INVALID_TAG,
    ERR_LIMIT_DEPTH,
    ERR_MALFORMED_TAG,
    ERR_TOO_LARGE,
    ERR_TRAILING,
    ERR_TRUNCATED,
    ERR_UNASSIGNED_TAG,
    ERR_UNKNOWN_FIELD,
    ERR_UNSUPPORTED_TYPE,
    CBORError,
)
from ._header import ByteSource, read_header, read_magnitude, write_header
from ._inspect import inspect, inspect_stream
from ._shapes import (
    ANY,
    BOOL,
    BYTES,
    DATETIME,
    FLOAT,
    FLOAT32,
    FLOAT64,
    INT,
    REGEX,
    TEXT,
    UINT,
    URI,
    Array,
    Field,
    Map,
    Nullable,
    Record,
    Scalar,
    Shape,
    Tagged,
    shape_for,
)
from ._tags import REGISTRY, lookup
from ._values import Embedded, Float32, Simple

__version__ = "0.3.0"

__all__ = [
    # Encode / decode / inspect
    "dumps",
    "dumps_compact",
    "dump",
    "loads",
    "load",
    "inspect",
    "inspect_stream",
    "Encoder",
    "Decoder",
    # Header codec
    "ByteSource",
    "write_header",
    "read_header",
    "read_magnitude",
    # Tags
    "REGISTRY",
    "lookup",
    "TAG_RFC3339",
    "TAG_EPOCH",
    "TAG_EMBEDDED",
    "TAG_URI",
    "TAG_REGEX",
    # Values
    "Float32",
    "Simple",
    "Embedded",
    # Shapes
    "Shape",
    "Scalar",
    "Array",
    "Map",
    "Record",
    "Field",
    "Nullable",
    "Tagged",
    "shape_for",
    "ANY",
    "INT",
    "UINT",
    "BOOL",
    "TEXT",
    "BYTES",
    "FLOAT",
    "FLOAT32",
    "FLOAT64",
    "DATETIME",
    "URI",
    "REGEX",
    # Limits
    "MAX_DEPTH",
    # Exception
    "CBORError",
    # Error codes
    "ERR_TRUNCATED",
    "ERR_TOO_LARGE",
    "ERR_INVALID_TAG",
    "ERR_UNASSIGNED_TAG",
    "ERR_EXPECTED_TYPE",
    "ERR_UNSUPPORTED_TYPE",
    "ERR_DUP_KEY",
    "ERR_UNKNOWN_FIELD",
    "ERR_MALFORMED_TAG",
    "ERR_LIMIT_DEPTH",
    "ERR_TRAILING",
]
