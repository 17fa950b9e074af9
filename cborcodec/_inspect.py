"""Stream inspector — render raw CBOR as text without a destination shape.

    array       [1, 2, 3]
    map         {"a": 1, "b": [2, 3]}
    text        "quoted, escaped"
    bytes       h'00ff'
    integers    decimal
    simple      true / false / null / undefined / simple(n)
    floats      1.5, 3.4028234663852886e+38, nan, inf
    tags        32("http://example.com")

No type checks and no tag registry: any well-formed item renders, unknown
tags included.  Malformed input still fails with ERR_TRUNCATED or
ERR_INVALID_TAG, and nesting is bounded by MAX_DEPTH.
"""

from __future__ import annotations

import struct
from typing import Any, List, TextIO

from ._constants import (
    FLOAT16,
    FLOAT32,
    FLOAT64,
    MAJOR_ARRAY,
    MAJOR_BYTES,
    MAJOR_MAP,
    MAJOR_NEGATIVE,
    MAJOR_OTHER,
    MAJOR_TAG,
    MAJOR_TEXT,
    MAJOR_UNSIGNED,
    MAX_DEPTH,
    SIMPLE_EXTENDED,
    SIMPLE_FALSE,
    SIMPLE_NULL,
    SIMPLE_TRUE,
    SIMPLE_UNDEFINED,
)
from ._errors import ERR_INVALID_TAG, ERR_LIMIT_DEPTH, ERR_TRUNCATED, CBORError
from ._header import ByteSource, read_header, read_magnitude

_LITERALS = {
    SIMPLE_FALSE: "false",
    SIMPLE_TRUE: "true",
    SIMPLE_NULL: "null",
    SIMPLE_UNDEFINED: "undefined",
}

_FLOATS = {
    FLOAT16: (2, ">e"),
    FLOAT32: (4, ">f"),
    FLOAT64: (8, ">d"),
}

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def quote(text: str) -> str:
    """Double-quote text, escaping quotes, backslashes and non-printables."""
    out = ['"']
    for ch in text:
        esc = _ESCAPES.get(ch)
        if esc is not None:
            out.append(esc)
        elif ch.isprintable():
            out.append(ch)
        else:
            cp = ord(ch)
            if cp <= 0xFF:
                out.append("\\x{:02x}".format(cp))
            elif cp <= 0xFFFF:
                out.append("\\u{:04x}".format(cp))
            else:
                out.append("\\U{:08x}".format(cp))
    out.append('"')
    return "".join(out)


def _render(source: ByteSource, out: List[str], depth: int) -> None:
    major, info = read_header(source)

    if major == MAJOR_UNSIGNED:
        out.append(str(read_magnitude(source, info)))
        return
    if major == MAJOR_NEGATIVE:
        out.append(str(-1 - read_magnitude(source, info)))
        return
    if major == MAJOR_TEXT:
        n = read_magnitude(source, info)
        out.append(quote(source.read_exact(n).decode("utf-8", "surrogateescape")))
        return
    if major == MAJOR_BYTES:
        n = read_magnitude(source, info)
        out.append("h'{}'".format(source.read_exact(n).hex()))
        return

    if major != MAJOR_OTHER and depth + 1 > MAX_DEPTH:
        raise CBORError(ERR_LIMIT_DEPTH, "nesting exceeds MAX_DEPTH ({})".format(MAX_DEPTH))

    if major == MAJOR_ARRAY:
        n = read_magnitude(source, info)
        out.append("[")
        for i in range(n):
            if i:
                out.append(", ")
            _render(source, out, depth + 1)
        out.append("]")
        return
    if major == MAJOR_MAP:
        n = read_magnitude(source, info)
        out.append("{")
        for i in range(n):
            if i:
                out.append(", ")
            _render(source, out, depth + 1)
            out.append(": ")
            _render(source, out, depth + 1)
        out.append("}")
        return
    if major == MAJOR_TAG:
        out.append("{}(".format(read_magnitude(source, info)))
        _render(source, out, depth + 1)
        out.append(")")
        return

    # MAJOR_OTHER: simple values and floats
    literal = _LITERALS.get(info)
    if literal is not None:
        out.append(literal)
    elif info < SIMPLE_FALSE:
        out.append("simple({})".format(info))
    elif info == SIMPLE_EXTENDED:
        out.append("simple({})".format(source.read_exact(1)[0]))
    elif info in _FLOATS:
        width, code = _FLOATS[info]
        out.append(repr(float(struct.unpack(code, source.read_exact(width))[0])))
    else:
        raise CBORError(ERR_INVALID_TAG, "reserved simple/float info {}".format(info))


def inspect_item(source: ByteSource) -> str:
    """Render the next item from source."""
    out: List[str] = []
    _render(source, out, 0)
    return "".join(out)


def inspect(data: Any) -> str:
    """Render every item in data, one per line."""
    source = ByteSource(data)
    if source.exhausted():
        raise CBORError(ERR_TRUNCATED, "nothing to inspect")
    lines = []
    while not source.exhausted():
        lines.append(inspect_item(source))
    return "\n".join(lines)


def inspect_stream(fp: Any, out: TextIO) -> int:
    """Write one rendered line per item read from fp; returns the item count."""
    source = ByteSource(fp)
    count = 0
    while not source.exhausted():
        out.write(inspect_item(source))
        out.write("\n")
        count += 1
    return count
