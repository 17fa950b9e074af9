"""Value decoder — CBOR bytes into a caller-supplied destination shape.

Each item's major type must be compatible with the requested shape; a
mismatch is ERR_EXPECTED_TYPE carrying what was wanted and what arrived.
With the ANY shape the Python value is inferred from the wire alone:

    unsigned / negative   → int
    byte string           → bytes (not text: binary payloads must round-trip)
    text string           → str
    array                 → list
    map                   → dict (array keys become tuples)
    tag 0 / 1             → datetime (aware, UTC for tag 1)
    tag 24                → Embedded
    tag 32                → urllib.parse.SplitResult
    tag 35                → re.Pattern
    false / true          → bool
    null / undefined      → None
    simple(n)             → Simple
    float16 / float32     → Float32
    float64               → float

Indefinite-length items (info 31) are rejected with ERR_INVALID_TAG.
"""

from __future__ import annotations

import logging
import struct
from typing import Any, BinaryIO, Dict, Iterator, List, Union

from ._constants import (
    FLOAT16,
    FLOAT32,
    FLOAT64,
    MAJOR_ARRAY,
    MAJOR_BYTES,
    MAJOR_MAP,
    MAJOR_NAMES,
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
from ._errors import (
    ERR_DUP_KEY,
    ERR_INVALID_TAG,
    ERR_LIMIT_DEPTH,
    ERR_TRAILING,
    ERR_UNKNOWN_FIELD,
    CBORError,
    expected_type,
)
from ._header import ByteSource, read_header, read_magnitude
from ._shapes import (
    ANY,
    BOOL,
    BYTES,
    FLOAT,
    INT,
    TEXT,
    UINT,
    Array,
    Map,
    Nullable,
    Record,
    Shape,
    Tagged,
    shape_for,
)
from ._shapes import FLOAT32 as FLOAT32_SHAPE
from ._shapes import FLOAT64 as FLOAT64_SHAPE
from ._tags import lookup
from ._values import Float32, Simple

logger = logging.getLogger(__name__)

_FLOAT_FORMATS = {
    FLOAT16: (2, ">e"),
    FLOAT32: (4, ">f"),
    FLOAT64: (8, ">d"),
}

_OTHER_NAMES = {
    SIMPLE_FALSE: "bool",
    SIMPLE_TRUE: "bool",
    SIMPLE_NULL: "null",
    SIMPLE_UNDEFINED: "undefined",
    FLOAT16: "float16",
    FLOAT32: "float32",
    FLOAT64: "float64",
}


def _describe(major: int, info: int) -> str:
    if major == MAJOR_OTHER:
        return _OTHER_NAMES.get(info, "simple")
    return MAJOR_NAMES[major]


def _check_depth(depth: int) -> None:
    if depth + 1 > MAX_DEPTH:
        raise CBORError(ERR_LIMIT_DEPTH, "nesting exceeds MAX_DEPTH ({})".format(MAX_DEPTH))


def _freeze(value: Any) -> Any:
    """Arrays used as map keys become tuples so they can be hashed."""
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _identity(key: Any) -> Any:
    """Key as the wire sees it: 1, True and 1.0 are three different keys."""
    if isinstance(key, tuple):
        return tuple, tuple(_identity(k) for k in key)
    if isinstance(key, float):
        return type(key), key.hex()
    return type(key), key


def _as_shape(shape: Any) -> Shape:
    return shape if isinstance(shape, Shape) else shape_for(shape)


class Decoder:
    """Decode items one after another from bytes or a binary file object.

    ``strict`` is the default unknown-field policy for records that do not
    set their own: ERR_UNKNOWN_FIELD when true, skip when false.
    """

    def __init__(self, source: Union[bytes, bytearray, memoryview, BinaryIO, ByteSource],
                 strict: bool = True) -> None:
        self.source = source if isinstance(source, ByteSource) else ByteSource(source)
        self.strict = strict

    @property
    def offset(self) -> int:
        return self.source.offset

    def decode(self, shape: Any = ANY) -> Any:
        """Decode the next item into shape (a Shape or a type annotation)."""
        return self._decode(_as_shape(shape), 0)

    def __iter__(self) -> Iterator[Any]:
        while not self.source.exhausted():
            yield self.decode()

    # ── Dispatch ─────────────────────────────────────────────

    def _decode(self, shape: Shape, depth: int) -> Any:
        major, info = read_header(self.source)

        if isinstance(shape, Nullable):
            if major == MAJOR_OTHER and info in (SIMPLE_NULL, SIMPLE_UNDEFINED):
                return None
            shape = shape.inner

        if major == MAJOR_TAG:
            return self._decode_tag(info, shape, depth)
        if isinstance(shape, Tagged):
            raise expected_type(shape.name, _describe(major, info))

        if major == MAJOR_UNSIGNED or major == MAJOR_NEGATIVE:
            return self._decode_int(major, info, shape)
        if major == MAJOR_BYTES or major == MAJOR_TEXT:
            return self._decode_string(major, info, shape)
        if major == MAJOR_ARRAY:
            return self._decode_array(info, shape, depth)
        if major == MAJOR_MAP:
            return self._decode_map(info, shape, depth)
        return self._decode_other(info, shape)

    # ── Integers and strings ─────────────────────────────────

    def _decode_int(self, major: int, info: int, shape: Shape) -> int:
        n = read_magnitude(self.source, info)
        if shape is ANY or shape is INT:
            return n if major == MAJOR_UNSIGNED else -1 - n
        if shape is UINT:
            if major == MAJOR_NEGATIVE:
                raise expected_type(UINT.name, MAJOR_NAMES[major])
            return n
        raise expected_type(shape.name, MAJOR_NAMES[major])

    def _decode_string(self, major: int, info: int, shape: Shape) -> Any:
        n = read_magnitude(self.source, info)
        if major == MAJOR_TEXT:
            if shape is not ANY and shape is not TEXT:
                raise expected_type(shape.name, "text")
            # The wire is trusted: invalid sequences survive as surrogate escapes.
            return self.source.read_exact(n).decode("utf-8", "surrogateescape")
        if shape is not ANY and shape is not BYTES:
            raise expected_type(shape.name, "bytes")
        return self.source.read_exact(n)

    # ── Containers ───────────────────────────────────────────

    def _decode_array(self, info: int, shape: Shape, depth: int) -> Any:
        _check_depth(depth)
        n = read_magnitude(self.source, info)
        if isinstance(shape, Record):
            return self._decode_positional(n, shape, depth)
        if shape is ANY:
            element = ANY
        elif isinstance(shape, Array):
            element = shape.element
            if shape.strict and shape.size is not None and n != shape.size:
                raise expected_type(shape.name, "array[{}]".format(n))
        else:
            raise expected_type(shape.name, "array")
        items: List[Any] = []
        for _ in range(n):
            items.append(self._decode(element, depth + 1))
        return items if shape is ANY else shape.factory(items)

    def _decode_map(self, info: int, shape: Shape, depth: int) -> Any:
        _check_depth(depth)
        n = read_magnitude(self.source, info)
        if isinstance(shape, Record):
            return self._decode_record(n, shape, depth)
        if shape is ANY:
            key_shape = value_shape = ANY
        elif isinstance(shape, Map):
            key_shape, value_shape = shape.key, shape.value
        else:
            raise expected_type(shape.name, "map")

        out: Dict[Any, Any] = {}
        seen = set()
        for _ in range(n):
            key = _freeze(self._decode(key_shape, depth + 1))
            ident = _identity(key)
            try:
                repeated = ident in seen
                merged = key in out
            except TypeError:
                raise expected_type("hashable key", type(key).__name__)
            if repeated:
                raise CBORError(ERR_DUP_KEY, "duplicate key {!r}".format(key))
            if merged:
                # Distinct on the wire, equal as Python dict keys (1 and true).
                raise expected_type("distinct dict key",
                                    "key {!r} colliding with an earlier key".format(key))
            seen.add(ident)
            out[key] = self._decode(value_shape, depth + 1)
        return out

    def _strict_for(self, shape: Record) -> bool:
        return self.strict if shape.strict is None else shape.strict

    def _decode_record(self, n: int, shape: Record, depth: int) -> Any:
        table = shape.table
        strict = self._strict_for(shape)
        seen = set()
        values: Dict[str, Any] = {}
        for _ in range(n):
            key = self._decode(TEXT, depth + 1)
            if key in seen:
                raise CBORError(ERR_DUP_KEY, "duplicate field {!r}".format(key))
            seen.add(key)
            field = table.get(key)
            if field is None:
                if strict:
                    raise CBORError(ERR_UNKNOWN_FIELD,
                                    "unknown field {!r} for {}".format(key, shape.cls.__name__))
                logger.debug("skipping unknown field %r for %s", key, shape.cls.__name__)
                self._skip(depth + 1)
                continue
            values[field.attr] = self._decode(field.shape, depth + 1)
        return shape.build(values)

    def _decode_positional(self, n: int, shape: Record, depth: int) -> Any:
        fields = shape.active_fields
        if n > len(fields) and self._strict_for(shape):
            raise CBORError(ERR_UNKNOWN_FIELD, "{} values for {} fields of {}".format(
                n, len(fields), shape.cls.__name__))
        values: Dict[str, Any] = {}
        for i in range(n):
            if i < len(fields):
                values[fields[i].attr] = self._decode(fields[i].shape, depth + 1)
            else:
                self._skip(depth + 1)
        return shape.build(values)

    # ── Tags ─────────────────────────────────────────────────

    def _decode_tag(self, info: int, shape: Shape, depth: int) -> Any:
        _check_depth(depth)
        number = read_magnitude(self.source, info)
        entry = lookup(number)
        if isinstance(shape, Tagged):
            if number not in shape.numbers:
                raise expected_type(shape.name, "tag {}".format(number))
        elif shape is not ANY:
            raise expected_type(shape.name, "tag {}".format(number))
        inner = self._decode(ANY, depth + 1)
        return entry.to_python(inner)

    # ── Simple values and floats ─────────────────────────────

    def _decode_other(self, info: int, shape: Shape) -> Any:
        if info == SIMPLE_FALSE or info == SIMPLE_TRUE:
            if shape is not ANY and shape is not BOOL:
                raise expected_type(shape.name, "bool")
            return info == SIMPLE_TRUE

        if info == SIMPLE_NULL or info == SIMPLE_UNDEFINED:
            if shape is not ANY:
                raise expected_type(shape.name, _OTHER_NAMES[info])
            return None

        fmt = _FLOAT_FORMATS.get(info)
        if fmt is not None:
            width, code = fmt
            value = struct.unpack(code, self.source.read_exact(width))[0]
            if shape is ANY:
                return float(value) if info == FLOAT64 else Float32(value)
            if shape is FLOAT:
                return float(value)
            if shape is FLOAT32_SHAPE and info == FLOAT32:
                return Float32(value)
            if shape is FLOAT64_SHAPE and info == FLOAT64:
                return float(value)
            raise expected_type(shape.name, _OTHER_NAMES[info])

        if info < SIMPLE_FALSE:
            number = info
        elif info == SIMPLE_EXTENDED:
            number = self.source.read_exact(1)[0]
        else:
            raise CBORError(ERR_INVALID_TAG, "reserved simple/float info {}".format(info))
        if shape is ANY:
            return Simple(number)
        if shape is INT or shape is UINT:
            return number
        raise expected_type(shape.name, "simple")

    # ── Skipping ─────────────────────────────────────────────

    def _skip(self, depth: int) -> None:
        """Consume one well-formed item without interpreting it."""
        _check_depth(depth)
        major, info = read_header(self.source)
        if major == MAJOR_OTHER:
            if info < SIMPLE_EXTENDED:
                return
            if info == SIMPLE_EXTENDED:
                self.source.read_exact(1)
                return
            fmt = _FLOAT_FORMATS.get(info)
            if fmt is None:
                raise CBORError(ERR_INVALID_TAG, "reserved simple/float info {}".format(info))
            self.source.read_exact(fmt[0])
            return
        n = read_magnitude(self.source, info)
        if major == MAJOR_BYTES or major == MAJOR_TEXT:
            self.source.read_exact(n)
        elif major == MAJOR_ARRAY:
            for _ in range(n):
                self._skip(depth + 1)
        elif major == MAJOR_MAP:
            for _ in range(2 * n):
                self._skip(depth + 1)
        elif major == MAJOR_TAG:
            self._skip(depth + 1)


# ── Module API ───────────────────────────────────────────────

def loads(data: Union[bytes, bytearray, memoryview], shape: Any = ANY,
          strict: bool = True) -> Any:
    """Decode exactly one item from data; trailing bytes are an error."""
    dec = Decoder(data, strict=strict)
    value = dec.decode(shape)
    if not dec.source.exhausted():
        raise CBORError(ERR_TRAILING, "trailing bytes after root item at offset {}".format(
            dec.offset))
    return value


def load(fp: BinaryIO, shape: Any = ANY, strict: bool = True) -> Any:
    """Decode the next item from a binary file object."""
    return Decoder(fp, strict=strict).decode(shape)
