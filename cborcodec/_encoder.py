"""Value encoder — native Python values to CBOR bytes.

Dispatch is on the kind of the value (isinstance), never on a type name:

    bool                  → simple false/true
    None                  → simple undefined
    int                   → unsigned, or negative as -1 - value
    Float32 / float       → 4-byte / 8-byte IEEE 754 (no shortest-float search)
    str                   → text string (byte string if not valid UTF-8)
    bytes-like            → byte string
    Simple                → simple value
    datetime, URI, regex  → tag + inner item, see _tags
    list / tuple          → array
    dict                  → map, insertion order, never sorted
    dataclass instance    → record: map keyed by field name, or array (compact)
    obj.__cbor__()        → whatever that returns
"""

from __future__ import annotations

import dataclasses
import logging
import struct
from typing import Any, BinaryIO, Dict, Optional

from ._constants import (
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
    SIMPLE_TRUE,
    SIMPLE_UNDEFINED,
    TAG_EPOCH,
    TAG_RFC3339,
)
from ._errors import (
    ERR_LIMIT_DEPTH,
    ERR_UNASSIGNED_TAG,
    ERR_UNSUPPORTED_TYPE,
    CBORError,
)
from ._header import write_header
from ._shapes import Record
from ._tags import tag_for
from ._values import Float32, Simple

logger = logging.getLogger(__name__)

_OTHER = MAJOR_OTHER << 5


class Encoder:
    """Encode values one after another.

    ``compact`` selects the positional (array) form for records.
    ``time_tag`` is TAG_RFC3339 (text) or TAG_EPOCH (seconds) for datetimes.

    When constructed with a file object, ``encode`` writes each item to it.
    The first failure is remembered and raised again by every later call, so
    a half-written stream is never silently extended.
    """

    def __init__(self, fp: Optional[BinaryIO] = None, compact: bool = False,
                 time_tag: int = TAG_RFC3339) -> None:
        if time_tag not in (TAG_RFC3339, TAG_EPOCH):
            raise CBORError(ERR_UNASSIGNED_TAG,
                            "time tag must be {} or {}".format(TAG_RFC3339, TAG_EPOCH))
        self.fp = fp
        self.compact = compact
        self.time_tag = time_tag
        self._records: Dict[type, Record] = {}
        self._err: Optional[CBORError] = None

    # ── Public ───────────────────────────────────────────────

    def encode(self, value: Any) -> None:
        """Encode one item and write it to the underlying file object."""
        if self.fp is None:
            raise ValueError("Encoder.encode needs a file object; use encode_into")
        if self._err is not None:
            raise self._err
        buf = bytearray()
        try:
            self.encode_into(buf, value)
        except CBORError as e:
            logger.debug("encoder stopped: %s", e)
            self._err = e
            raise
        self.fp.write(bytes(buf))

    def encode_into(self, sink: bytearray, value: Any) -> None:
        """Append the encoding of value to sink.  Not rolled back on error."""
        self._encode(value, sink, 0)

    # ── Dispatch ─────────────────────────────────────────────

    def _encode(self, value: Any, sink: bytearray, depth: int) -> None:
        # bool before int: isinstance(True, int) is True.
        if isinstance(value, bool):
            sink.append(_OTHER | (SIMPLE_TRUE if value else SIMPLE_FALSE))
            return
        if value is None:
            sink.append(_OTHER | SIMPLE_UNDEFINED)
            return
        if isinstance(value, int):
            if value >= 0:
                write_header(sink, MAJOR_UNSIGNED, value)
            else:
                write_header(sink, MAJOR_NEGATIVE, -1 - value)
            return
        # Float32 before float, it is a subclass.
        if isinstance(value, Float32):
            sink.append(_OTHER | FLOAT32)
            sink += struct.pack(">f", value)
            return
        if isinstance(value, float):
            sink.append(_OTHER | FLOAT64)
            sink += struct.pack(">d", value)
            return
        if isinstance(value, str):
            self._encode_text(value, sink)
            return
        if isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            write_header(sink, MAJOR_BYTES, len(raw))
            sink += raw
            return
        if isinstance(value, Simple):
            if value.value < SIMPLE_FALSE:
                sink.append(_OTHER | value.value)
            else:
                sink += bytes((_OTHER | SIMPLE_EXTENDED, value.value))
            return

        # Tagged values come before tuples: SplitResult is a namedtuple.
        tagged = tag_for(value, self.time_tag)
        if tagged is not None:
            number, inner = tagged
            write_header(sink, MAJOR_TAG, number)
            self._encode(inner, sink, depth)
            return

        if depth + 1 > MAX_DEPTH:
            raise CBORError(ERR_LIMIT_DEPTH, "nesting exceeds MAX_DEPTH ({})".format(MAX_DEPTH))

        if isinstance(value, (list, tuple)):
            write_header(sink, MAJOR_ARRAY, len(value))
            for item in value:
                self._encode(item, sink, depth + 1)
            return
        if isinstance(value, dict):
            write_header(sink, MAJOR_MAP, len(value))
            for k, v in value.items():
                self._encode(k, sink, depth + 1)
                self._encode(v, sink, depth + 1)
            return
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            self._encode_record(value, sink, depth)
            return

        hook = getattr(type(value), "__cbor__", None)
        if hook is not None:
            self._encode(hook(value), sink, depth + 1)
            return

        raise CBORError(ERR_UNSUPPORTED_TYPE,
                        "unsupported type: {}".format(type(value).__name__))

    def _encode_text(self, value: str, sink: bytearray) -> None:
        try:
            raw = value.encode("utf-8")
            major = MAJOR_TEXT
        except UnicodeEncodeError:
            # Lone surrogates: not valid UTF-8, so the bytes go out untyped.
            raw = value.encode("utf-8", "surrogateescape" if _escapable(value) else "surrogatepass")
            major = MAJOR_BYTES
        write_header(sink, major, len(raw))
        sink += raw

    def _encode_record(self, value: Any, sink: bytearray, depth: int) -> None:
        rec = self._records.get(type(value))
        if rec is None:
            rec = self._records[type(value)] = Record(type(value))
        fields = rec.active_fields
        write_header(sink, MAJOR_ARRAY if self.compact else MAJOR_MAP, len(fields))
        for f in fields:
            if not self.compact:
                self._encode_text(f.name, sink)
            self._encode(getattr(value, f.attr), sink, depth + 1)


def _escapable(value: str) -> bool:
    """True when every surrogate is a surrogateescape byte (U+DC80..U+DCFF)."""
    for ch in value:
        cp = ord(ch)
        if 0xD800 <= cp <= 0xDFFF and not 0xDC80 <= cp <= 0xDCFF:
            return False
    return True


# ── Module API ───────────────────────────────────────────────

def dumps(value: Any, compact: bool = False, time_tag: int = TAG_RFC3339) -> bytes:
    """Encode value to bytes."""
    buf = bytearray()
    Encoder(compact=compact, time_tag=time_tag).encode_into(buf, value)
    return bytes(buf)


def dumps_compact(value: Any, time_tag: int = TAG_RFC3339) -> bytes:
    """Encode value with records as positional arrays."""
    return dumps(value, compact=True, time_tag=time_tag)


def dump(value: Any, fp: BinaryIO, compact: bool = False, time_tag: int = TAG_RFC3339) -> None:
    """Encode value and write it to a binary file object."""
    fp.write(dumps(value, compact=compact, time_tag=time_tag))
