"""Header codec — the (major type, additional info, magnitude) triple that
starts every CBOR item.

Encoding always picks the minimal width: a literal in the header byte for
values below 24, else the smallest of 1/2/4/8 trailing big-endian bytes that
holds the value.  Decoding accepts any width and never re-minimizes.
"""

from __future__ import annotations

import struct
from typing import Any, Tuple

from ._constants import (
    INFO_INDEFINITE,
    INFO_LEN1,
    INFO_LEN2,
    INFO_LEN4,
    INFO_LEN8,
    INFO_LITERAL_MAX,
    LENGTH_WIDTHS,
    UINT64_MAX,
)
from ._errors import ERR_INVALID_TAG, ERR_TOO_LARGE, ERR_TRUNCATED, CBORError


# ── Byte source ──────────────────────────────────────────────

class ByteSource:
    """Read-exact view over a bytes-like buffer or a binary file object.

    File objects only need ``read(n)``; short reads are retried until the
    requested count arrives or the object reports end of stream.
    """

    __slots__ = ("_buf", "_off", "_fp", "_pending")

    def __init__(self, data: Any) -> None:
        if isinstance(data, (bytes, bytearray, memoryview)):
            self._buf = bytes(data)
            self._fp = None
        else:
            self._buf = b""
            self._fp = data
        self._off = 0
        self._pending = b""

    @property
    def offset(self) -> int:
        """Number of bytes consumed so far."""
        return self._off

    def read_exact(self, n: int) -> bytes:
        if n == 0:
            return b""
        if self._fp is None:
            end = self._off + n
            if end > len(self._buf):
                raise CBORError(ERR_TRUNCATED, "need {} bytes at offset {}, have {}".format(
                    n, self._off, len(self._buf) - self._off))
            out = self._buf[self._off:end]
            self._off = end
            return out

        chunks = [self._pending]
        have = len(self._pending)
        self._pending = b""
        while have < n:
            chunk = self._fp.read(n - have)
            if not chunk:
                raise CBORError(ERR_TRUNCATED, "need {} bytes at offset {}, have {}".format(
                    n, self._off, have))
            chunks.append(chunk)
            have += len(chunk)
        self._off += n
        return b"".join(chunks)

    def exhausted(self) -> bool:
        """True when no byte remains.  Peeks one byte on file sources."""
        if self._fp is None:
            return self._off >= len(self._buf)
        if self._pending:
            return False
        self._pending = self._fp.read(1) or b""
        return not self._pending


# ── Encode ───────────────────────────────────────────────────

def write_header(sink: bytearray, major: int, magnitude: int) -> None:
    """Append the minimal header for (major, magnitude) to sink."""
    lead = major << 5
    if magnitude < 0 or magnitude > UINT64_MAX:
        raise CBORError(ERR_TOO_LARGE, "magnitude {} does not fit in 64 bits".format(magnitude))
    if magnitude <= INFO_LITERAL_MAX:
        sink.append(lead | magnitude)
    elif magnitude <= 0xFF:
        sink += struct.pack(">BB", lead | INFO_LEN1, magnitude)
    elif magnitude <= 0xFFFF:
        sink += struct.pack(">BH", lead | INFO_LEN2, magnitude)
    elif magnitude <= 0xFFFFFFFF:
        sink += struct.pack(">BI", lead | INFO_LEN4, magnitude)
    else:
        sink += struct.pack(">BQ", lead | INFO_LEN8, magnitude)


# ── Decode ───────────────────────────────────────────────────

def read_header(source: ByteSource) -> Tuple[int, int]:
    """Read one header byte and split it into (major, info)."""
    b = source.read_exact(1)[0]
    return b >> 5, b & 0x1F


def read_magnitude(source: ByteSource, info: int) -> int:
    """Resolve the magnitude selected by info: a literal or 1/2/4/8 bytes."""
    if info <= INFO_LITERAL_MAX:
        return info
    width = LENGTH_WIDTHS.get(info)
    if width is None:
        if info == INFO_INDEFINITE:
            raise CBORError(ERR_INVALID_TAG, "indefinite-length items are not supported")
        raise CBORError(ERR_INVALID_TAG, "reserved additional info {}".format(info))
    return int.from_bytes(source.read_exact(width), "big")
