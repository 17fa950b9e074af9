"""Wire values with no native Python twin.

Python has one float width and no notion of an unassigned simple value, so
these small wrappers let callers produce and receive them explicitly.
"""

from __future__ import annotations

import struct

from ._errors import ERR_TOO_LARGE, ERR_UNSUPPORTED_TYPE, CBORError


class Float32(float):
    """A float held at single precision.  Encodes as a 4-byte float."""

    __slots__ = ()

    def __new__(cls, value: float = 0.0) -> "Float32":
        try:
            narrowed = struct.unpack(">f", struct.pack(">f", value))[0]
        except OverflowError:
            raise CBORError(ERR_TOO_LARGE, "{!r} does not fit in float32".format(value))
        return super().__new__(cls, narrowed)

    def __repr__(self) -> str:
        return "Float32({})".format(float.__repr__(self))


class Simple:
    """An unassigned major-7 simple value (0..255)."""

    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise CBORError(ERR_UNSUPPORTED_TYPE, "simple value must be an int")
        if value < 0 or value > 0xFF:
            raise CBORError(ERR_TOO_LARGE, "simple value {} out of range".format(value))
        self.value = value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Simple) and other.value == self.value

    def __hash__(self) -> int:
        return hash((Simple, self.value))

    def __repr__(self) -> str:
        return "simple({})".format(self.value)


class Embedded:
    """Tag 24: a byte string that itself holds one encoded CBOR item.

    The payload is kept undecoded; pass ``.data`` to ``loads`` to open it.
    """

    __slots__ = ("data",)

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Embedded) and other.data == self.data

    def __hash__(self) -> int:
        return hash((Embedded, self.data))

    def __repr__(self) -> str:
        return "Embedded({!r})".format(self.data)
