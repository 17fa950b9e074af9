"""Tag registry — the fixed, read-only table of semantic tags.

    0   date-time as RFC 3339 text        ↔ datetime.datetime
    1   epoch seconds (int or float)      ↔ datetime.datetime
    24  embedded encoded item (bytes)     ↔ Embedded
    32  URI text                          ↔ urllib.parse.SplitResult
    35  regular expression pattern text   ↔ re.Pattern

Tag numbers of 24 and above do not fit in the header's info bits; they
follow as their own 1/2/4/8-byte magnitude, which the header codec resolves
before lookup.  Any number not in the table is ERR_UNASSIGNED_TAG.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import ParseResult, SplitResult, urlsplit

from ._constants import (
    TAG_EMBEDDED,
    TAG_EPOCH,
    TAG_REGEX,
    TAG_RFC3339,
    TAG_URI,
)
from ._errors import (
    ERR_MALFORMED_TAG,
    ERR_UNASSIGNED_TAG,
    ERR_UNSUPPORTED_TYPE,
    CBORError,
)
from ._values import Embedded

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_SECOND = timedelta(seconds=1)


# ── Date-time conversions ────────────────────────────────────
# Naive datetimes are taken to be UTC on the way out.  On the way in an
# RFC 3339 string must carry an offset ("Z" or "+hh:mm").

def _aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_rfc3339(dt: datetime) -> str:
    text = _aware(dt).isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def parse_rfc3339(text: str) -> datetime:
    s = text
    # datetime.fromisoformat only learned "Z" in 3.11.
    if s[-1:] in ("Z", "z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        raise ValueError("date-time without offset: {!r}".format(text))
    return dt


def to_epoch(dt: datetime) -> Any:
    """Seconds since the epoch: int for whole seconds, float otherwise."""
    delta = _aware(dt) - _EPOCH
    if delta.microseconds == 0:
        return delta // _ONE_SECOND
    return delta.total_seconds()


def from_epoch(seconds: Any) -> datetime:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise TypeError("epoch value must be a number")
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def _compile_regex(pattern: Any) -> "re.Pattern[str]":
    if not isinstance(pattern, str):
        raise TypeError("regex pattern must be text")
    return re.compile(pattern)


def _parse_uri(text: Any) -> SplitResult:
    if not isinstance(text, str):
        raise TypeError("URI must be text")
    return urlsplit(text)


def _embedded(data: Any) -> Embedded:
    if not isinstance(data, bytes):
        raise TypeError("embedded item must be a byte string")
    return Embedded(data)


def _parse_datetime(text: Any) -> datetime:
    if not isinstance(text, str):
        raise TypeError("date-time must be text")
    return parse_rfc3339(text)


# ── Registry ─────────────────────────────────────────────────

class TagEntry:
    """One registered tag: its number, a name, and the inner conversion."""

    __slots__ = ("number", "name", "convert")

    def __init__(self, number: int, name: str, convert: Callable[[Any], Any]) -> None:
        self.number = number
        self.name = name
        self.convert = convert

    def to_python(self, inner: Any) -> Any:
        """Convert a decoded inner value; parse failures are ERR_MALFORMED_TAG."""
        try:
            return self.convert(inner)
        except (TypeError, ValueError, OverflowError, OSError, re.error) as e:
            raise CBORError(ERR_MALFORMED_TAG, "tag {} ({}): {}".format(self.number, self.name, e))

    def __repr__(self) -> str:
        return "TagEntry({}, {!r})".format(self.number, self.name)


REGISTRY: Dict[int, TagEntry] = {
    TAG_RFC3339: TagEntry(TAG_RFC3339, "datetime", _parse_datetime),
    TAG_EPOCH: TagEntry(TAG_EPOCH, "epoch", from_epoch),
    TAG_EMBEDDED: TagEntry(TAG_EMBEDDED, "embedded", _embedded),
    TAG_URI: TagEntry(TAG_URI, "uri", _parse_uri),
    TAG_REGEX: TagEntry(TAG_REGEX, "regex", _compile_regex),
}


def lookup(number: int) -> TagEntry:
    entry = REGISTRY.get(number)
    if entry is None:
        raise CBORError(ERR_UNASSIGNED_TAG, "unassigned tag {}".format(number))
    return entry


def tag_for(value: Any, time_tag: int = TAG_RFC3339) -> Optional[Tuple[int, Any]]:
    """Map a semantic value to (tag number, inner value), or None."""
    if isinstance(value, datetime):
        if time_tag == TAG_EPOCH:
            return TAG_EPOCH, to_epoch(value)
        return TAG_RFC3339, format_rfc3339(value)
    if isinstance(value, (SplitResult, ParseResult)):
        return TAG_URI, value.geturl()
    if isinstance(value, re.Pattern):
        if not isinstance(value.pattern, str):
            raise CBORError(ERR_UNSUPPORTED_TYPE, "bytes regex patterns have no tag")
        return TAG_REGEX, value.pattern
    if isinstance(value, Embedded):
        return TAG_EMBEDDED, value.data
    return None
