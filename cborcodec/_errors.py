"""CBOR error codes and the exception class.

Every failure the codec reports is a ``CBORError`` whose ``.code`` is one of
the ERR_* strings below.  Tests and callers compare codes, not messages.
"""

from __future__ import annotations

from typing import Optional

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly, stable across releases.

ERR_TRUNCATED: str = "ERR_TRUNCATED"                # source ran out mid-item
ERR_TOO_LARGE: str = "ERR_TOO_LARGE"                # magnitude beyond 64 bits
ERR_INVALID_TAG: str = "ERR_INVALID_TAG"            # reserved/indefinite header
ERR_UNASSIGNED_TAG: str = "ERR_UNASSIGNED_TAG"      # tag number not registered
ERR_EXPECTED_TYPE: str = "ERR_EXPECTED_TYPE"        # shape vs wire mismatch
ERR_UNSUPPORTED_TYPE: str = "ERR_UNSUPPORTED_TYPE"  # no wire mapping for value
ERR_DUP_KEY: str = "ERR_DUP_KEY"                    # repeated map/record key
ERR_UNKNOWN_FIELD: str = "ERR_UNKNOWN_FIELD"        # strict record decode
ERR_MALFORMED_TAG: str = "ERR_MALFORMED_TAG"        # tag content fails to parse
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"            # exceeds MAX_DEPTH
ERR_TRAILING: str = "ERR_TRAILING"                  # bytes after the root item

ALL_CODES = (
    ERR_TRUNCATED,
    ERR_TOO_LARGE,
    ERR_INVALID_TAG,
    ERR_UNASSIGNED_TAG,
    ERR_EXPECTED_TYPE,
    ERR_UNSUPPORTED_TYPE,
    ERR_DUP_KEY,
    ERR_UNKNOWN_FIELD,
    ERR_MALFORMED_TAG,
    ERR_LIMIT_DEPTH,
    ERR_TRAILING,
)


class CBORError(ValueError):
    """Exception for CBOR encode/decode errors.

    The `.code` attribute is one of the ERR_* strings above.  Type mismatches
    additionally carry `.wanted` and `.got`.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code
        self.wanted: Optional[str] = None
        self.got: Optional[str] = None


def expected_type(wanted: str, got: str) -> CBORError:
    err = CBORError(ERR_EXPECTED_TYPE, "expected {}, got {}".format(wanted, got))
    err.wanted = wanted
    err.got = got
    return err
