"""cborcodec command-line interface.

Usage:
    python3 -m cborcodec inspect 83010203
    python3 -m cborcodec inspect --input item.cbor
    echo '{"a": [1, 2]}' | python3 -m cborcodec encode
    python3 -m cborcodec decode a26161016162820203
    python3 -m cborcodec version
"""

from __future__ import annotations

import argparse
import binascii
import json
import sys
from typing import Any, List, Optional

from . import (
    CBORError,
    __version__,
    dumps,
    inspect,
    loads,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cborcodec",
        description="cborcodec — encode, decode and inspect CBOR items",
    )
    sub = parser.add_subparsers(dest="command")

    # ── inspect ──
    insp_p = sub.add_parser("inspect", help="Render CBOR as readable text")
    insp_p.add_argument("hex", nargs="?", help="Hex-encoded item (default: stdin)")
    insp_p.add_argument("--input", "-i", metavar="FILE",
                        help="Read raw CBOR bytes from FILE")

    # ── encode ──
    enc_p = sub.add_parser("encode", help="Encode JSON to hex CBOR")
    enc_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read JSON from FILE instead of stdin")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Decode hex CBOR to JSON")
    dec_p.add_argument("hex", nargs="?", help="Hex-encoded item (default: stdin)")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("cborcodec: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _read_hex(text: Optional[str]) -> bytes:
    raw = text if text is not None else _read_input(None).decode("ascii")
    return binascii.unhexlify("".join(raw.split()))


def _json_default(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.hex()
    return repr(value)


def _json_key(key: Any) -> Any:
    if key is None or isinstance(key, (str, int, float)):
        return key
    if isinstance(key, bytes):
        return key.hex()
    return repr(key)


def _jsonable(value: Any) -> Any:
    """Rewrite map keys JSON cannot hold; json's ``default`` never sees keys."""
    if isinstance(value, dict):
        return {_json_key(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def _cmd_inspect(args: argparse.Namespace) -> None:
    data = _read_input(args.input) if args.input else _read_hex(args.hex)
    print(inspect(data))


def _cmd_encode(args: argparse.Namespace) -> None:
    value = json.loads(_read_input(args.input))
    print(dumps(value).hex())


def _cmd_decode(args: argparse.Namespace) -> None:
    value = loads(_read_hex(args.hex))
    print(json.dumps(_jsonable(value), ensure_ascii=False, default=_json_default))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"cborcodec {__version__}")
        return

    try:
        if args.command == "inspect":
            _cmd_inspect(args)
        elif args.command == "encode":
            _cmd_encode(args)
        elif args.command == "decode":
            _cmd_decode(args)
    except CBORError as e:
        print(f"cborcodec: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except (binascii.Error, UnicodeDecodeError) as e:
        print(f"cborcodec: bad hex input: {e}", file=sys.stderr)
        sys.exit(2)
    except json.JSONDecodeError as e:
        print(f"cborcodec: JSON parse error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
