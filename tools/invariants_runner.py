#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Codec invariants (property tests) over randomly generated values.
#
# This runner:
# - generates random values (ints, floats, text, bytes, arrays, maps, tags, records)
# - checks that encoding is stable and decoding gives the value back
# - checks that decode -> encode reproduces the input bytes
# - checks that the inspector accepts everything the encoder produces
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from cborcodec import (
    TAG_EPOCH, TAG_RFC3339, CBORError, Float32, Simple,
    dumps, dumps_compact, inspect, loads,
)

SEED = int(os.environ.get("CBOR_SEED", "1337"))
TRIALS = int(os.environ.get("CBOR_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("CBOR_GEN_MAX_DEPTH", "6"))
MAX_KEYS = int(os.environ.get("CBOR_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("CBOR_GEN_MAX_LIST", "6"))
MAX_STR = int(os.environ.get("CBOR_GEN_MAX_STR", "24"))
MAX_BYTES = int(os.environ.get("CBOR_GEN_MAX_BYTES", "32"))

random.seed(SEED)

# Header width by magnitude, the shortest form the encoder must pick.
WIDTHS = [(23, 1), (0xFF, 2), (0xFFFF, 3), (0xFFFFFFFF, 5), (2**64 - 1, 9)]


@dataclass
class Sample:
    name: str = ""
    count: int = 0
    ratio: float = 0.0
    blob: bytes = b""
    items: List[int] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)


def rand_utf8_string() -> str:
    # Scalars only: surrogates would not survive as text.
    out = []
    n = random.randint(0, MAX_STR)
    for _ in range(n):
        r = random.random()
        if r < 0.70:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.85:
            out.append(chr(random.randint(0xA0, 0xFF)))
        elif r < 0.95:
            out.append(chr(random.randint(0x0100, 0xD7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_bytes() -> bytes:
    return bytes(random.getrandbits(8) for _ in range(random.randint(0, MAX_BYTES)))

def rand_int() -> int:
    # Bias towards the width boundaries.
    limit, _ = random.choice(WIDTHS)
    n = random.choice([0, limit, limit - 1, random.randint(0, limit)])
    n = max(n, 0)
    return n if random.random() < 0.5 else -1 - n

def rand_float() -> float:
    r = random.random()
    if r < 0.3:
        return Float32(random.uniform(-1e30, 1e30))
    if r < 0.4:
        return random.choice([0.0, -0.0, float("inf"), float("-inf")])
    return random.uniform(-1e300, 1e300) * random.random()

def rand_datetime() -> datetime:
    seconds = random.randint(0, 4102444800)
    return datetime.fromtimestamp(seconds, tz=timezone.utc)

def rand_scalar() -> Any:
    r = random.random()
    if r < 0.30:
        return rand_int()
    if r < 0.50:
        return rand_utf8_string()
    if r < 0.60:
        return rand_bytes()
    if r < 0.70:
        return rand_float()
    if r < 0.78:
        return random.choice([True, False, None])
    if r < 0.85:
        return Simple(random.choice(list(range(0, 20)) + list(range(32, 256))))
    return rand_datetime()

def rand_key() -> Any:
    return rand_utf8_string() if random.random() < 0.7 else rand_int()

def gen_value(depth: int) -> Any:
    if depth >= MAX_GEN_DEPTH:
        return rand_scalar()
    r = random.random()
    if r < 0.35:
        d: Dict[Any, Any] = {}
        for _ in range(random.randint(0, MAX_KEYS)):
            d[rand_key()] = gen_value(depth + 1)
        return d
    if r < 0.65:
        return [gen_value(depth + 1) for _ in range(random.randint(0, MAX_LIST))]
    return rand_scalar()

def gen_sample() -> Sample:
    return Sample(
        name=rand_utf8_string(),
        count=rand_int(),
        ratio=float(rand_float()),
        blob=rand_bytes(),
        items=[rand_int() for _ in range(random.randint(0, MAX_LIST))],
        labels={rand_utf8_string(): rand_utf8_string() for _ in range(random.randint(0, MAX_KEYS))},
    )

def expected_width(n: int) -> int:
    m = n if n >= 0 else -1 - n
    for limit, width in WIDTHS:
        if m <= limit:
            return width
    raise AssertionError("unreachable")

def fail(label: str, value: Any, raw: bytes = b"") -> int:
    print("INVARIANT FAIL:", label)
    print("VALUE:", repr(value)[:2000])
    if raw:
        print("HEX:", raw.hex()[:2000])
    return 1

def main() -> int:
    for t in range(TRIALS):
        v = gen_value(0)
        time_tag = TAG_EPOCH if random.random() < 0.5 else TAG_RFC3339

        # (1) Encode stability (encode twice same bytes)
        try:
            b1 = dumps(v, time_tag=time_tag)
        except CBORError as e:
            return fail("encode raised {}".format(e.code), v)
        if dumps(v, time_tag=time_tag) != b1:
            return fail("encode stability", v, b1)

        # (2) Round trip
        back = loads(b1)
        if back != v:
            return fail("round trip", v, b1)

        # (3) Re-encode reproduces the bytes
        if dumps(back, time_tag=time_tag) != b1:
            return fail("re-encode", v, b1)

        # (4) Inspector accepts it, one line per item
        text = inspect(b1)
        if "\n" in text:
            return fail("inspect produced more than one line", v, b1)

        # (5) Integer headers are minimal
        n = rand_int()
        if len(dumps(n)) != expected_width(n):
            return fail("minimal header width", n, dumps(n))

        # (6) Records, verbose and positional
        s = gen_sample()
        for raw in (dumps(s), dumps_compact(s)):
            if loads(raw, Sample) != s:
                return fail("record round trip (trial {})".format(t), s, raw)

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
