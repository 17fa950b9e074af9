#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Decoder and inspector fuzzing.
#
# Generates three fuzz categories:
#   A) random byte strings
#   B) valid encodings with a byte flipped, dropped or inserted
#   C) valid encodings cut short at a random offset
#
# For every input, loads() and inspect() must either succeed or raise
# CBORError; anything else is a crash.  Wherever loads() succeeds, inspect()
# must succeed too, and a truncated valid encoding must never decode.
#
# Any failure prints a minimal repro payload and exits non-zero.

import os, sys, random, traceback
from typing import Any, Callable, Dict, Optional

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from cborcodec import CBORError, dumps, inspect, loads

SEED = int(os.environ.get("CBOR_SEED", "4242"))
ROUNDS = int(os.environ.get("CBOR_FUZZ_ROUNDS", "5000"))
MAX_LEN = int(os.environ.get("CBOR_FUZZ_MAX_LEN", "48"))

random.seed(SEED)

def crash(label: str, raw: bytes, ctx: Dict[str, Any]) -> None:
    print("CRASH:", label)
    print("HEX:", raw.hex())
    print("CTX:", ctx)
    raise SystemExit(1)

def outcome(fn: Callable[[bytes], Any], raw: bytes, label: str, rnd: int) -> Optional[str]:
    """None on success, the error code on CBORError, exit on anything else."""
    try:
        fn(raw)
        return None
    except CBORError as e:
        return e.code
    except Exception:
        crash(label, raw, {"round": rnd, "traceback": traceback.format_exc()})
    return None

# --- generators ---

def rand_ascii(nmax: int) -> str:
    n = random.randint(0, nmax)
    return "".join(chr(random.randint(0x20, 0x7E)) for _ in range(n))

def rand_valid() -> bytes:
    def gen(depth: int):
        r = random.random()
        if depth > 4 or r < 0.4:
            return random.choice([
                random.randint(-2**64, 2**64 - 1),
                rand_ascii(12),
                bytes(random.getrandbits(8) for _ in range(random.randint(0, 12))),
                random.random(),
                True, None,
            ])
        if r < 0.7:
            return {rand_ascii(6): gen(depth + 1) for _ in range(random.randint(0, 4))}
        return [gen(depth + 1) for _ in range(random.randint(0, 4))]
    return dumps(gen(0))

def rand_bytes() -> bytes:
    return bytes(random.getrandbits(8) for _ in range(random.randint(1, MAX_LEN)))

def mutate(raw: bytes) -> bytes:
    b = bytearray(raw)
    i = random.randrange(len(b))
    r = random.random()
    if r < 0.5:
        b[i] = random.getrandbits(8)
    elif r < 0.75 and len(b) > 1:
        del b[i]
    else:
        b.insert(i, random.getrandbits(8))
    return bytes(b)

def main() -> int:
    for i in range(ROUNDS):
        r = random.random()

        # C) truncated valid encodings must fail
        if r < 0.20:
            raw = rand_valid()
            cut = raw[:random.randrange(len(raw))]
            if outcome(loads, cut, "C loads", i) is None:
                crash("C truncated input decoded", cut, {"round": i, "full": raw.hex()})
            continue

        # A) random bytes, B) mutated encodings
        raw = rand_bytes() if r < 0.60 else mutate(rand_valid())
        label = "A" if r < 0.60 else "B"
        dec = outcome(loads, raw, label + " loads", i)
        ins = outcome(inspect, raw, label + " inspect", i)
        if dec is None and ins is not None:
            crash(label + " inspect rejected decodable input ({})".format(ins), raw, {"round": i})

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no crashes)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
