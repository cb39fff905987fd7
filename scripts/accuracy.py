#!/usr/bin/env python3
"""Accuracy checks for the CosHash pipeline and the batch engine."""
from __future__ import annotations

import argparse
import random
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from coshash.digest import cos_hash, cos_hash_many
from coshash.numba_coshash import numba_available
from coshash.verify import avalanche_stats, check_padding, check_trace


def check_properties(samples: int, rng: random.Random) -> bool:
    fails = 0
    for _ in range(samples):
        m = bytes(rng.getrandbits(8) for _ in range(rng.randint(0, 300)))
        ok_pad, bad_pad = check_padding(m)
        ok_tr, bad_tr = check_trace(m)
        if not (ok_pad and ok_tr):
            print(f"property failure: len={len(m)} padding={bad_pad} trace={bad_tr}")
            fails += 1
    print(f"properties: {'PASS' if fails == 0 else 'FAIL'} samples={samples} fails={fails}")
    return fails == 0


def check_engine_parity(samples: int, rng: random.Random) -> bool:
    if not numba_available():
        print("engine_parity: SKIP (numba not available)")
        return True
    msgs = [bytes(rng.getrandbits(8) for _ in range(rng.randint(0, 300))) for _ in range(samples)]
    ours = cos_hash_many(msgs, engine="numba")
    ref = [cos_hash(m) for m in msgs]
    mismatches = sum(1 for x, y in zip(ours, ref) if x != y)
    print(f"engine_parity: {'PASS' if mismatches == 0 else 'FAIL'} mismatches={mismatches}")
    return mismatches == 0


def check_avalanche(samples: int, rng: random.Random) -> bool:
    stats = avalanche_stats(samples, rng)
    ok = stats["rate"] > 0.25
    print(
        f"avalanche: {'PASS' if ok else 'FAIL'} mean={stats['mean']:.1f} "
        f"min={stats['min']:.0f} max={stats['max']:.0f} rate={stats['rate']:.3f}"
    )
    return ok


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--samples", type=int, default=200)
    ap.add_argument("--seed", type=int, default=2024)
    args = ap.parse_args()

    rng = random.Random(args.seed)
    ok = check_properties(args.samples, rng)
    ok = check_engine_parity(args.samples, rng) and ok
    ok = check_avalanche(args.samples, rng) and ok
    print("accuracy:", "PASS" if ok else "FAIL")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
