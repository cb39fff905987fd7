#!/usr/bin/env python3
"""Performance micro-benchmarks for the CosHash pipeline."""
from __future__ import annotations

import argparse
import random
import time
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from coshash.core import derive_seed, initial_state, pad_input
from coshash.digest import cos_hash_many
from coshash.mixer import mix_block
from coshash.numba_coshash import numba_available


def bench_mix_block(trials: int, seed: int) -> None:
    rng = random.Random(seed)
    block = bytes(rng.getrandbits(8) for _ in range(64))
    state = initial_state(derive_seed(block))
    start = time.time()
    for _ in range(trials):
        state, _ = mix_block(state, block)
    elapsed = time.time() - start
    rate = trials / elapsed if elapsed else 0.0
    print(f"mix_block: trials={trials} time={elapsed:.3f}s rate={rate:.2f} blocks/s")


def bench_engine(engine: str, count: int, length: int, seed: int) -> None:
    rng = random.Random(seed)
    msgs = [bytes(rng.getrandbits(8) for _ in range(length)) for _ in range(count)]
    cos_hash_many(msgs[:1], engine=engine)
    start = time.time()
    cos_hash_many(msgs, engine=engine)
    elapsed = time.time() - start
    blocks = count * (len(pad_input(msgs[0])) // 64)
    rate = blocks / elapsed if elapsed else 0.0
    print(f"{engine}: count={count} length={length} time={elapsed:.3f}s rate={rate:.2f} blocks/s")


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--trials", type=int, default=2000)
    ap.add_argument("--count", type=int, default=500)
    ap.add_argument("--length", type=int, default=1024)
    ap.add_argument("--seed", type=int, default=2024)
    args = ap.parse_args()

    bench_mix_block(args.trials, args.seed)
    bench_engine("python", args.count, args.length, args.seed)
    if numba_available():
        bench_engine("numba", args.count, args.length, args.seed)
    else:
        print("numba: skipped (not available)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
