from __future__ import annotations

import random
from typing import Dict, List, Sequence, Tuple

from .core import BLOCK_SIZE, STATE_SIZE, pad_input
from .digest import DIGEST_SIZE, cos_hash, cos_hash_trace
from .mixer import derive_permutation


def bit_diff(a: bytes, b: bytes) -> int:
    return sum(bin(x ^ y).count("1") for x, y in zip(a, b))


def flip_bit(data: bytes, index: int) -> bytes:
    out = bytearray(data)
    out[index // 8] ^= 1 << (index % 8)
    return bytes(out)


def check_padding(data: bytes) -> Tuple[bool, Dict[str, int]]:
    padded = pad_input(data)
    bad: Dict[str, int] = {}
    if len(padded) % BLOCK_SIZE != 0:
        bad["len%64"] = len(padded) % BLOCK_SIZE
    if len(padded) < len(data) + 1:
        bad["len"] = len(padded)
    if padded[: len(data)] != data:
        bad["prefix"] = 1
    if padded[len(data)] != 0x80:
        bad["sentinel"] = padded[len(data)]
    if any(padded[len(data) + 1 :]):
        bad["zero_fill"] = 1
    return not bad, bad


def is_permutation(perm: Sequence[int]) -> bool:
    return sorted(perm) == list(range(STATE_SIZE))


def check_block_permutations(data: bytes) -> Tuple[bool, Dict[str, int]]:
    bad: Dict[str, int] = {}
    padded = pad_input(data)
    for k, off in enumerate(range(0, len(padded), BLOCK_SIZE)):
        perm = derive_permutation(padded[off : off + BLOCK_SIZE])
        if not is_permutation(perm):
            bad[f"block{k}"] = len(set(perm))
    return not bad, bad


def check_trace(data: bytes) -> Tuple[bool, Dict[str, int]]:
    """Per-block checks on the mixer trace: rotation amounts and permutation."""
    digest, traces = cos_hash_trace(data)
    bad: Dict[str, int] = {}
    if len(digest) != DIGEST_SIZE:
        bad["digest_len"] = len(digest)
    if len(traces) != len(pad_input(data)) // BLOCK_SIZE:
        bad["blocks"] = len(traces)
    for k, tr in enumerate(traces):
        rots: List[int] = tr["rot"]  # type: ignore[assignment]
        out_of_range = [r for r in rots if not 0 <= r <= 31]
        if out_of_range:
            bad[f"rot{k}"] = out_of_range[0]
        if not is_permutation(tr["perm"]):  # type: ignore[arg-type]
            bad[f"perm{k}"] = 1
    if digest != cos_hash(data):
        bad["trace_digest"] = 1
    return not bad, bad


def check_determinism(data: bytes) -> bool:
    return cos_hash(data) == cos_hash(data)


def avalanche_stats(
    samples: int,
    rng: random.Random,
    *,
    min_len: int = 1,
    max_len: int = 96,
) -> Dict[str, float]:
    """Flip one random bit of random inputs and count changed digest bits."""
    total = 0
    lo = DIGEST_SIZE * 8
    hi = 0
    for _ in range(samples):
        n = rng.randint(min_len, max_len)
        data = bytes(rng.getrandbits(8) for _ in range(n))
        hd = bit_diff(cos_hash(data), cos_hash(flip_bit(data, rng.randrange(n * 8))))
        total += hd
        lo = min(lo, hd)
        hi = max(hi, hd)
    mean = total / samples if samples else 0.0
    return {
        "mean": mean,
        "min": float(lo),
        "max": float(hi),
        "rate": mean / (DIGEST_SIZE * 8),
    }
