"""
Batch CosHash engine compiled with Numba.

Digests many independent messages in one call. Messages are packed into a
single uint8 buffer plus an offsets array; the kernel walks them one after the
other and writes the final 16-word state of each into a (n, 16) uint32 matrix.

All arithmetic runs on int64 values masked to 32 bits. 32x32 multiplies are
split into 16-bit halves so no intermediate leaves the int64 range.
"""

from __future__ import annotations

import math
import os
from typing import List, Sequence

import numpy as np

try:
    if os.getenv("COSHASH_NO_NUMBA") == "1":
        raise ImportError("COSHASH_NO_NUMBA=1")
    from numba import njit
except Exception:  # pragma: no cover
    njit = None

from .core import BLOCK_SIZE, FMIX_C1, FMIX_C2, GOLDEN32, MASK32, STATE_SIZE
from .mixer import LCG_INC, LCG_MUL, ROT_MASK


def numba_available() -> bool:
    return njit is not None


def pack_messages(messages: Sequence[bytes]) -> tuple[np.ndarray, np.ndarray]:
    offsets = np.zeros(len(messages) + 1, dtype=np.int64)
    if messages:
        offsets[1:] = np.cumsum([len(m) for m in messages], dtype=np.int64)
    buf = np.frombuffer(b"".join(messages), dtype=np.uint8).copy()
    return buf, offsets


if njit is not None:

    @njit(cache=True, inline="always")
    def _mul32(a: int, b: int) -> int:
        lo = a * (b & 0xFFFF)
        hi = ((a * (b >> 16)) & 0xFFFF) << 16
        return (lo + hi) & MASK32

    @njit(cache=True, inline="always")
    def _rl32(x: int, s: int) -> int:
        if s == 0:
            return x
        return ((x << s) | (x >> (32 - s))) & MASK32

    @njit(cache=True, inline="always")
    def _be32(block: np.ndarray, off: int) -> int:
        return (block[off] << 24) | (block[off + 1] << 16) | (block[off + 2] << 8) | block[off + 3]

    @njit(cache=True)
    def _hash_one(buf: np.ndarray, start: int, end: int, out_row: np.ndarray) -> None:
        length = end - start

        seed = length & MASK32
        for p in range(start, end):
            v = np.int64(buf[p])
            seed = seed ^ ((v + GOLDEN32 + (seed << 6) + (seed >> 2)) & MASK32)

        state = np.empty(STATE_SIZE, dtype=np.int64)
        for i in range(STATE_SIZE):
            value = seed ^ _mul32(i, FMIX_C1)
            value ^= value >> 16
            value = _mul32(value, FMIX_C1)
            value ^= value >> 13
            value = _mul32(value, FMIX_C2)
            value ^= value >> 16
            state[i] = value

        block = np.zeros(BLOCK_SIZE, dtype=np.int64)
        perm = np.empty(STATE_SIZE, dtype=np.int64)
        permuted = np.empty(STATE_SIZE, dtype=np.int64)
        nblocks = length // BLOCK_SIZE + 1

        for k in range(nblocks):
            base = start + k * BLOCK_SIZE
            for t in range(BLOCK_SIZE):
                p = base + t
                if p < end:
                    block[t] = np.int64(buf[p])
                elif p == end:
                    block[t] = 0x80
                else:
                    block[t] = 0

            a = _be32(block, 0)
            b = _be32(block, 4)
            c = _be32(block, 8)

            for i in range(STATE_SIZE):
                state[i] = (state[i] + _be32(block, i * 4)) & MASK32

            fa = float(a)
            fc = float(c)
            for i in range(STATE_SIZE):
                temp = state[i] ^ b
                s = math.sin(fa * float(temp))
                mix = np.int64(math.floor(s * fc)) & MASK32
                state[i] = (state[i] + mix) & MASK32

            for i in range(STATE_SIZE):
                perm[i] = i
            counter = a
            for i in range(STATE_SIZE - 1, 0, -1):
                counter = (counter * LCG_MUL + LCG_INC) & MASK32
                j = counter % (i + 1)
                tmp = perm[i]
                perm[i] = perm[j]
                perm[j] = tmp
            for i in range(STATE_SIZE):
                permuted[i] = state[perm[i]]

            for i in range(STATE_SIZE):
                neighbor = permuted[(i + 1) % STATE_SIZE]
                state[i] = permuted[i] ^ _rl32(neighbor, permuted[i] & ROT_MASK)

        for i in range(STATE_SIZE):
            out_row[i] = state[i]

    @njit(cache=True)
    def cos_hash_rows(buf: np.ndarray, offsets: np.ndarray, out: np.ndarray) -> None:
        for k in range(out.shape[0]):
            _hash_one(buf, offsets[k], offsets[k + 1], out[k])


def cos_hash_batch(messages: Sequence[bytes]) -> List[bytes]:
    if njit is None:
        raise RuntimeError("numba is not available (pip install numba) or disabled via COSHASH_NO_NUMBA=1")
    msgs = [bytes(m) for m in messages]
    buf, offsets = pack_messages(msgs)
    out = np.zeros((len(msgs), STATE_SIZE), dtype=np.uint32)
    cos_hash_rows(buf, offsets, out)
    rows = out.astype(">u4")
    return [rows[k].tobytes() for k in range(len(msgs))]
