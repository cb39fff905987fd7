from __future__ import annotations

import math
from typing import Dict, List, Tuple

from .core import BLOCK_SIZE, MASK32, STATE_SIZE, be32_at, bytes_to_words_be, rl, u32

# Parameter fallbacks for blocks shorter than 4/8/12 bytes
PARAM_A_DEFAULT = 0x1F1F1F1F
PARAM_B_DEFAULT = 0x3C3C3C3C
PARAM_C_DEFAULT = 0x7A7A7A7A

# Numerical Recipes LCG driving the permutation shuffle
LCG_MUL = 1664525
LCG_INC = 1013904223

ROT_MASK = 0x1F


def derive_params(block: bytes) -> Tuple[int, int, int]:
    a = be32_at(block, 0) if len(block) >= 4 else PARAM_A_DEFAULT
    b = be32_at(block, 4) if len(block) >= 8 else PARAM_B_DEFAULT
    c = be32_at(block, 8) if len(block) >= 12 else PARAM_C_DEFAULT
    return a, b, c


def absorb_words(state: List[int], block: bytes) -> None:
    if len(block) == BLOCK_SIZE:
        for i, w in enumerate(bytes_to_words_be(block)):
            state[i] = u32(state[i] + w)
        return
    for i in range(STATE_SIZE):
        off = i * 4
        if off + 4 <= len(block):
            segment = be32_at(block, off)
        else:
            # short block: whatever bytes remain, packed big-endian
            segment = int.from_bytes(block[off:], "big") if off < len(block) else 0
        state[i] = u32(state[i] + segment)


def nonlinear_mix(state: List[int], a: int, b: int, c: int) -> None:
    fa = float(a)
    fc = float(c)
    for i in range(STATE_SIZE):
        temp = state[i] ^ b
        s = math.sin(fa * float(temp))
        mix = math.floor(s * fc) & MASK32
        state[i] = u32(state[i] + mix)


def derive_permutation(block: bytes) -> List[int]:
    """
    Per-block permutation of the 16 state positions.

    Reverse Fisher-Yates over the identity, driven by an LCG seeded with the
    first (up to) 4 bytes of the block read big-endian. Swaps only, so the
    result is always a bijection.
    """
    perm = list(range(STATE_SIZE))
    counter = int.from_bytes(block[:4], "big")
    for i in range(STATE_SIZE - 1, 0, -1):
        counter = u32(counter * LCG_MUL + LCG_INC)
        j = counter % (i + 1)
        perm[i], perm[j] = perm[j], perm[i]
    return perm


def apply_permutation(state: List[int], perm: List[int]) -> List[int]:
    if len(state) != STATE_SIZE or len(perm) != STATE_SIZE:
        raise ValueError("state and permutation must have 16 entries")
    return [state[perm[i]] for i in range(STATE_SIZE)]


def rotation_amounts(state: List[int]) -> List[int]:
    return [w & ROT_MASK for w in state]


def diffuse(state: List[int]) -> List[int]:
    # neighbours are read from the pre-diffuse snapshot
    snap = list(state)
    rots = rotation_amounts(snap)
    for i in range(STATE_SIZE):
        neighbor = snap[(i + 1) % STATE_SIZE]
        state[i] = snap[i] ^ rl(neighbor, rots[i])
    return rots


def mix_block(state: List[int], block: bytes) -> Tuple[List[int], Dict[str, object]]:
    """
    Run one block through the mixer.
    Inputs:
      - state: 16 words, left untouched
      - block: one padded block (64 bytes in normal operation)
    Returns:
      - new state
      - trace: params, absorbed/mixed/permuted intermediates, perm, rot
    """
    if len(state) != STATE_SIZE:
        raise ValueError("state must have 16 words")
    work = [u32(w) for w in state]

    a, b, c = derive_params(block)

    absorb_words(work, block)
    absorbed = list(work)

    nonlinear_mix(work, a, b, c)
    mixed = list(work)

    perm = derive_permutation(block)
    work = apply_permutation(work, perm)
    permuted = list(work)

    rots = diffuse(work)

    trace = {
        "params": (a, b, c),
        "absorbed": absorbed,
        "mixed": mixed,
        "perm": perm,
        "permuted": permuted,
        "rot": rots,
        "state": list(work),
    }
    return work, trace
