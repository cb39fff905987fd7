from __future__ import annotations

from typing import Iterator, List

MASK32 = 0xFFFFFFFF

BLOCK_SIZE = 64
STATE_SIZE = 16

GOLDEN32 = 0x9E3779B9
FMIX_C1 = 0x85EBCA6B
FMIX_C2 = 0xC2B2AE35


def u32(x: int) -> int:
    return x & MASK32


def rl(x: int, s: int) -> int:
    # s is taken mod 32; rotation by 0 returns x unchanged
    x &= MASK32
    s &= 31
    if s == 0:
        return x
    return ((x << s) | (x >> (32 - s))) & MASK32


def be32_at(block: bytes, offset: int) -> int:
    return int.from_bytes(block[offset : offset + 4], "big")


def bytes_to_words_be(block: bytes) -> List[int]:
    if len(block) % 4:
        raise ValueError("block length must be a multiple of 4")
    return [be32_at(block, i) for i in range(0, len(block), 4)]


def words_to_bytes_be(words: List[int]) -> bytes:
    return b"".join(u32(w).to_bytes(4, "big") for w in words)


def pad_input(data: bytes) -> bytes:
    # 0x80 then zeros up to the next block boundary; no length suffix
    padded = bytearray(data)
    padded.append(0x80)
    padded.extend(b"\x00" * (-len(padded) % BLOCK_SIZE))
    return bytes(padded)


def iter_blocks(padded: bytes) -> Iterator[bytes]:
    for off in range(0, len(padded), BLOCK_SIZE):
        yield padded[off : off + BLOCK_SIZE]


def derive_seed(data: bytes) -> int:
    """Fold the unpadded input into a 32-bit seed, starting from its length."""
    seed = u32(len(data))
    for v in data:
        seed ^= u32(v + GOLDEN32 + (seed << 6) + (seed >> 2))
    return seed


def initial_mix(seed: int, index: int) -> int:
    # murmur3 style finalizer over seed ^ index*C1
    value = u32(seed ^ (index * FMIX_C1))
    value ^= value >> 16
    value = u32(value * FMIX_C1)
    value ^= value >> 13
    value = u32(value * FMIX_C2)
    value ^= value >> 16
    return value


def initial_state(seed: int) -> List[int]:
    return [initial_mix(seed, i) for i in range(STATE_SIZE)]
